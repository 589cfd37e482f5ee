"""Base class for storage/transform provider adapters."""

import io
import time
from abc import ABC, abstractmethod
from PIL import Image, UnidentifiedImageError

from .types import MediaProvider, MediaUploadOptions, MediaUploadResult, MediaDeleteOptions, MediaTransformOptions


class MediaAdapter(ABC):
    """One storage or transform backend behind a common contract."""

    name: MediaProvider

    @abstractmethod
    def upload(self, options: MediaUploadOptions) -> MediaUploadResult:
        """Store the bytes and return where they live."""

    @abstractmethod
    def delete(self, options: MediaDeleteOptions) -> None:
        """Remove a stored object by key."""

    @abstractmethod
    def get_url(self, key: str, transforms: MediaTransformOptions | None = None) -> str:
        """Build a public URL, applying transforms in the provider's own parameter names."""

    @abstractmethod
    def is_healthy(self) -> bool:
        """Lightweight reachability check against the backend."""


def timestamped_key(filename: str) -> str:
    return f"{int(time.time() * 1000)}-{filename}"


def image_dimensions(data: bytes, mimetype: str) -> tuple[int | None, int | None]:
    if not mimetype.startswith("image/"):
        return None, None
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        return None, None
