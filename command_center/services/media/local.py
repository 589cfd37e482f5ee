import os
from urllib.parse import urlencode

from .base import MediaAdapter, timestamped_key, image_dimensions
from .types import MediaProvider, MediaUploadOptions, MediaUploadResult, MediaDeleteOptions, MediaTransformOptions, MediaProviderError

class LocalMediaAdapter(MediaAdapter):
    """Files on disk under the uploads dir, served by the app at /uploads."""
    name = MediaProvider.LOCAL

    def __init__(self, *, uploads_dir: str, public_base_url: str):
        self.uploads_dir = uploads_dir
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.uploads_dir, key))
        if not path.startswith(os.path.abspath(self.uploads_dir) + os.sep):
            raise MediaProviderError(f"Invalid media key: {key}")
        return path

    def upload(self, options: MediaUploadOptions) -> MediaUploadResult:
        os.makedirs(self.uploads_dir, exist_ok=True)
        key = timestamped_key(os.path.basename(options.filename))
        try:
            with open(self._path(key), "wb") as f:
                f.write(options.data)
        except OSError as e:
            raise MediaProviderError(f"Local upload failed: {e}") from e

        width, height = image_dimensions(options.data, options.mimetype)
        return MediaUploadResult(
            url=self.get_url(key),
            key=key,
            width=width,
            height=height,
            size=options.size,
            provider=self.name,
            metadata=dict(options.metadata),
        )

    def delete(self, options: MediaDeleteOptions) -> None:
        path = self._path(options.key)
        if os.path.exists(path):
            try:
                os.remove(path)
            except OSError as e:
                raise MediaProviderError(f"Local delete failed: {e}") from e

    def get_url(self, key: str, transforms: MediaTransformOptions | None = None) -> str:
        url = f"{self.public_base_url}/uploads/{key}"
        if transforms and not transforms.is_empty():
            # No image server behind /uploads; keep the hints for clients
            url += "?" + urlencode(transforms.model_dump(exclude_none=True))
        return url

    def is_healthy(self) -> bool:
        os.makedirs(self.uploads_dir, exist_ok=True)
        return os.access(self.uploads_dir, os.W_OK)
