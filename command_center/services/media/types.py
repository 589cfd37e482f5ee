import enum
from typing import Any, Literal
from pydantic import BaseModel, Field

class MediaProvider(str, enum.Enum):
    SUPABASE = "SUPABASE"
    CLOUDINARY = "CLOUDINARY"
    IMGIX = "IMGIX"
    LOCAL = "LOCAL"

class MediaUploadOptions(BaseModel):
    filename: str
    mimetype: str
    size: int
    data: bytes
    metadata: dict[str, Any] = Field(default_factory=dict)

class MediaUploadResult(BaseModel):
    url: str
    key: str | None = None
    width: int | None = None
    height: int | None = None
    size: int
    provider: MediaProvider
    metadata: dict[str, Any] = Field(default_factory=dict)

class MediaDeleteOptions(BaseModel):
    key: str
    url: str | None = None

class MediaTransformOptions(BaseModel):
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    quality: int | None = Field(default=None, ge=1, le=100)
    format: Literal["jpg", "png", "webp", "avif"] | None = None
    fit: Literal["cover", "contain", "fill", "inside", "outside"] | None = None

    def is_empty(self) -> bool:
        return not any(v is not None for v in self.model_dump().values())

class MediaError(Exception):
    pass

class MediaValidationError(MediaError):
    pass

class MediaAdapterNotFound(MediaError):
    pass

class MediaProviderError(MediaError):
    """An external storage SDK call failed."""
