from command_center.config import settings
from command_center.logging_setup import log_event
from .base import MediaAdapter
from .types import (
    MediaProvider,
    MediaUploadOptions,
    MediaUploadResult,
    MediaDeleteOptions,
    MediaTransformOptions,
    MediaAdapterNotFound,
    MediaValidationError,
)

ALLOWED_MIMETYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
    "video/mp4",
    "video/webm",
    "application/pdf",
)

def validate_upload(mimetype: str, size: int, max_mb: int | None = None):
    max_mb = max_mb or settings.media_max_upload_mb
    if size > max_mb * 1024 * 1024:
        raise MediaValidationError(f"File too large. Maximum size is {max_mb}MB")
    if mimetype not in ALLOWED_MIMETYPES:
        raise MediaValidationError("Invalid file type")

class MediaManager:
    """Routes media operations to the registered provider adapters."""

    def __init__(self, adapters: list[MediaAdapter] | None = None):
        self.adapters: dict[MediaProvider, MediaAdapter] = {}
        self.default_adapter: MediaAdapter | None = None
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: MediaAdapter):
        self.adapters[adapter.name] = adapter
        # First registered wins the default slot
        if self.default_adapter is None:
            self.default_adapter = adapter

    def _get(self, provider: MediaProvider | str | None) -> MediaAdapter:
        if provider is None:
            if self.default_adapter is None:
                raise MediaAdapterNotFound("Media adapter not found: default")
            return self.default_adapter
        try:
            adapter = self.adapters.get(MediaProvider(provider))
        except ValueError:
            adapter = None
        if adapter is None:
            raise MediaAdapterNotFound(f"Media adapter not found: {provider}")
        return adapter

    def upload(self, options: MediaUploadOptions, provider: MediaProvider | str | None = None) -> MediaUploadResult:
        adapter = self._get(provider)
        result = adapter.upload(options)
        log_event("media_uploaded", provider=adapter.name.value, media_key=result.key, size=result.size, mimetype=options.mimetype)
        return result

    def delete(self, options: MediaDeleteOptions, provider: MediaProvider | str) -> None:
        adapter = self._get(provider)
        adapter.delete(options)
        log_event("media_deleted", provider=adapter.name.value, media_key=options.key)

    def get_url(self, key: str, provider: MediaProvider | str, transforms: MediaTransformOptions | None = None) -> str:
        return self._get(provider).get_url(key, transforms)

    def health_check(self) -> dict[str, bool]:
        results = {}
        for provider, adapter in self.adapters.items():
            try:
                results[provider.value] = adapter.is_healthy()
            except Exception as e:
                log_event("media_health_check_failed", level="warning", provider=provider.value, error=str(e))
                results[provider.value] = False
        return results

    def available_providers(self) -> list[MediaProvider]:
        return list(self.adapters.keys())

    def has_provider(self, provider: MediaProvider | str) -> bool:
        try:
            return MediaProvider(provider) in self.adapters
        except ValueError:
            return False

def create_media_manager() -> MediaManager:
    """Build the manager from settings; a provider is active when its credentials are present."""
    manager = MediaManager()

    if settings.supabase_url and settings.supabase_service_role_key:
        from .supabase import SupabaseMediaAdapter
        manager.register(SupabaseMediaAdapter(
            url=settings.supabase_url,
            service_role_key=settings.supabase_service_role_key,
            bucket=settings.supabase_bucket,
        ))

    if settings.cloudinary_cloud_name and settings.cloudinary_api_key and settings.cloudinary_api_secret:
        from .cloudinary import CloudinaryMediaAdapter
        manager.register(CloudinaryMediaAdapter(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
        ))

    if settings.imgix_domain and settings.imgix_api_key:
        from .imgix import ImgixMediaAdapter
        manager.register(ImgixMediaAdapter(
            domain=settings.imgix_domain,
            api_key=settings.imgix_api_key,
            secure_url_token=settings.imgix_secure_url_token,
            source_bucket=settings.imgix_source_bucket,
            s3_access_key=settings.s3_access_key,
            s3_secret_key=settings.s3_secret_key,
            s3_region=settings.s3_region,
        ))

    if settings.media_local_enabled:
        from .local import LocalMediaAdapter
        manager.register(LocalMediaAdapter(uploads_dir=settings.uploads_dir, public_base_url=settings.public_base_url))

    if not manager.adapters:
        log_event("media_no_providers", level="warning")
    else:
        log_event("media_providers_configured", providers=[p.value for p in manager.available_providers()])
    return manager

_manager: MediaManager | None = None

def get_media_manager() -> MediaManager:
    """FastAPI dependency returning the process-wide manager."""
    global _manager
    if _manager is None:
        _manager = create_media_manager()
    return _manager
