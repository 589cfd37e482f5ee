# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

from urllib.parse import urlencode
from supabase import create_client

from command_center.logging_setup import log_event
from .base import MediaAdapter, timestamped_key, image_dimensions
from .types import MediaProvider, MediaUploadOptions, MediaUploadResult, MediaDeleteOptions, MediaTransformOptions, MediaProviderError

# Supabase image transformation `resize` modes
RESIZE_MAP = {
    "cover": "cover",
    "contain": "contain",
    "fill": "fill",
    "inside": "contain",
    "outside": "cover",
}

class SupabaseMediaAdapter(MediaAdapter):
    name = MediaProvider.SUPABASE

    def __init__(self, *, url: str, service_role_key: str, bucket: str):
        self.client = create_client(url, service_role_key)
        self.bucket = bucket

    def _storage(self):
        return self.client.storage.from_(self.bucket)

    def _public_url(self, key: str) -> str:
        # Some client versions append a bare "?" to public URLs
        return self._storage().get_public_url(key).rstrip("?")

    def upload(self, options: MediaUploadOptions) -> MediaUploadResult:
        key = timestamped_key(options.filename)
        try:
            self._storage().upload(
                key,
                options.data,
                file_options={
                    "content-type": options.mimetype,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as e:
            log_event("media_upload_failed", level="error", provider=self.name.value, media_key=key, error=str(e))
            raise MediaProviderError(f"Supabase upload failed: {e}") from e

        width, height = image_dimensions(options.data, options.mimetype)
        return MediaUploadResult(
            url=self._public_url(key),
            key=key,
            width=width,
            height=height,
            size=options.size,
            provider=self.name,
            metadata={"bucket": self.bucket, **options.metadata},
        )

    def delete(self, options: MediaDeleteOptions) -> None:
        try:
            self._storage().remove([options.key])
        except Exception as e:
            raise MediaProviderError(f"Supabase delete failed: {e}") from e

    def get_url(self, key: str, transforms: MediaTransformOptions | None = None) -> str:
        url = self._public_url(key)
        if not transforms or transforms.is_empty():
            return url

        params = []
        if transforms.width:
            params.append(("width", transforms.width))
        if transforms.height:
            params.append(("height", transforms.height))
        if transforms.quality:
            params.append(("quality", transforms.quality))
        if transforms.format:
            params.append(("format", transforms.format))
        if transforms.fit:
            params.append(("resize", RESIZE_MAP[transforms.fit]))
        return f"{url}?{urlencode(params)}"

    def is_healthy(self) -> bool:
        try:
            buckets = self.client.storage.list_buckets()
            return isinstance(buckets, list)
        except Exception as e:
            log_event("media_health_check_failed", level="warning", provider=self.name.value, error=str(e))
            return False
