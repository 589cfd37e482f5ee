# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import io
import os
import time
import cloudinary
import cloudinary.api
import cloudinary.uploader
import cloudinary.utils

from command_center.logging_setup import log_event
from .base import MediaAdapter
from .types import MediaProvider, MediaUploadOptions, MediaUploadResult, MediaDeleteOptions, MediaTransformOptions, MediaProviderError

CROP_MAP = {
    "cover": "fill",
    "contain": "fit",
    "fill": "fill",
    "inside": "fit",
    "outside": "fill",
}

class CloudinaryMediaAdapter(MediaAdapter):
    name = MediaProvider.CLOUDINARY

    def __init__(self, *, cloud_name: str, api_key: str, api_secret: str, folder: str | None = None):
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)
        self.folder = folder

    def upload(self, options: MediaUploadOptions) -> MediaUploadResult:
        stem = os.path.splitext(options.filename)[0]
        public_id = f"{int(time.time() * 1000)}-{stem}"
        # Cloudinary context values must be strings
        context = {k: str(v) for k, v in options.metadata.items() if v is not None}

        upload_options = {
            "resource_type": "auto",
            "public_id": public_id,
            "context": context,
        }
        if self.folder:
            upload_options["folder"] = self.folder

        try:
            result = cloudinary.uploader.upload(io.BytesIO(options.data), **upload_options)
        except Exception as e:
            log_event("media_upload_failed", level="error", provider=self.name.value, media_key=public_id, error=str(e))
            raise MediaProviderError(f"Cloudinary upload failed: {e}") from e

        if not result:
            raise MediaProviderError("Cloudinary upload returned no result")

        return MediaUploadResult(
            url=result["secure_url"],
            key=result["public_id"],
            width=result.get("width"),
            height=result.get("height"),
            size=result.get("bytes", options.size),
            provider=self.name,
            metadata={
                "format": result.get("format"),
                "resource_type": result.get("resource_type"),
                **options.metadata,
            },
        )

    def delete(self, options: MediaDeleteOptions) -> None:
        try:
            cloudinary.uploader.destroy(options.key)
        except Exception as e:
            raise MediaProviderError(f"Cloudinary delete failed: {e}") from e

    def get_url(self, key: str, transforms: MediaTransformOptions | None = None) -> str:
        transformation = []
        if transforms:
            if transforms.width:
                transformation.append({"width": transforms.width})
            if transforms.height:
                transformation.append({"height": transforms.height})
            if transforms.quality:
                transformation.append({"quality": transforms.quality})
            if transforms.format:
                transformation.append({"fetch_format": transforms.format})
            if transforms.fit:
                transformation.append({"crop": CROP_MAP[transforms.fit]})

        url, _ = cloudinary.utils.cloudinary_url(key, transformation=transformation, secure=True)
        return url

    def is_healthy(self) -> bool:
        try:
            cloudinary.api.ping()
            return True
        except Exception as e:
            log_event("media_health_check_failed", level="warning", provider=self.name.value, error=str(e))
            return False
