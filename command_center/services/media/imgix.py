# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import boto3
import requests
from imgix import UrlBuilder

from command_center.logging_setup import log_event
from .base import MediaAdapter, timestamped_key, image_dimensions
from .types import MediaProvider, MediaUploadOptions, MediaUploadResult, MediaDeleteOptions, MediaTransformOptions, MediaProviderError

IMGIX_PURGE_URL = "https://api.imgix.com/api/v1/purge"

FIT_MAP = {
    "cover": "crop",
    "contain": "fit",
    "fill": "fill",
    "inside": "fit",
    "outside": "min",
}

class ImgixMediaAdapter(MediaAdapter):
    """
    Imgix only transforms and serves; the bytes live in the S3 bucket the
    Imgix source is configured against.
    """
    name = MediaProvider.IMGIX

    def __init__(
        self,
        *,
        domain: str,
        api_key: str,
        secure_url_token: str | None = None,
        source_bucket: str | None = None,
        s3_access_key: str | None = None,
        s3_secret_key: str | None = None,
        s3_region: str | None = None,
    ):
        self.domain = domain
        self.api_key = api_key
        self.source_bucket = source_bucket
        self.builder = UrlBuilder(domain, use_https=True, sign_key=secure_url_token, include_library_param=False)
        self._s3_settings = (s3_access_key, s3_secret_key, s3_region)
        self._s3 = None

    def _get_s3_client(self):
        if not self.source_bucket:
            raise MediaProviderError("Imgix source bucket is not configured (IMGIX_SOURCE_BUCKET)")
        if self._s3 is None:
            access_key, secret_key, region = self._s3_settings
            # S3-compatible endpoints are passed through the region setting
            endpoint = region if region and "http" in region else None
            region_name = region if region and "http" not in region else None
            self._s3 = boto3.client(
                "s3",
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region_name,
                endpoint_url=endpoint,
            )
        return self._s3

    def upload(self, options: MediaUploadOptions) -> MediaUploadResult:
        key = timestamped_key(options.filename)
        s3 = self._get_s3_client()
        try:
            s3.put_object(
                Bucket=self.source_bucket,
                Key=key,
                Body=options.data,
                ContentType=options.mimetype,
                CacheControl="max-age=3600",
            )
        except Exception as e:
            log_event("media_upload_failed", level="error", provider=self.name.value, media_key=key, error=str(e))
            raise MediaProviderError(f"Imgix source upload failed: {e}") from e

        width, height = image_dimensions(options.data, options.mimetype)
        return MediaUploadResult(
            url=self.get_url(key),
            key=key,
            width=width,
            height=height,
            size=options.size,
            provider=self.name,
            metadata={"domain": self.domain, "bucket": self.source_bucket, **options.metadata},
        )

    def delete(self, options: MediaDeleteOptions) -> None:
        s3 = self._get_s3_client()
        try:
            s3.delete_object(Bucket=self.source_bucket, Key=options.key)
        except Exception as e:
            raise MediaProviderError(f"Imgix source delete failed: {e}") from e
        self._purge(options.url or self.get_url(options.key))

    def _purge(self, url: str) -> None:
        """Drop the cached rendition so the deleted object stops being served."""
        r = requests.post(
            IMGIX_PURGE_URL,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/vnd.api+json",
            },
            json={"data": {"type": "purges", "attributes": {"url": url}}},
            timeout=10,
        )
        if r.status_code >= 400:
            log_event("imgix_purge_failed", level="warning", status_code=r.status_code, url=url)

    def get_url(self, key: str, transforms: MediaTransformOptions | None = None) -> str:
        params = {}
        if transforms:
            if transforms.width:
                params["w"] = transforms.width
            if transforms.height:
                params["h"] = transforms.height
            if transforms.quality:
                params["q"] = transforms.quality
            if transforms.format:
                params["fm"] = transforms.format
            if transforms.fit:
                params["fit"] = FIT_MAP[transforms.fit]
        return self.builder.create_url(key, params)

    def is_healthy(self) -> bool:
        try:
            r = requests.head(f"https://{self.domain}/test.jpg?w=1&h=1", timeout=5)
        except requests.RequestException as e:
            log_event("media_health_check_failed", level="warning", provider=self.name.value, error=str(e))
            return False
        # 404 still means Imgix answered
        return r.ok or r.status_code == 404
