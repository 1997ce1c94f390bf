"""
Image hosting on an S3-compatible object store.

Enable by setting S3_BUCKET. For Supabase Storage, Cloudflare R2 or MinIO
also set S3_ENDPOINT_URL (and S3_REGION where the provider needs one).
PUBLIC_BASE_URL, when set, replaces the host part of returned links.

The store is a soft dependency: without a client every upload resolves to
``public_url=None`` and the extracted record is still returned.
"""

import asyncio
import mimetypes
import os
import secrets
import time
from typing import Any, Dict, Optional

import boto3
import botocore.exceptions
from botocore.config import Config as BotoConfig
from loguru import logger

from ..core.config import Settings
from ..models.fields import UploadTarget

MIME_EXTENSIONS = {
    "png": ".png",
    "webp": ".webp",
    "heic": ".heic",
}
DEFAULT_EXTENSION = ".jpg"


def build_s3_client(config: Settings):
    """Create the S3 client once at startup, or return None when no bucket is configured."""
    if not config.s3_bucket:
        return None

    kwargs: Dict[str, Any] = {
        "service_name": "s3",
        "region_name": config.s3_region or None,
        "endpoint_url": config.s3_endpoint_url or None,
        # No retries: a failed upload degrades to a null imageUrl instead
        "config": BotoConfig(retries={"max_attempts": 1, "mode": "standard"}),
    }
    # Let boto3 resolve creds from the environment if not explicitly provided.
    if config.s3_access_key_id and config.s3_secret_access_key:
        kwargs["aws_access_key_id"] = config.s3_access_key_id
        kwargs["aws_secret_access_key"] = config.s3_secret_access_key

    return boto3.client(**kwargs)


def infer_extension(filename: Optional[str], mime_type: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext and ext != ".":
        return ext

    mime = (mime_type or "").lower()
    for marker, mime_ext in MIME_EXTENSIONS.items():
        if marker in mime:
            return mime_ext
    return DEFAULT_EXTENSION


def build_object_path(
    filename: Optional[str],
    mime_type: Optional[str],
    prefix: str = "uploads",
    now_ms: Optional[int] = None,
) -> str:
    """``<prefix>/<millisecond-timestamp>-<random-hex>.<ext>``"""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = secrets.token_hex(4)
    name = f"{now_ms}-{suffix}{infer_extension(filename, mime_type)}"
    prefix = (prefix or "").strip("/")
    return f"{prefix}/{name}" if prefix else name


class ObjectStoreUploader:
    def __init__(
        self,
        client=None,
        bucket: Optional[str] = None,
        public_base_url: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        prefix: str = "uploads",
    ):
        self.client = client
        self.bucket = bucket
        self.public_base_url = (public_base_url or "").rstrip("/") or None
        self.endpoint_url = (endpoint_url or "").rstrip("/") or None
        self.prefix = prefix

    @classmethod
    def from_settings(cls, config: Settings, client=None) -> "ObjectStoreUploader":
        return cls(
            client=client if client is not None else build_s3_client(config),
            bucket=config.s3_bucket,
            public_base_url=config.public_base_url,
            endpoint_url=config.s3_endpoint_url,
            prefix=config.s3_prefix,
        )

    @property
    def enabled(self) -> bool:
        return self.client is not None and bool(self.bucket)

    def public_url_for(self, object_path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{object_path}"
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{object_path}"
        return f"https://{self.bucket}.s3.amazonaws.com/{object_path}"

    def _put(self, object_path: str, data: bytes, content_type: str) -> None:
        # Plain put_object overwrites on key collision
        self.client.put_object(
            Bucket=self.bucket,
            Key=object_path,
            Body=data,
            ContentType=content_type,
        )

    async def upload(
        self, data: bytes, filename: Optional[str], mime_type: Optional[str]
    ) -> UploadTarget:
        object_path = build_object_path(filename, mime_type, prefix=self.prefix)

        if not self.enabled:
            logger.debug("Object store not configured - skipping image upload")
            return UploadTarget(bucket=self.bucket, object_path=object_path, public_url=None)

        content_type = mime_type or mimetypes.guess_type(object_path)[0] or "image/jpeg"
        try:
            await asyncio.to_thread(self._put, object_path, data, content_type)
        except botocore.exceptions.ClientError as e:
            code = (e.response or {}).get("Error", {}).get("Code", "") or ""
            logger.warning("Image upload rejected: {code}", code=code or str(e), bucket=self.bucket, key=object_path)
            return UploadTarget(bucket=self.bucket, object_path=object_path, public_url=None)
        except Exception as e:
            # Endpoint unreachable, missing credentials, etc.
            logger.warning("Image upload failed: {error}", error=str(e), bucket=self.bucket, key=object_path)
            return UploadTarget(bucket=self.bucket, object_path=object_path, public_url=None)

        public_url = self.public_url_for(object_path)
        logger.info("Uploaded image", key=object_path, size_bytes=len(data))
        return UploadTarget(bucket=self.bucket, object_path=object_path, public_url=public_url)
