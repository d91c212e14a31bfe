"""Object Storage — S3-compatible document storage (Supabase Storage, MinIO, AWS S3) via boto3.

Invariants:
    - botocore ClientError never escapes: it is re-raised as StorageError
    - Public URLs are {public_base_url}/{bucket}/{key}; key_from_url inverts that mapping
    - The boto3 client is built lazily, once per process (get_object_storage)

Design Decisions:
    - boto3 is synchronous: calls run in a worker thread (asyncio.to_thread) so uploads
      don't block the event loop
    - Buckets are provisioned out of band; no head/create bucket on startup
"""

import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from fleetdesk.config import Settings
from fleetdesk.core.errors import StorageError

logger = logging.getLogger(__name__)


class S3ObjectStorage:
    """Document storage over the S3 API."""

    def __init__(self, settings: Settings):
        settings.require("storage_endpoint_url", "storage_access_key", "storage_secret_key")
        self.client = boto3.client(
            "s3",
            aws_access_key_id=settings.storage_access_key,
            aws_secret_access_key=settings.storage_secret_key,
            region_name=settings.storage_region,
            endpoint_url=settings.storage_endpoint_url,
            config=Config(signature_version="s3v4"),
        )
        self.public_base_url = (
            settings.storage_public_base_url or settings.storage_endpoint_url
        ).rstrip("/")

    async def upload(
        self, bucket: str, key: str, data: bytes, content_type: str | None,
    ) -> None:
        extra = {"CacheControl": "max-age=3600"}
        if content_type:
            extra["ContentType"] = content_type
        try:
            await asyncio.to_thread(
                self.client.put_object, Bucket=bucket, Key=key, Body=data, **extra,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Upload to {bucket}/{key} failed: {e}")
            raise StorageError(f"Failed to upload file: {e}", "upload")
        logger.info(f"Uploaded {key} to {bucket}")

    async def download(self, bucket: str, key: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self.client.get_object, Bucket=bucket, Key=key,
            )
            return await asyncio.to_thread(response["Body"].read)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Download of {bucket}/{key} failed: {e}")
            raise StorageError(f"Failed to download file: {e}", "download")

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{bucket}/{key}"

    def key_from_url(self, bucket: str, url: str) -> str | None:
        """Object key of a public URL in `bucket`, None for any other host or bucket."""
        prefix = f"{self.public_base_url}/{bucket}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None


_storage: S3ObjectStorage | None = None


def get_object_storage(settings: Settings) -> S3ObjectStorage:
    """Lazy singleton: a missing storage config fails the request, not the boot."""
    global _storage
    if _storage is None:
        _storage = S3ObjectStorage(settings)
    return _storage
