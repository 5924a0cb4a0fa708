"""S3 file storage.

boto3 is synchronous, so every client call runs in Starlette's threadpool.
Object keys are `{32 hex chars}_{original filename}` and the public URL is
the virtual-hosted bucket URL (or endpoint/bucket/key for S3-compatible
stores).
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from config import StorageSettings
from errors import AppError, ValidationError
from shared.generators import generate_object_key
from shared.logging import get_logger

log = get_logger(__name__)


class StorageError(AppError):
    status_code = 502
    error_code = "storage_error"


class S3FileStorage:
    def __init__(self, settings: StorageSettings, client: Optional[object] = None) -> None:
        self._settings = settings
        self._bucket = settings.aws_s3_bucket_name
        self._client = client or boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.aws_s3_endpoint_url or None,
        )

    def url_for(self, key: str) -> str:
        if self._settings.aws_s3_endpoint_url:
            base = self._settings.aws_s3_endpoint_url.rstrip("/")
            return f"{base}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._settings.aws_region}.amazonaws.com/{key}"

    @staticmethod
    def key_from_url(url: str) -> str:
        """Extract the object key (last path segment) from a file URL."""
        key = unquote(urlparse(url).path.rsplit("/", 1)[-1])
        if not key:
            raise ValidationError("Invalid file URL: cannot extract the file key", field="url")
        return key

    async def put_object(self, data: bytes, filename: str, content_type: str) -> str:
        key = generate_object_key(filename)
        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            log.error("s3_put_failed", key=key, error=str(e), error_type=type(e).__name__)
            raise StorageError("File upload failed") from e
        log.info("s3_put", key=key, size=len(data))
        return self.url_for(key)

    async def delete_objects(self, keys: list[str]) -> None:
        try:
            if len(keys) == 1:
                await run_in_threadpool(
                    self._client.delete_object, Bucket=self._bucket, Key=keys[0]
                )
            else:
                await run_in_threadpool(
                    self._client.delete_objects,
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in keys], "Quiet": False},
                )
        except (BotoCoreError, ClientError) as e:
            log.error("s3_delete_failed", keys=keys, error=str(e))
            raise StorageError("File deletion failed") from e
        log.info("s3_deleted", count=len(keys))
