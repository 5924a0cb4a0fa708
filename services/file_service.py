"""Upload and delete files in object storage on behalf of authenticated users."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from errors import AppError, ValidationError
from infrastructure.storage.s3 import S3FileStorage
from shared.logging import get_logger

log = get_logger(__name__)


class StorageNotConfiguredError(AppError):
    status_code = 503
    error_code = "storage_not_configured"


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content_type: str
    data: bytes


class FileService:
    def __init__(self, storage: Optional[S3FileStorage], max_upload_size: int) -> None:
        self._storage = storage
        self._max_upload_size = max_upload_size

    def _require_storage(self) -> S3FileStorage:
        if self._storage is None:
            raise StorageNotConfiguredError("File storage is not configured")
        return self._storage

    def _validate(self, file: Optional[UploadedFile]) -> UploadedFile:
        if file is None or not file.filename:
            raise ValidationError("No file provided", field="file")
        if not file.data:
            raise ValidationError(f"File {file.filename} is empty", field="file")
        if len(file.data) > self._max_upload_size:
            raise ValidationError(
                f"File {file.filename} exceeds the {self._max_upload_size} byte limit",
                field="file",
            )
        return file

    async def upload_file(self, file: Optional[UploadedFile]) -> str:
        storage = self._require_storage()
        file = self._validate(file)
        return await storage.put_object(
            file.data, file.filename, file.content_type or "application/octet-stream"
        )

    async def upload_multiple_files(self, files: Sequence[UploadedFile]) -> list[str]:
        if not files:
            raise ValidationError("No files provided", field="files")
        # Validate everything before the first byte leaves
        for file in files:
            self._validate(file)
        urls = [await self.upload_file(file) for file in files]
        log.info("files_uploaded", count=len(urls))
        return urls

    async def delete_file(self, url: str) -> None:
        storage = self._require_storage()
        if not url:
            raise ValidationError("No file URL provided", field="url")
        await storage.delete_objects([storage.key_from_url(url)])

    async def delete_multiple_files(self, urls: Sequence[str]) -> None:
        storage = self._require_storage()
        if not urls:
            raise ValidationError("No file URLs provided", field="urls")
        await storage.delete_objects([storage.key_from_url(u) for u in urls])
