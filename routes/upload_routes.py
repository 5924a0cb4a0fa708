"""
File uploads.

POST   /files   multipart upload of one or more files (field "files")
DELETE /files   delete files by URL
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile

from dependencies import get_current_user, get_file_service
from schemas.dto.requests.file import DeleteFilesRequest
from schemas.dto.responses.common import MessageResponse
from schemas.dto.responses.request import FileUploadResponse
from schemas.models.user import UserDoc
from services.file_service import FileService, UploadedFile

router = APIRouter(prefix="/files", tags=["files"])


@router.post("", status_code=201, response_model=FileUploadResponse)
async def upload_files(
    files: list[UploadFile] = File(...),
    _user: UserDoc = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
) -> FileUploadResponse:
    uploads = [
        UploadedFile(
            filename=f.filename or "",
            content_type=f.content_type or "application/octet-stream",
            data=await f.read(),
        )
        for f in files
    ]
    if len(uploads) == 1:
        urls = [await file_service.upload_file(uploads[0])]
    else:
        urls = await file_service.upload_multiple_files(uploads)
    return FileUploadResponse(urls=urls)


@router.delete("", response_model=MessageResponse)
async def delete_files(
    body: DeleteFilesRequest,
    _user: UserDoc = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
) -> MessageResponse:
    if len(body.urls) == 1:
        await file_service.delete_file(body.urls[0])
    else:
        await file_service.delete_multiple_files(body.urls)
    return MessageResponse(success=True, message=f"Deleted {len(body.urls)} file(s)")
