"""
StreetPaws Backend — Photo Upload Route
=========================================

What:  POST /api/upload accepts one image in the multipart field "photo".
How:   Reads the part into memory (bounded by MAX_FILE_SIZE), hands it to
       FileService for validation and storage, and returns the public URL.
       The client sends that URL back as photoUrl when it creates or
       updates an animal.

Error responses (global exception handlers):
    400: missing file, disallowed type, oversize (ValidationError)
    500: disk write failure (FileStorageError)
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, UploadFile

from streetpaws.exceptions import ValidationError
from streetpaws.schemas.common import ErrorResponse, UploadResponse
from streetpaws.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uploads"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        200: {"description": "Photo stored", "model": UploadResponse},
        400: {"description": "Missing file, invalid type or too large", "model": ErrorResponse},
        500: {"description": "Photo could not be written", "model": ErrorResponse},
    },
    summary="Upload an animal photo",
    description="JPEG, PNG, GIF or WEBP, max 10MB. Returns the photo's public URL.",
)
async def upload_photo(
    photo: Optional[UploadFile] = File(default=None, description="Animal photo"),
) -> UploadResponse:
    if photo is None:
        raise ValidationError(message="No file uploaded", field="photo")

    try:
        content = await photo.read()
        logger.info(
            "Received upload: filename=%s, size=%d bytes",
            photo.filename or "unknown",
            len(content),
        )
        _, public_url = await file_service.validate_and_store(
            filename=photo.filename or "",
            content=content,
            content_type=photo.content_type,
            content_length=photo.size,
        )
    finally:
        await photo.close()

    return UploadResponse(photo_url=public_url)
