# This project was developed with assistance from AI tools.
"""Document type detection for uploads."""

import uuid

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from ..middleware.auth import CurrentUser
from ..schemas.classification import FileClassification, UploadedFile
from ..services.classification import classify_files

router = APIRouter()

MAX_FILES = 20
MAX_FILE_BYTES = 10 * 1024 * 1024


@router.post("/documents/classify", response_model=list[FileClassification])
async def classify_documents(
    _user: CurrentUser,
    files: list[UploadFile] = File(...),
) -> list[FileClassification]:
    """Suggest a document type per file. Files the classifier cannot place
    come back as ``needs_manual_type``.
    """
    if len(files) > MAX_FILES:
        raise HTTPException(
            status_code=422,
            detail=f"At most {MAX_FILES} files per request",
        )

    uploads: list[UploadedFile] = []
    for file in files:
        data = await file.read()
        if len(data) > MAX_FILE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"{file.filename} exceeds the {MAX_FILE_BYTES // (1024 * 1024)} MB limit",
            )
        uploads.append(
            UploadedFile(
                file_id=str(uuid.uuid4()),
                filename=file.filename or "document",
                content_type=file.content_type or "application/octet-stream",
                data=data,
            )
        )
    return await classify_files(uploads)
