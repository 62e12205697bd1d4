"""Resume upload endpoint."""

import logging
from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_current_user
from api.schemas.common import CamelModel
from core.config import settings
from core.errors import ValidationFailedError
from core.security import AuditAction, ResourceType, log_audit_event
from core.storage.local import RESUME_CONTENT_TYPES, LocalStorage
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


class UploadResponse(CamelModel):
    file_url: str


def get_storage() -> LocalStorage:
    return LocalStorage(settings.upload_dir, settings.upload_url_prefix)


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload a resume",
    description="PDF or Word document up to the configured size limit. Returns its public URL.",
)
async def upload_resume(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    storage: LocalStorage = Depends(get_storage),
) -> UploadResponse:
    if file.content_type not in RESUME_CONTENT_TYPES:
        raise ValidationFailedError(
            "Only PDF and Word documents are allowed",
            details=[{"field": "file", "message": f"Unsupported type {file.content_type}"}],
        )

    data = await file.read(settings.max_upload_size + 1)
    if not data:
        raise ValidationFailedError("Uploaded file is empty")
    if len(data) > settings.max_upload_size:
        raise ValidationFailedError(
            f"File exceeds the {settings.max_upload_size // (1024 * 1024)}MB limit"
        )

    url = storage.save_resume(data, file.content_type, file.filename)
    logger.info(f"User {current_user.id} uploaded resume ({len(data)} bytes)")
    await log_audit_event(
        AuditAction.UPLOAD,
        ResourceType.RESUME,
        user_id=current_user.id,
        details={"url": url, "size": len(data)},
    )
    return UploadResponse(file_url=url)
