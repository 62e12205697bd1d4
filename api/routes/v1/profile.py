"""Applicant profile endpoints."""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.profiles import ProfileResponse, ProfileUpdateRequest
from api.services import profiles as profile_service
from core.security import AuditAction, ResourceType, log_audit_event
from database.engine import get_db
from database.models.users import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get(
    "",
    response_model=ProfileResponse,
    summary="Get my profile",
    description="Profile sections with per-section completeness and an overall percentage.",
)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.get_profile(db, current_user.id)
    return profile_service.profile_view(current_user.id, profile)


@router.put("", response_model=ProfileResponse, summary="Save my profile")
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await profile_service.upsert_profile(db, current_user.id, request.sections())
    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.PROFILE,
        resource_id=current_user.id,
        user_id=current_user.id,
        details={"sections": sorted(request.model_fields_set)},
    )
    return profile_service.profile_view(current_user.id, profile)
