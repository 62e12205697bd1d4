"""
Profile service functions.

Profiles are created on first save, edited directly through ``PUT /profile``
and refreshed from every submitted application.
"""

from typing import Any, Dict, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.profiles import profile_completeness, sections_of, strip_internal_ids
from core.security import AuditAction, ResourceType, log_audit_event
from database.models.applications import Application
from database.models.profiles import UserProfile, upgrade_sections

logger = logging.getLogger(__name__)


async def get_profile(db: AsyncSession, user_id: str) -> Optional[UserProfile]:
    result = await db.execute(select(UserProfile).where(UserProfile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        upgrade_sections(profile)
    return profile


def profile_view(user_id: str, profile: Optional[UserProfile]) -> Dict[str, Any]:
    """
    Profile sections with completeness flags. A user without a stored
    profile gets empty sections.
    """
    sections = sections_of(profile) if profile is not None else {}
    for field in ("education", "previous_experience", "training", "languages"):
        sections[field] = sections.get(field) or []
    return {
        "user_id": user_id,
        **sections,
        "last_updated": profile.last_updated if profile is not None else None,
        "completeness": profile_completeness(sections),
    }


async def upsert_profile(
    db: AsyncSession,
    user_id: str,
    sections: Dict[str, Any],
    commit: bool = True,
) -> UserProfile:
    """
    Save profile sections for a user, creating the profile if needed.

    Args:
        db: Database session
        user_id: Owner of the profile
        sections: Section values keyed by snake_case section name; ids
            supplied by the client are dropped
        commit: Commit the transaction

    Returns:
        The stored profile
    """
    cleaned = strip_internal_ids(sections)

    profile = await get_profile(db, user_id)
    if profile is None:
        profile = UserProfile(user_id=user_id)
        db.add(profile)
        logger.info(f"Creating profile for user {user_id}")

    profile.apply_sections(cleaned)
    upgrade_sections(profile)

    if commit:
        await db.commit()
        await db.refresh(profile)
    else:
        await db.flush()
    return profile


async def writeback_profile(db: AsyncSession, user_id: str, application: Application) -> Optional[str]:
    """
    Copy a submitted application's sections into the applicant's profile.

    Runs in its own transaction after the submission has been committed.
    Failure never undoes the submission.

    Returns:
        None on success, otherwise a warning for the caller
    """
    application_id = application.id
    sections = sections_of(application)
    try:
        await upsert_profile(db, user_id, sections)
    except SQLAlchemyError:
        await db.rollback()
        logger.error(
            f"Profile write-back failed for user {user_id} after application {application_id}",
            exc_info=True,
        )
        return "Your application was submitted, but your profile could not be updated"

    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.PROFILE,
        resource_id=user_id,
        user_id=user_id,
        details={"source": "application", "application_id": application_id},
    )
    return None
