"""
Application service functions for API endpoints.

The record store for applications: drafts, submission, edits and
withdrawal. Every state change goes through ``core.lifecycle``.
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.applications import CompleteApplication
from api.services import profiles as profile_service
from api.services import vacancies as vacancy_service
from core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from core.lifecycle import (
    ApplicationStatus,
    ensure_editable,
    ensure_submittable,
    ensure_withdrawable,
    normalize_status,
)
from core.middleware.error_handling import format_validation_errors
from core.profiles import SECTION_FIELDS, merge_profile_into_draft, sections_of, strip_internal_ids
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import now
from database.models.applications import Application, upgrade_sections
from database.models.users import User
from database.models.vacancies import Vacancy, VacancyStatus

logger = logging.getLogger(__name__)

ALREADY_APPLIED = "You have already applied for this position"


# ==================== Lookups ==================== #


async def get_application(db: AsyncSession, application_id: str) -> Optional[Application]:
    result = await db.execute(select(Application).where(Application.id == application_id))
    application = result.scalar_one_or_none()
    if application is not None:
        upgrade_sections(application)
    return application


async def get_application_for(db: AsyncSession, application_id: str, actor: User) -> Application:
    """
    Load an application the actor may act on: their own, or any for admins.

    Raises:
        NotFoundError: Unknown application
        ForbiddenError: Someone else's application
    """
    application = await get_application(db, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    if application.user_id != actor.id and not actor.is_admin:
        logger.warning(f"User {actor.id} denied access to application {application_id}")
        raise ForbiddenError("You are not allowed to access this application")
    return application


async def find_active_application(
    db: AsyncSession, user_id: str, vacancy_id: str
) -> Optional[Application]:
    """The user's non-withdrawn application for a vacancy, if any."""
    result = await db.execute(
        select(Application).where(
            Application.user_id == user_id,
            Application.vacancy_id == vacancy_id,
            Application.status != ApplicationStatus.WITHDRAWN.value,
        )
    )
    application = result.scalars().first()
    if application is not None:
        upgrade_sections(application)
    return application


async def list_user_applications(
    db: AsyncSession,
    user_id: str,
    status: Optional[str] = None,
    vacancy_id: Optional[str] = None,
) -> List[Application]:
    """
    The user's applications, most recently updated first.

    Args:
        status: Lifecycle state or alias to filter on
        vacancy_id: Vacancy to filter on
    """
    stmt = select(Application).where(Application.user_id == user_id)
    wanted = normalize_status(status)
    if wanted is not None:
        stmt = stmt.where(Application.status == wanted.value)
    if vacancy_id:
        stmt = stmt.where(Application.vacancy_id == vacancy_id)

    result = await db.execute(stmt.order_by(Application.last_updated.desc()))
    applications = list(result.scalars().all())
    for application in applications:
        upgrade_sections(application)
    return applications


# ==================== Validation ==================== #


def validate_content(sections: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate sections against the complete application schema.

    Returns:
        Normalised sections (camelCase inner keys, unknown keys dropped)

    Raises:
        ValidationFailedError: With field-level details
    """
    try:
        content = CompleteApplication.model_validate(
            {field: sections.get(field) for field in SECTION_FIELDS if sections.get(field) is not None}
        )
    except ValidationError as e:
        raise ValidationFailedError("Validation failed", details=format_validation_errors(e.errors()))

    normalised: Dict[str, Any] = {}
    for field in SECTION_FIELDS:
        value = getattr(content, field)
        if isinstance(value, BaseModel):
            value = value.model_dump(by_alias=True, exclude_none=True)
        elif isinstance(value, list):
            value = [item.model_dump(by_alias=True, exclude_none=True) for item in value]
        normalised[field] = value
    return normalised


def ensure_terms(terms_agreement: Optional[bool]) -> None:
    if terms_agreement is not True:
        raise ValidationFailedError(
            "You must agree to the terms",
            details=[{
                "field": "termsAgreement",
                "message": "You must agree to the terms",
                "type": "value_error",
            }],
        )


async def _vacancy_or_404(db: AsyncSession, vacancy_id: str) -> Vacancy:
    vacancy = await vacancy_service.get_vacancy(db, vacancy_id)
    if vacancy is None:
        raise NotFoundError("Vacancy not found")
    return vacancy


def ensure_accepting(vacancy: Vacancy) -> None:
    if vacancy.status != VacancyStatus.ACTIVE.value:
        raise ConflictError("This vacancy is not accepting applications")


def _overlay(application: Application, sections: Dict[str, Any]) -> Dict[str, Any]:
    """Stored sections with the ones present in ``sections`` replaced."""
    merged = sections_of(application)
    merged.update({k: v for k, v in sections.items() if k in SECTION_FIELDS})
    return merged


# ==================== Drafts ==================== #


async def save_draft(
    db: AsyncSession,
    user_id: str,
    vacancy_id: str,
    sections: Dict[str, Any],
    terms_agreement: Optional[bool] = None,
) -> Application:
    """
    Create or update the user's draft for a vacancy. Drafts are not validated.

    A new draft is pre-filled from the user's profile wherever the request
    leaves a section empty.

    Raises:
        NotFoundError: Unknown vacancy
        ConflictError: The user already has a submitted application for it
    """
    vacancy = await _vacancy_or_404(db, vacancy_id)
    cleaned = strip_internal_ids(sections)

    application = await find_active_application(db, user_id, vacancy_id)
    if application is not None and application.status != ApplicationStatus.DRAFT.value:
        raise ConflictError(ALREADY_APPLIED)

    if application is None:
        profile = await profile_service.get_profile(db, user_id)
        content = merge_profile_into_draft(
            sections_of(profile) if profile is not None else None, cleaned
        )
        application = Application(
            user_id=user_id,
            vacancy_id=vacancy_id,
            vacancy_number=vacancy.vacancy_number,
            position=vacancy.position,
            status=ApplicationStatus.DRAFT.value,
        )
        application.apply_sections(content)
        db.add(application)
        logger.info(f"Creating draft for user {user_id} on vacancy {vacancy.vacancy_number}")
    else:
        application.apply_sections(cleaned)
        application.last_updated = now()

    if terms_agreement is not None:
        application.terms_agreement = terms_agreement
    upgrade_sections(application)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(ALREADY_APPLIED)
    await db.refresh(application)
    return application


async def draft_form(db: AsyncSession, user_id: str, vacancy_id: str) -> Dict[str, Any]:
    """
    The form to show for a vacancy: the user's existing draft, or a new one
    pre-filled from the profile.

    Raises:
        NotFoundError: Unknown vacancy
        ConflictError: The user already has a submitted application for it
    """
    await _vacancy_or_404(db, vacancy_id)

    application = await find_active_application(db, user_id, vacancy_id)
    if application is not None:
        if application.status != ApplicationStatus.DRAFT.value:
            raise ConflictError(ALREADY_APPLIED)
        return {
            "application_id": application.id,
            "vacancy_id": vacancy_id,
            "status": application.status,
            "terms_agreement": application.terms_agreement,
            **sections_of(application),
        }

    profile = await profile_service.get_profile(db, user_id)
    prefilled = merge_profile_into_draft(
        sections_of(profile) if profile is not None else None, {}
    )
    return {
        "application_id": None,
        "vacancy_id": vacancy_id,
        "status": ApplicationStatus.DRAFT.value,
        **prefilled,
    }


# ==================== Submission ==================== #


async def _submit(
    db: AsyncSession,
    application: Application,
    actor_id: str,
) -> List[str]:
    """Commit a submitted application and refresh the applicant's profile."""
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(ALREADY_APPLIED)
    await db.refresh(application)

    logger.info(f"Application {application.id} submitted by user {application.user_id}")
    await log_audit_event(
        AuditAction.SUBMIT,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=actor_id,
        details={"vacancy_id": application.vacancy_id, "status": application.status},
    )

    warnings: List[str] = []
    warning = await profile_service.writeback_profile(db, application.user_id, application)
    if warning:
        warnings.append(warning)
        await db.refresh(application)
    return warnings


async def submit_application(
    db: AsyncSession,
    user_id: str,
    vacancy_id: str,
    sections: Dict[str, Any],
    terms_agreement: Optional[bool],
) -> Tuple[Application, List[str]]:
    """
    Submit an application for a vacancy.

    A draft for the same vacancy is updated in place and submitted; without
    one a new record is created.

    Returns:
        (application, warnings)

    Raises:
        NotFoundError: Unknown vacancy
        ConflictError: Vacancy not open, or already applied
        ValidationFailedError: Terms not accepted or content incomplete
    """
    vacancy = await _vacancy_or_404(db, vacancy_id)
    ensure_accepting(vacancy)

    ensure_terms(terms_agreement)
    cleaned = strip_internal_ids(sections)

    application = await find_active_application(db, user_id, vacancy_id)
    if application is not None:
        ensure_submittable(application.status)
        content = validate_content(_overlay(application, cleaned))
    else:
        content = validate_content(cleaned)
        application = Application(
            user_id=user_id,
            vacancy_id=vacancy_id,
            vacancy_number=vacancy.vacancy_number,
            position=vacancy.position,
        )
        db.add(application)

    submitted_at = now()
    application.apply_sections(content)
    application.terms_agreement = True
    application.status = ApplicationStatus.SUBMITTED.value
    application.submitted_at = submitted_at
    application.last_updated = submitted_at
    upgrade_sections(application)

    warnings = await _submit(db, application, user_id)
    return application, warnings


# ==================== Edit & withdraw ==================== #


async def update_application(
    db: AsyncSession,
    application_id: str,
    actor: User,
    sections: Dict[str, Any],
    terms_agreement: Optional[bool] = None,
    submit: bool = False,
) -> Tuple[Application, List[str]]:
    """
    Replace content sections of an editable application.

    The result must validate against the complete schema. ``submit`` on a
    draft performs the submit transition in the same request.

    Raises:
        NotFoundError, ForbiddenError: See ``get_application_for``
        ConflictError: Application no longer editable, or submitting to a
            vacancy that is not accepting applications
        ValidationFailedError: Content incomplete, or terms missing on submit
    """
    application = await get_application_for(db, application_id, actor)
    ensure_editable(application.status)

    content = validate_content(_overlay(application, strip_internal_ids(sections)))
    submitting = submit and application.status == ApplicationStatus.DRAFT.value
    if submitting:
        ensure_terms(terms_agreement if terms_agreement is not None else application.terms_agreement)
        ensure_accepting(await _vacancy_or_404(db, application.vacancy_id))

    updated_at = now()
    application.apply_sections(content)
    application.last_updated = updated_at
    if terms_agreement is not None:
        application.terms_agreement = terms_agreement

    if submitting:
        application.terms_agreement = True
        application.status = ApplicationStatus.SUBMITTED.value
        application.submitted_at = updated_at
        upgrade_sections(application)
        warnings = await _submit(db, application, actor.id)
        return application, warnings

    upgrade_sections(application)
    await db.commit()
    await db.refresh(application)
    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=actor.id,
        details={"status": application.status},
    )
    return application, []


async def withdraw_application(db: AsyncSession, application_id: str, actor: User) -> Application:
    """
    Withdraw an application. ``withdrawn`` is terminal.

    Raises:
        NotFoundError, ForbiddenError: See ``get_application_for``
        ConflictError: Already withdrawn or past the withdrawable states
    """
    application = await get_application_for(db, application_id, actor)
    previous = application.status
    ensure_withdrawable(previous)

    application.status = ApplicationStatus.WITHDRAWN.value
    application.last_updated = now()
    await db.commit()
    await db.refresh(application)

    logger.info(f"Application {application.id} withdrawn (was {previous})")
    await log_audit_event(
        AuditAction.WITHDRAW,
        ResourceType.APPLICATION,
        resource_id=application.id,
        user_id=actor.id,
        details={"from": previous, "to": application.status},
    )
    return application
