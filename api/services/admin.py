"""
Admin query surface.

Read-mostly views that join applications with their applicant and vacancy,
the admin status update, and dashboard statistics.
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.services import profiles as profile_service
from core.errors import NotFoundError
from core.lifecycle import ApplicationStatus, ensure_review_transition, normalize_status
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import as_utc, month_label, now, shift_months
from database.models.applications import Application, upgrade_sections
from database.models.users import User, UserRole
from database.models.vacancies import Vacancy

logger = logging.getLogger(__name__)

RECENT_APPLICATIONS = 5
HISTOGRAM_MONTHS = 6


def applicant_name(application: Application, user: Optional[User]) -> str:
    """First and last name from the application, falling back to the account name."""
    personal = application.personal_info or {}
    name = " ".join(
        part.strip() for part in (personal.get("firstName") or "", personal.get("lastName") or "")
        if part and part.strip()
    )
    if name:
        return name
    if user is not None and user.name:
        return user.name
    return "Unknown"


def applicant_email(application: Application, user: Optional[User]) -> str:
    personal = application.personal_info or {}
    return personal.get("email") or (user.email if user is not None else "") or ""


def _list_item(application: Application, user: Optional[User], vacancy: Optional[Vacancy]) -> Dict[str, Any]:
    return {
        "id": application.id,
        "applicant_name": applicant_name(application, user),
        "applicant_email": applicant_email(application, user),
        "user": {"id": user.id, "name": user.name, "email": user.email} if user is not None else None,
        "vacancy": vacancy,
        "vacancy_number": application.vacancy_number or (vacancy.vacancy_number if vacancy else None),
        "position": application.position or (vacancy.position if vacancy else None),
        "status": application.status,
        "submitted_at": application.submitted_at,
        "created_at": application.created_at,
        "last_updated": application.last_updated,
    }


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


# ==================== Applications ==================== #


async def list_admin_applications(
    db: AsyncSession,
    pagination: PaginationParams,
    vacancy_number: Optional[str] = None,
    position: Optional[str] = None,
    applied_date: Optional[date] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Applications joined with applicant and vacancy, newest first.

    Args:
        vacancy_number: Only applications for this vacancy number
        position: Only applied together with ``vacancy_number``
        applied_date: Calendar day of submission (creation for drafts)
        search: Case-insensitive substring of applicant name or email
        status: Lifecycle state or alias

    Returns:
        Page of items plus ``positions``, the distinct positions of the
        selected vacancy number
    """
    stmt = (
        select(Application, User, Vacancy)
        .outerjoin(User, User.id == Application.user_id)
        .outerjoin(Vacancy, Vacancy.id == Application.vacancy_id)
    )

    positions: List[str] = []
    if vacancy_number:
        stmt = stmt.where(
            or_(
                Vacancy.vacancy_number == vacancy_number,
                Application.vacancy_number == vacancy_number,
            )
        )
        result = await db.execute(
            select(Vacancy.position)
            .where(Vacancy.vacancy_number == vacancy_number)
            .distinct()
        )
        positions = sorted(p for p in result.scalars().all() if p)
        if position:
            stmt = stmt.where(or_(Vacancy.position == position, Application.position == position))

    wanted = normalize_status(status)
    if wanted is not None:
        stmt = stmt.where(Application.status == wanted.value)

    if applied_date:
        start, end = _day_bounds(applied_date)
        applied_at = func.coalesce(Application.submitted_at, Application.created_at)
        stmt = stmt.where(applied_at >= start, applied_at < end)

    result = await db.execute(stmt.order_by(Application.created_at.desc()))
    rows = result.all()

    # Names live inside the personal info document, so search is applied here
    items = [_list_item(app, user, vacancy) for app, user, vacancy in rows]
    if search:
        needle = search.strip().lower()
        items = [
            item for item in items
            if needle in item["applicant_name"].lower() or needle in item["applicant_email"].lower()
        ]

    total = len(items)
    page_items = items[pagination.offset:pagination.offset + pagination.page_size]
    return {
        "items": page_items,
        "total": total,
        "page": pagination.page,
        "page_size": pagination.page_size,
        "total_pages": (total + pagination.page_size - 1) // pagination.page_size,
        "positions": positions,
    }


async def _joined(db: AsyncSession, application_id: str):
    result = await db.execute(
        select(Application, User, Vacancy)
        .outerjoin(User, User.id == Application.user_id)
        .outerjoin(Vacancy, Vacancy.id == Application.vacancy_id)
        .where(Application.id == application_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Application not found")
    application, user, vacancy = row
    upgrade_sections(application)
    return application, user, vacancy


async def get_admin_application(db: AsyncSession, application_id: str) -> Dict[str, Any]:
    """
    Application with its applicant, vacancy and the applicant's profile.

    Raises:
        NotFoundError: Unknown application
    """
    application, user, vacancy = await _joined(db, application_id)
    profile = await profile_service.get_profile(db, application.user_id)
    return {
        "application": application,
        "user": user,
        "vacancy": vacancy,
        "user_profile": profile_service.profile_view(application.user_id, profile) if profile else None,
    }


async def update_application_status(
    db: AsyncSession,
    application_id: str,
    status: str,
    notes: Optional[str],
    admin: User,
) -> Dict[str, Any]:
    """
    Move an application to a review state.

    Raises:
        NotFoundError: Unknown application
        ValidationFailedError: Not a review state
        ConflictError: Application is a draft or withdrawn
    """
    application, _, _ = await _joined(db, application_id)
    previous = application.status
    target = ensure_review_transition(previous, status)

    application.status = target.value
    if notes is not None:
        application.admin_notes = notes
    application.last_updated = now()
    await db.commit()

    logger.info(f"Application {application_id} moved from {previous} to {target.value}")
    await log_audit_event(
        AuditAction.STATUS_CHANGE,
        ResourceType.APPLICATION,
        resource_id=application_id,
        user_id=admin.id,
        details={"from": previous, "to": target.value, "notes": bool(notes)},
    )
    return await get_admin_application(db, application_id)


# ==================== Dashboard ==================== #


async def monthly_histogram(db: AsyncSession, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Application counts per (year, month) of creation over the trailing six
    months, oldest first. Months without applications are omitted.
    """
    today = today or now().date()
    first_year, first_month = shift_months(today.year, today.month, -(HISTOGRAM_MONTHS - 1))
    cutoff = datetime(first_year, first_month, 1, tzinfo=timezone.utc)

    result = await db.execute(
        select(Application.created_at).where(Application.created_at >= cutoff)
    )
    counts: Counter = Counter()
    for created_at in result.scalars().all():
        created_at = as_utc(created_at)
        counts[(created_at.year, created_at.month)] += 1

    return [
        {"month": month_label(year, month), "count": counts[(year, month)]}
        for year, month in sorted(counts)
    ]


async def dashboard_stats(db: AsyncSession) -> Dict[str, Any]:
    total_users = await db.scalar(
        select(func.count()).select_from(User).where(User.role == UserRole.USER.value)
    )
    total_vacancies = await db.scalar(select(func.count()).select_from(Vacancy))
    total_applications = await db.scalar(select(func.count()).select_from(Application))
    # "pending" is the legacy label for drafts
    pending_applications = await db.scalar(
        select(func.count())
        .select_from(Application)
        .where(Application.status == ApplicationStatus.DRAFT.value)
    )

    result = await db.execute(
        select(Application, User)
        .outerjoin(User, User.id == Application.user_id)
        .order_by(Application.created_at.desc())
        .limit(RECENT_APPLICATIONS)
    )
    recent = [
        {
            "id": application.id,
            "applicant_name": applicant_name(application, user),
            "applicant_email": applicant_email(application, user) or None,
            "position": application.position,
            "vacancy_number": application.vacancy_number,
            "status": application.status,
            "created_at": application.created_at,
        }
        for application, user in result.all()
    ]

    return {
        "total_users": total_users or 0,
        "total_vacancies": total_vacancies or 0,
        "total_applications": total_applications or 0,
        "pending_applications": pending_applications or 0,
        "recent_applications": recent,
        "monthly_applications": await monthly_histogram(db),
    }
