"""
Vacancy service functions.

Covers the public vacancy catalogue, the admin vacancy CRUD and the
``WB/EXT/NNNN/YYYY`` number ledger.
"""

from datetime import date
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import ConflictError, NotFoundError, ValidationFailedError
from core.numbering import format_vacancy_number, next_sequence, year_pattern
from core.security import AuditAction, ResourceType, log_audit_event
from core.utils.datetime import now
from database.models.vacancies import (
    Vacancy,
    VacancyNumber,
    VacancyNumberStatus,
    VacancyStatus,
)

logger = logging.getLogger(__name__)

# Filter value meaning "no filter"
ALL = "all"


# ==================== Public catalogue ==================== #


async def list_public_vacancies(
    db: AsyncSession,
    search: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
) -> List[Vacancy]:
    """
    Active vacancies, newest first.

    Args:
        search: Case-insensitive substring of position or purpose
        category: Department, ``all`` for any
        location: Place of work, ``all`` for any
    """
    stmt = select(Vacancy).where(Vacancy.status == VacancyStatus.ACTIVE.value)

    if category and category != ALL:
        stmt = stmt.where(Vacancy.department == category)
    if location and location != ALL:
        stmt = stmt.where(Vacancy.place_of_work == location)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Vacancy.position).like(pattern),
                func.lower(Vacancy.purpose).like(pattern),
            )
        )

    result = await db.execute(stmt.order_by(Vacancy.created_at.desc()))
    return list(result.scalars().all())


async def get_vacancy(db: AsyncSession, vacancy_id: str) -> Optional[Vacancy]:
    result = await db.execute(select(Vacancy).where(Vacancy.id == vacancy_id))
    return result.scalar_one_or_none()


async def get_public_vacancy(db: AsyncSession, vacancy_id: str) -> Vacancy:
    """
    Raises:
        NotFoundError: Unknown vacancy, or one that is still a draft
    """
    vacancy = await get_vacancy(db, vacancy_id)
    if vacancy is None or vacancy.status == VacancyStatus.DRAFT.value:
        raise NotFoundError("Vacancy not found")
    return vacancy


# ==================== Number ledger ==================== #


async def _numbers_for_year(db: AsyncSession, year: int) -> List[str]:
    result = await db.execute(
        select(VacancyNumber.vacancy_number).where(
            VacancyNumber.vacancy_number.like(year_pattern(year))
        )
    )
    return list(result.scalars().all())


async def reserve_number(
    db: AsyncSession,
    start_date: date,
    end_date: date,
    year: Optional[int] = None,
    vacancy_number: Optional[str] = None,
    acting_user_id: Optional[str] = None,
) -> VacancyNumber:
    """
    Reserve a vacancy number in the ledger with status ``draft``.

    Without an explicit number the next sequence for ``year`` (default: the
    current year) is used. The unique constraint on the number decides
    between concurrent reservations; the loser recomputes and retries.

    Raises:
        ValidationFailedError: End date before start date
        ConflictError: Explicit number already taken, or retries exhausted
    """
    if end_date < start_date:
        raise ValidationFailedError("End date must not be before start date")

    attempts = 1 if vacancy_number else max(1, settings.vacancy_number_retries)
    target_year = year or now().year

    for attempt in range(1, attempts + 1):
        number = vacancy_number
        if number is None:
            sequence = next_sequence(await _numbers_for_year(db, target_year), target_year)
            try:
                number = format_vacancy_number(sequence, target_year)
            except ValueError:
                raise ConflictError(f"No vacancy numbers left for {target_year}")

        entry = VacancyNumber(
            vacancy_number=number,
            start_date=start_date,
            end_date=end_date,
            status=VacancyNumberStatus.DRAFT.value,
        )
        db.add(entry)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if vacancy_number:
                raise ConflictError(f"Vacancy number {vacancy_number} already exists")
            logger.warning(
                f"Vacancy number {number} taken concurrently (attempt {attempt}/{attempts})"
            )
            continue

        await db.refresh(entry)
        logger.info(f"Reserved vacancy number {entry.vacancy_number}")
        await log_audit_event(
            AuditAction.RESERVE_NUMBER,
            ResourceType.VACANCY_NUMBER,
            resource_id=entry.id,
            user_id=acting_user_id,
            details={"vacancy_number": entry.vacancy_number},
        )
        return entry

    raise ConflictError("Could not reserve a vacancy number, please try again")


async def list_numbers(db: AsyncSession, status: Optional[str] = None) -> List[VacancyNumber]:
    """Ledger entries, newest first."""
    stmt = select(VacancyNumber)
    if status:
        stmt = stmt.where(VacancyNumber.status == status)
    result = await db.execute(stmt.order_by(VacancyNumber.created_at.desc()))
    return list(result.scalars().all())


# ==================== Admin vacancy CRUD ==================== #


async def list_all_vacancies(db: AsyncSession, status: Optional[str] = None) -> List[Vacancy]:
    stmt = select(Vacancy)
    if status and status != ALL:
        stmt = stmt.where(Vacancy.status == status)
    result = await db.execute(stmt.order_by(Vacancy.created_at.desc()))
    return list(result.scalars().all())


async def create_vacancy(
    db: AsyncSession,
    details: Dict[str, Any],
    created_by: Optional[str] = None,
) -> Vacancy:
    """
    Create a vacancy from a reserved number and mark the number used.

    The ledger flip is a conditional update, so two creates racing for the
    same number cannot both succeed.

    Raises:
        NotFoundError: Number not in the ledger
        ConflictError: Number already used
    """
    number = details["vacancy_number"]
    result = await db.execute(
        select(VacancyNumber).where(VacancyNumber.vacancy_number == number)
    )
    entry = result.scalar_one_or_none()
    if entry is None:
        raise NotFoundError("Vacancy number not found")
    if entry.status != VacancyNumberStatus.DRAFT.value:
        raise ConflictError(f"Vacancy number {number} has already been used")

    flipped = await db.execute(
        update(VacancyNumber)
        .where(
            VacancyNumber.vacancy_number == number,
            VacancyNumber.status == VacancyNumberStatus.DRAFT.value,
        )
        .values(status=VacancyNumberStatus.USED.value, updated_at=now())
        .execution_options(synchronize_session=False)
    )
    if flipped.rowcount != 1:
        await db.rollback()
        raise ConflictError(f"Vacancy number {number} has already been used")

    vacancy = Vacancy(**details, created_by=created_by)
    db.add(vacancy)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"A vacancy with number {number} already exists")
    await db.refresh(vacancy)

    logger.info(f"Created vacancy {vacancy.vacancy_number} ({vacancy.position})")
    await log_audit_event(
        AuditAction.CREATE,
        ResourceType.VACANCY,
        resource_id=vacancy.id,
        user_id=created_by,
        details={"vacancy_number": vacancy.vacancy_number, "status": vacancy.status},
    )
    return vacancy


async def get_vacancy_or_404(db: AsyncSession, vacancy_id: str) -> Vacancy:
    vacancy = await get_vacancy(db, vacancy_id)
    if vacancy is None:
        raise NotFoundError("Vacancy not found")
    return vacancy


async def update_vacancy(
    db: AsyncSession,
    vacancy_id: str,
    changes: Dict[str, Any],
    acting_user_id: Optional[str] = None,
) -> Vacancy:
    """
    Apply a partial update. The vacancy number is immutable.

    Raises:
        NotFoundError: Unknown vacancy
        ValidationFailedError: Resulting end date before start date
    """
    vacancy = await get_vacancy_or_404(db, vacancy_id)
    changes = {k: v for k, v in changes.items() if k != "vacancy_number"}

    start = changes.get("start_date") or vacancy.start_date
    end = changes.get("end_date") or vacancy.end_date
    if end < start:
        raise ValidationFailedError("End date must not be before start date")

    for field, value in changes.items():
        setattr(vacancy, field, value)
    await db.commit()
    await db.refresh(vacancy)

    await log_audit_event(
        AuditAction.UPDATE,
        ResourceType.VACANCY,
        resource_id=vacancy.id,
        user_id=acting_user_id,
        details={"fields": sorted(changes)},
    )
    return vacancy


async def delete_vacancy(db: AsyncSession, vacancy_id: str, acting_user_id: Optional[str] = None) -> None:
    """
    Delete a vacancy. Its ledger entry stays ``used``.

    Raises:
        NotFoundError: Unknown vacancy
    """
    vacancy = await get_vacancy_or_404(db, vacancy_id)
    number = vacancy.vacancy_number
    await db.delete(vacancy)
    await db.commit()

    logger.info(f"Deleted vacancy {number}")
    await log_audit_event(
        AuditAction.DELETE,
        ResourceType.VACANCY,
        resource_id=vacancy_id,
        user_id=acting_user_id,
        details={"vacancy_number": number},
    )
