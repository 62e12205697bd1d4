"""
Admin vacancy management.

Vacancy numbers are reserved in the ledger first and consumed when a
vacancy is created from them.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_admin_user
from api.schemas.common import MessageResponse
from api.schemas.vacancies import (
    VacancyCreateRequest,
    VacancyNumberRequest,
    VacancyNumberResponse,
    VacancyResponse,
    VacancyUpdateRequest,
)
from api.services import vacancies as vacancy_service
from database.engine import get_db
from database.models.users import User

router = APIRouter(prefix="/admin/vacancies", tags=["admin"])


@router.post(
    "/create-vacancy-number",
    response_model=VacancyNumberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reserve a vacancy number",
    description="Reserves WB/EXT/NNNN/YYYY. Without an explicit number the next free sequence is used.",
)
async def create_vacancy_number(
    request: VacancyNumberRequest,
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.reserve_number(
        db,
        request.start_date,
        request.end_date,
        year=request.year,
        vacancy_number=request.vacancy_number,
        acting_user_id=admin.id,
    )


@router.get("/list-numbers", response_model=List[VacancyNumberResponse], summary="List reserved numbers")
async def list_vacancy_numbers(
    status_filter: Optional[str] = Query(None, alias="status", description="draft or used"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.list_numbers(db, status=status_filter)


@router.get("", response_model=List[VacancyResponse], summary="List all vacancies")
async def list_vacancies(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.list_all_vacancies(db, status=status_filter)


@router.post(
    "",
    response_model=VacancyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a vacancy",
    description="The vacancy number must be reserved and not yet used.",
)
async def create_vacancy(
    request: VacancyCreateRequest,
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.create_vacancy(db, request.model_dump(), created_by=admin.id)


@router.get("/{vacancy_id}", response_model=VacancyResponse, summary="Get a vacancy")
async def get_vacancy(
    vacancy_id: str = Path(..., description="Vacancy ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.get_vacancy_or_404(db, vacancy_id)


@router.patch("/{vacancy_id}", response_model=VacancyResponse, summary="Update a vacancy")
async def update_vacancy(
    request: VacancyUpdateRequest,
    vacancy_id: str = Path(..., description="Vacancy ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.update_vacancy(
        db, vacancy_id, request.model_dump(exclude_unset=True), acting_user_id=admin.id
    )


@router.delete("/{vacancy_id}", response_model=MessageResponse, summary="Delete a vacancy")
async def delete_vacancy(
    vacancy_id: str = Path(..., description="Vacancy ID"),
    admin: User = Depends(require_admin_user),
    db: AsyncSession = Depends(get_db),
):
    await vacancy_service.delete_vacancy(db, vacancy_id, acting_user_id=admin.id)
    return MessageResponse(message="Vacancy deleted successfully")
