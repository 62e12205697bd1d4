"""Public vacancy catalogue."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.vacancies import VacancyResponse
from api.services import vacancies as vacancy_service
from database.engine import get_db

router = APIRouter(prefix="/vacancies", tags=["vacancies"])


@router.get(
    "",
    response_model=List[VacancyResponse],
    summary="List open vacancies",
    description="Active vacancies, newest first. `all` disables a filter.",
)
async def list_vacancies(
    search: Optional[str] = Query(None, description="Matches position or purpose"),
    category: Optional[str] = Query(None, description="Department"),
    location: Optional[str] = Query(None, description="Place of work"),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.list_public_vacancies(
        db, search=search, category=category, location=location
    )


@router.get("/{vacancy_id}", response_model=VacancyResponse, summary="Get a vacancy")
async def get_vacancy(
    vacancy_id: str = Path(..., description="Vacancy ID"),
    db: AsyncSession = Depends(get_db),
):
    return await vacancy_service.get_public_vacancy(db, vacancy_id)
