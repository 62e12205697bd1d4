"""Vacancy and vacancy number schemas."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from api.schemas.common import CamelModel
from core.numbering import VACANCY_NUMBER_PATTERN

VacancyStatusLiteral = Literal["draft", "active", "closed"]


def _check_number(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not VACANCY_NUMBER_PATTERN.match(value):
        raise ValueError("Vacancy number must look like WB/EXT/0001/2024")
    return value


# ==================== Vacancy numbers ==================== #


class VacancyNumberRequest(CamelModel):
    """Reserve the next number, or a specific one."""

    start_date: date
    end_date: date
    year: Optional[int] = Field(default=None, ge=2000, le=9999)
    vacancy_number: Optional[str] = None

    @field_validator("vacancy_number")
    @classmethod
    def valid_number(cls, v: Optional[str]) -> Optional[str]:
        return _check_number(v)


class VacancyNumberResponse(CamelModel):
    id: str
    vacancy_number: str
    start_date: date
    end_date: date
    status: str
    created_at: datetime
    updated_at: datetime


# ==================== Vacancies ==================== #


class VacancyCreateRequest(CamelModel):
    vacancy_number: str
    position: str = Field(min_length=1, max_length=255)
    department: Optional[str] = Field(default=None, max_length=100)
    place_of_work: str = Field(min_length=1, max_length=255)
    required_number: int = Field(ge=1)
    salary: str = Field(min_length=1, max_length=100)
    education: str = Field(min_length=1)
    experience: str = Field(min_length=1)
    purpose: str = Field(min_length=1)
    responsibilities: str = Field(min_length=1)
    start_date: date
    end_date: date
    status: VacancyStatusLiteral = "draft"

    @field_validator("vacancy_number")
    @classmethod
    def valid_number(cls, v: str) -> str:
        return _check_number(v)

    @model_validator(mode="after")
    def end_not_before_start(self) -> "VacancyCreateRequest":
        if self.end_date < self.start_date:
            raise ValueError("End date must not be before start date")
        return self


class VacancyUpdateRequest(CamelModel):
    """Partial update. The vacancy number cannot be changed."""

    position: Optional[str] = Field(default=None, min_length=1, max_length=255)
    department: Optional[str] = Field(default=None, max_length=100)
    place_of_work: Optional[str] = Field(default=None, min_length=1, max_length=255)
    required_number: Optional[int] = Field(default=None, ge=1)
    salary: Optional[str] = Field(default=None, min_length=1, max_length=100)
    education: Optional[str] = None
    experience: Optional[str] = None
    purpose: Optional[str] = None
    responsibilities: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[VacancyStatusLiteral] = None

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "VacancyUpdateRequest":
        # Leaving a field out keeps it; only the department may be cleared
        cleared = sorted(
            field for field in self.model_fields_set
            if field != "department" and getattr(self, field) is None
        )
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


class VacancyResponse(CamelModel):
    id: str
    vacancy_number: str
    position: str
    department: Optional[str] = None
    place_of_work: str
    required_number: int
    salary: str
    education: str
    experience: str
    purpose: str
    responsibilities: str
    start_date: date
    end_date: date
    status: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class VacancySummary(CamelModel):
    """Vacancy fields shown next to an application."""

    id: str
    vacancy_number: str
    position: str
    department: Optional[str] = None
    place_of_work: str
    status: str
