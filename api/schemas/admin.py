"""Schemas for the admin query surface."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from api.schemas.applications import ApplicationResponse
from api.schemas.common import CamelModel, PaginatedResponse
from api.schemas.profiles import ProfileResponse
from api.schemas.users import UserResponse
from api.schemas.vacancies import VacancyResponse, VacancySummary


class ApplicantSummary(CamelModel):
    id: str
    name: str
    email: str


class AdminApplicationItem(CamelModel):
    """Row of the admin application listing."""

    id: str
    applicant_name: str
    applicant_email: str
    user: Optional[ApplicantSummary] = None
    vacancy: Optional[VacancySummary] = None
    vacancy_number: Optional[str] = None
    position: Optional[str] = None
    status: str
    submitted_at: Optional[datetime] = None
    created_at: datetime
    last_updated: datetime


class AdminApplicationList(PaginatedResponse[AdminApplicationItem]):
    positions: list[str] = Field(
        default_factory=list,
        description="Distinct positions of the selected vacancy number",
    )


class AdminApplicationDetail(ApplicationResponse):
    admin_notes: Optional[str] = None
    user: Optional[UserResponse] = None
    vacancy: Optional[VacancyResponse] = None
    user_profile: Optional[ProfileResponse] = None


class AdminStatusUpdateRequest(CamelModel):
    status: str = Field(min_length=1)
    notes: Optional[str] = None


class RecentApplication(CamelModel):
    id: str
    applicant_name: str
    applicant_email: Optional[str] = None
    position: Optional[str] = None
    vacancy_number: Optional[str] = None
    status: str
    created_at: datetime


class MonthlyCount(CamelModel):
    month: str
    count: int


class DashboardStats(CamelModel):
    total_users: int
    total_vacancies: int
    total_applications: int
    pending_applications: int
    recent_applications: list[RecentApplication]
    monthly_applications: list[MonthlyCount]
