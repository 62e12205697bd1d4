"""
Application schemas.

The section models pin the shape of the JSON sections stored on applications
and profiles. Drafts are accepted as loose dictionaries; the section models
are enforced when an application is submitted or edited.
"""

from datetime import date, datetime
from typing import Any, Literal, Optional, Union

from pydantic import ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from api.schemas.common import CamelModel
from core.profiles import is_empty

Proficiency = Literal["native", "fluent", "advanced", "intermediate", "basic"]

SectionDict = dict[str, Any]
SectionList = Union[list[SectionDict], SectionDict]


def parse_client_date(value: str) -> datetime:
    """Parse the ISO dates and datetimes clients send for section dates."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return datetime.combine(date.fromisoformat(text[:10]), datetime.min.time())


def _check_date(value: str) -> str:
    try:
        parse_client_date(value)
    except ValueError:
        raise ValueError("Please enter a valid date")
    return value


# ==================== Sections ==================== #


class SectionModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class PersonalInfo(SectionModel):
    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)
    email: EmailStr
    phone: str = Field(min_length=10)
    address: str = Field(min_length=5)
    city: str = Field(min_length=2)
    resume_url: Optional[str] = None


class EducationEntry(SectionModel):
    institution: str = Field(min_length=2)
    degree: str = Field(min_length=2)
    field_of_study: str = Field(min_length=2)
    graduation_year: str = Field(pattern=r"^\d{4}$")
    description: Optional[str] = None


class CurrentExperience(SectionModel):
    company: str = Field(min_length=2)
    position: str = Field(min_length=2)
    start_date: str
    current_salary: Optional[str] = None
    responsibilities: str = Field(min_length=10)

    @field_validator("start_date")
    @classmethod
    def valid_start_date(cls, v: str) -> str:
        return _check_date(v)


class PreviousExperienceEntry(SectionModel):
    company: str = Field(min_length=2)
    position: str = Field(min_length=2)
    start_date: str
    end_date: str
    responsibilities: str = Field(min_length=10)

    @field_validator("start_date", "end_date")
    @classmethod
    def valid_dates(cls, v: str) -> str:
        return _check_date(v)

    @model_validator(mode="after")
    def end_after_start(self) -> "PreviousExperienceEntry":
        start = parse_client_date(self.start_date)
        end = parse_client_date(self.end_date)
        if start.tzinfo is None or end.tzinfo is None:
            start, end = start.replace(tzinfo=None), end.replace(tzinfo=None)
        if end <= start:
            raise ValueError("End date must be after start date")
        return self


class TrainingEntry(SectionModel):
    name: str = Field(min_length=2)
    provider: str = Field(min_length=2)
    completion_date: str
    expiry_date: Optional[str] = None
    description: Optional[str] = None

    @field_validator("completion_date")
    @classmethod
    def valid_completion_date(cls, v: str) -> str:
        return _check_date(v)

    @field_validator("expiry_date")
    @classmethod
    def optional_date(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        return _check_date(v)


class LanguageEntry(SectionModel):
    language: str = Field(min_length=2)
    proficiency: Proficiency


class CompleteApplication(SectionModel):
    """Content an application must carry to be submitted."""

    personal_info: PersonalInfo
    education: list[EducationEntry] = Field(min_length=1)
    current_experience: Optional[CurrentExperience] = None
    previous_experience: list[PreviousExperienceEntry] = Field(default_factory=list)
    training: list[TrainingEntry] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(min_length=1)
    additional_info: Optional[str] = None

    @field_validator("current_experience", mode="before")
    @classmethod
    def blank_section_is_absent(cls, v: Any) -> Any:
        # Forms send an object of empty strings when the section is skipped
        if isinstance(v, dict) and all(is_empty(value) for value in v.values()):
            return None
        return v

    @field_validator("previous_experience", "training", mode="before")
    @classmethod
    def none_is_empty_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, dict):
            return [v]
        return v


# ==================== Requests ==================== #


class ApplicationContent(CamelModel):
    """Loose section payload as sent by the multi-step form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    personal_info: Optional[SectionDict] = None
    education: Optional[SectionList] = None
    current_experience: Optional[SectionDict] = None
    previous_experience: Optional[SectionList] = None
    training: Optional[SectionList] = None
    languages: Optional[SectionList] = None
    additional_info: Optional[str] = None
    terms_agreement: Optional[bool] = None

    def sections(self) -> dict[str, Any]:
        """Sections explicitly present in the request, snake_case names."""
        return self.model_dump(
            include=self.model_fields_set - {"terms_agreement", "vacancy_id", "submit"},
            by_alias=False,
        )


class ApplicationSubmitRequest(ApplicationContent):
    vacancy_id: str = Field(min_length=1)


class ApplicationDraftRequest(ApplicationContent):
    vacancy_id: str = Field(min_length=1)


class ApplicationUpdateRequest(ApplicationContent):
    submit: bool = False


# ==================== Responses ==================== #


class ApplicationResponse(CamelModel):
    id: str
    user_id: str
    vacancy_id: str
    vacancy_number: Optional[str] = None
    position: Optional[str] = None
    personal_info: Optional[SectionDict] = None
    education: list[SectionDict] = Field(default_factory=list)
    current_experience: Optional[SectionDict] = None
    previous_experience: list[SectionDict] = Field(default_factory=list)
    training: list[SectionDict] = Field(default_factory=list)
    languages: list[SectionDict] = Field(default_factory=list)
    additional_info: Optional[str] = None
    terms_agreement: bool = False
    status: str
    submitted_at: Optional[datetime] = None
    created_at: datetime
    last_updated: datetime


class ApplicationSummary(CamelModel):
    """Row of the applicant's own application list."""

    id: str
    vacancy_id: str
    vacancy_number: Optional[str] = None
    position: Optional[str] = None
    status: str
    submitted_at: Optional[datetime] = None
    created_at: datetime
    last_updated: datetime


class ApplicationSubmitResponse(CamelModel):
    message: str
    application_id: str
    status: str
    warnings: list[str] = Field(default_factory=list)


class DraftSaveResponse(CamelModel):
    message: str
    application_id: str


class DraftFormResponse(CamelModel):
    """Existing draft for a vacancy, or a new form pre-filled from the profile."""

    application_id: Optional[str] = None
    vacancy_id: str
    status: str
    personal_info: Optional[SectionDict] = None
    education: list[SectionDict] = Field(default_factory=list)
    current_experience: Optional[SectionDict] = None
    previous_experience: list[SectionDict] = Field(default_factory=list)
    training: list[SectionDict] = Field(default_factory=list)
    languages: list[SectionDict] = Field(default_factory=list)
    additional_info: Optional[str] = None
    terms_agreement: bool = False


class ApplicationUpdateResponse(CamelModel):
    message: str
    application: ApplicationResponse
    warnings: list[str] = Field(default_factory=list)


class WithdrawResponse(CamelModel):
    message: str
    application_id: str
    status: str
