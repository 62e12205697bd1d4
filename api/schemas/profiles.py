"""Profile schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.schemas.applications import SectionDict, SectionList
from api.schemas.common import CamelModel


class ProfileUpdateRequest(CamelModel):
    """
    Profile sections to save. Sections that are left out keep their stored
    value; client ids (``_id``, ``userId``) are dropped before saving.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    personal_info: Optional[SectionDict] = None
    education: Optional[SectionList] = None
    current_experience: Optional[SectionDict] = None
    previous_experience: Optional[SectionList] = None
    training: Optional[SectionList] = None
    languages: Optional[SectionList] = None
    additional_info: Optional[str] = None

    def sections(self) -> dict[str, Any]:
        return self.model_dump(include=self.model_fields_set, by_alias=False)


class ProfileCompleteness(CamelModel):
    personal: bool
    education: bool
    current_work: bool
    previous_work: bool
    training: bool
    languages: bool
    overall: int = Field(ge=0, le=100)


class ProfileResponse(CamelModel):
    user_id: str
    personal_info: Optional[SectionDict] = None
    education: list[SectionDict] = Field(default_factory=list)
    current_experience: Optional[SectionDict] = None
    previous_experience: list[SectionDict] = Field(default_factory=list)
    training: list[SectionDict] = Field(default_factory=list)
    languages: list[SectionDict] = Field(default_factory=list)
    additional_info: Optional[str] = None
    last_updated: Optional[datetime] = None
    completeness: ProfileCompleteness
