"""Reusable applicant profile."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.profiles import LIST_SECTIONS, SECTION_FIELDS
from core.utils.datetime import now
from database.engine import Base
from database.models.users import new_id

PROFILE_SCHEMA_VERSION = 1


class SectionsMixin:
    """
    Document sections shared by profiles and applications.

    Each section is JSON; inner keys stay in the camelCase clients send.
    """

    personal_info: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    education: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    current_experience: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    previous_experience: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    training: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    languages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    additional_info: Mapped[str | None] = mapped_column(Text, nullable=True)

    def apply_sections(self, sections: dict[str, Any]) -> None:
        """Copy the known sections of ``sections`` onto the record."""
        for field in SECTION_FIELDS:
            if field in sections:
                setattr(self, field, sections[field])


def normalize_sections(record: Any) -> None:
    """Give every list section a list and every object section a dict or None."""
    for field in SECTION_FIELDS:
        value = getattr(record, field, None)
        if field in LIST_SECTIONS:
            if value is None:
                setattr(record, field, [])
            elif not isinstance(value, list):
                setattr(record, field, [value])
        elif field != "additional_info" and value is not None and not isinstance(value, dict):
            setattr(record, field, None)


class UserProfile(SectionsMixin, Base):
    """
    Profile data reused to pre-fill applications. One per user, created on
    first save and refreshed whenever an application is submitted.
    """

    __tablename__: str = "userProfiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    schema_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=PROFILE_SCHEMA_VERSION
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, onupdate=now
    )

    def __repr__(self) -> str:
        return f"<UserProfile(id={self.id}, user_id={self.user_id})>"


def upgrade_sections(profile: UserProfile) -> UserProfile:
    """Bring a stored profile up to the current section layout."""
    normalize_sections(profile)
    if (profile.schema_version or 0) < PROFILE_SCHEMA_VERSION:
        profile.schema_version = PROFILE_SCHEMA_VERSION
    return profile
