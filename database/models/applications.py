"""
Application Models

Job applications from draft to final decision. The document sections are
shared with the applicant profile (see ``database.models.profiles``).
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from core.lifecycle import ApplicationStatus
from core.utils.datetime import now
from database.engine import Base
from database.models.profiles import SectionsMixin, normalize_sections
from database.models.users import new_id

APPLICATION_SCHEMA_VERSION = 1


class Application(SectionsMixin, Base):
    """
    One applicant's application to one vacancy.

    At most one non-withdrawn application exists per (user, vacancy); the
    partial unique index below backs the check done by the service layer.
    """

    __tablename__: str = "applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    vacancy_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("vacancies.id", ondelete="CASCADE"), nullable=False
    )

    # Denormalised from the vacancy for listings
    vacancy_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)

    terms_agreement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApplicationStatus.DRAFT.value
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    schema_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=APPLICATION_SCHEMA_VERSION
    )

    # Timestamps
    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, onupdate=now
    )

    # Indexes and constraints
    __table_args__ = (
        Index(
            "uq_application_user_vacancy_active",
            "user_id",
            "vacancy_id",
            unique=True,
            postgresql_where=text("status <> 'withdrawn'"),
            sqlite_where=text("status <> 'withdrawn'"),
        ),
        Index("idx_application_user_updated", "user_id", "last_updated"),
        Index("idx_application_vacancy", "vacancy_id"),
        Index("idx_application_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status})>"


def upgrade_sections(application: Application) -> Application:
    """Bring a stored application up to the current section layout."""
    normalize_sections(application)
    if application.status in ("pending",):
        # Legacy label written by older clients
        application.status = ApplicationStatus.DRAFT.value
    if (application.schema_version or 0) < APPLICATION_SCHEMA_VERSION:
        application.schema_version = APPLICATION_SCHEMA_VERSION
    return application
