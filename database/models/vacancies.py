"""Vacancies and the vacancy number ledger."""

from datetime import date, datetime
from enum import Enum as PyEnum

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.utils.datetime import now
from database.engine import Base
from database.models.users import new_id


class VacancyStatus(str, PyEnum):
    DRAFT = "draft"  # not visible to applicants
    ACTIVE = "active"  # open for applications
    CLOSED = "closed"


class VacancyNumberStatus(str, PyEnum):
    DRAFT = "draft"  # reserved, no vacancy yet
    USED = "used"  # a vacancy has been created with it


class VacancyNumber(Base):
    """
    Ledger entry for a reserved ``WB/EXT/NNNN/YYYY`` number.

    Rows are never removed, so a number cannot be issued twice.
    """

    __tablename__: str = "vacancynumbers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    vacancy_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VacancyNumberStatus.DRAFT.value
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, onupdate=now
    )

    def __repr__(self) -> str:
        return f"<VacancyNumber({self.vacancy_number}, status={self.status})>"


class Vacancy(Base):
    """A job opening."""

    __tablename__: str = "vacancies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    vacancy_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )
    position: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    place_of_work: Mapped[str] = mapped_column(String(255), nullable=False)
    required_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    salary: Mapped[str] = mapped_column(String(100), nullable=False)
    education: Mapped[str] = mapped_column(Text, nullable=False)
    experience: Mapped[str] = mapped_column(Text, nullable=False)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    responsibilities: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VacancyStatus.DRAFT.value, index=True
    )
    created_by: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, onupdate=now
    )

    __table_args__ = (
        Index("idx_vacancies_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Vacancy({self.vacancy_number}, position={self.position})>"
