import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from core.utils.datetime import now
from database.engine import Base


# ==================== User Role ===================== #
class UserRole(str, PyEnum):
    USER = "user"  # applicant
    ADMIN = "admin"  # recruitment staff


class UserStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    Account used to sign in. Applicants and administrators share the table.
    """

    __tablename__: str = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserStatus.ACTIVE.value
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now, onupdate=now
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"
