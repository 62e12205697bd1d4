"""User and authentication schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from api.schemas.common import CamelModel

RoleLiteral = Literal["user", "admin"]
UserStatusLiteral = Literal["active", "inactive"]


# ==================== Authentication ==================== #


class RegisterRequest(CamelModel):
    name: str = Field(min_length=2, max_length=200)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(CamelModel):
    """A user as returned by the API. Never carries the password hash."""

    id: str
    name: str
    email: str
    role: str
    status: str
    created_at: datetime
    updated_at: datetime


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class AdminCheckResponse(CamelModel):
    is_admin: bool


# ==================== Administration ==================== #


class UserUpdateRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    email: Optional[EmailStr] = None
    role: Optional[RoleLiteral] = None
    status: Optional[UserStatusLiteral] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v
