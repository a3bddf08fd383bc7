"""Pydantic schemas for accounts and authentication."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BeforeValidator, EmailStr, Field

from medibook.models.user import Role
from medibook.schemas.common import CamelModel
from medibook.schemas.doctor import DoctorResponse


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# Addresses are matched case-insensitively, so they are stored lower-cased
Email = Annotated[
    EmailStr,
    BeforeValidator(_strip),
    AfterValidator(str.lower),
]


class RegisterRequest(CamelModel):
    """Schema for creating a local account."""

    email: Email
    password: str = Field(..., min_length=8, max_length=128)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    role: Role = Role.PATIENT
    profile_image_url: Optional[str] = Field(None, max_length=500)


class LoginRequest(CamelModel):
    """Schema for exchanging credentials for a token."""

    email: Email
    password: str = Field(..., min_length=1)


class RoleUpdate(CamelModel):
    """Only the role may be changed through the current-user endpoint."""

    role: Role


class UserUpsert(CamelModel):
    """Insert-or-update payload keyed by user id."""

    id: str = Field(..., min_length=1, max_length=255)
    email: Email
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    role: Role = Role.PATIENT
    profile_image_url: Optional[str] = Field(None, max_length=500)


class UserResponse(CamelModel):
    """Public view of a user. The password hash never leaves the server."""

    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: Role
    profile_image_url: Optional[str]
    created_at: datetime
    updated_at: datetime


class CurrentUserResponse(UserResponse):
    """The caller, with their doctor profile when they have one."""

    doctor_profile: Optional[DoctorResponse] = None


class TokenResponse(CamelModel):
    """Issued bearer token plus the account it belongs to."""

    token: str
    token_type: str = "bearer"
    user: UserResponse
