"""Pydantic schemas for doctor profiles."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from medibook.schemas.common import CamelModel


class DoctorBase(CamelModel):
    """Fields a doctor controls on their own profile."""

    specialty: str = Field(..., min_length=1, max_length=100)
    license_number: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    experience_years: Optional[int] = Field(None, ge=0, le=80)
    consultation_fee: Optional[float] = Field(None, ge=0)
    is_available: bool = True


class DoctorCreate(DoctorBase):
    """Schema for creating a doctor profile. The owner is always the caller."""


class DoctorUpdate(CamelModel):
    """Partial patch: only supplied fields are applied."""

    specialty: Optional[str] = Field(None, min_length=1, max_length=100)
    license_number: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None
    experience_years: Optional[int] = Field(None, ge=0, le=80)
    consultation_fee: Optional[float] = Field(None, ge=0)
    is_available: Optional[bool] = None

    @field_validator("specialty", "is_available")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field may not be null")
        return value


class DoctorResponse(DoctorBase):
    """Schema for doctor profile response."""

    id: int
    user_id: str
    created_at: datetime
    updated_at: datetime


class DoctorUser(CamelModel):
    """Display fields of the account behind a doctor profile."""

    id: str
    first_name: Optional[str]
    last_name: Optional[str]
    profile_image_url: Optional[str]


class DoctorWithUserResponse(DoctorResponse):
    """Doctor profile with the owning user's display fields."""

    user: DoctorUser
