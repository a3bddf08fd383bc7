"""Pydantic schemas for appointments."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from medibook.models.appointment import AppointmentStatus
from medibook.schemas.common import CamelModel, to_naive_utc
from medibook.schemas.doctor import DoctorWithUserResponse


class AppointmentCreate(CamelModel):
    """Schema for booking. The patient is always the caller."""

    doctor_id: int = Field(..., gt=0)
    appointment_date: datetime
    reason: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = None

    @field_validator("appointment_date")
    @classmethod
    def normalise_date(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class AppointmentUpdate(CamelModel):
    """Partial patch. Status changes must follow the lifecycle."""

    appointment_date: Optional[datetime] = None
    reason: Optional[str] = Field(None, max_length=2000)
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None

    @field_validator("appointment_date")
    @classmethod
    def normalise_date(cls, value: Optional[datetime]) -> datetime:
        if value is None:
            raise ValueError("Field may not be null")
        return to_naive_utc(value)

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value):
        if value is None:
            raise ValueError("Field may not be null")
        return value


class AppointmentPatient(CamelModel):
    """Display fields of the booking patient."""

    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]


class AppointmentResponse(CamelModel):
    """Schema for appointment response."""

    id: int
    patient_id: str
    doctor_id: int
    appointment_date: datetime
    status: AppointmentStatus
    reason: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


class AppointmentDetailResponse(AppointmentResponse):
    """Appointment with both participants attached."""

    doctor: Optional[DoctorWithUserResponse] = None
    patient: Optional[AppointmentPatient] = None
