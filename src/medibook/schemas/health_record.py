"""Pydantic schemas for health records."""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from medibook.schemas.common import CamelModel


class HealthRecordBase(CamelModel):
    """Clinical fields of a record."""

    record_type: str = Field(..., min_length=1, max_length=50, description="e.g. 'lab_result', 'diagnosis'")
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    medications: Optional[str] = None
    vital_signs: Optional[dict[str, Any]] = None
    record_date: Optional[date] = None


class HealthRecordCreate(HealthRecordBase):
    """Schema for creating a record. Patients may omit patientId."""

    patient_id: Optional[str] = Field(None, min_length=1, max_length=255)


class HealthRecordUpdate(CamelModel):
    """Partial patch. The owning patient cannot be changed."""

    record_type: Optional[str] = Field(None, min_length=1, max_length=50)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    medications: Optional[str] = None
    vital_signs: Optional[dict[str, Any]] = None
    record_date: Optional[date] = None

    @field_validator("record_type", "title")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field may not be null")
        return value


class HealthRecordResponse(HealthRecordBase):
    """Schema for health record response."""

    id: int
    patient_id: str
    created_at: datetime
    updated_at: datetime
