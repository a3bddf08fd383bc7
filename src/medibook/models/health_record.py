"""Patient health records."""

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import ForeignKey, String, Text, Date, DateTime, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column

from medibook.database import Base, utcnow


class HealthRecord(Base):
    """A clinical entry for one patient. Updatable, never deleted."""

    __tablename__ = "health_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)

    record_type: Mapped[str] = mapped_column(String(50))  # e.g. "lab_result", "diagnosis"
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    diagnosis: Mapped[Optional[str]] = mapped_column(Text)
    treatment: Mapped[Optional[str]] = mapped_column(Text)
    medications: Mapped[Optional[str]] = mapped_column(Text)
    vital_signs: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)  # e.g. {"bp": "120/80"}
    record_date: Mapped[Optional[date]] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
