"""Appointments between a patient and a doctor profile."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String, Text, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medibook.database import Base, utcnow

if TYPE_CHECKING:
    from medibook.models.doctor import Doctor
    from medibook.models.user import User


class AppointmentStatus(str, Enum):
    """Appointment lifecycle states."""

    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Legal moves out of each state; cancelled and completed are terminal
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    AppointmentStatus.SCHEDULED.value: frozenset(
        {AppointmentStatus.CANCELLED.value, AppointmentStatus.COMPLETED.value}
    ),
    AppointmentStatus.CANCELLED.value: frozenset(),
    AppointmentStatus.COMPLETED.value: frozenset(),
}


class Appointment(Base):
    """A booked visit. Cancellation is a status change, rows are kept."""

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    doctor_id: Mapped[int] = mapped_column(ForeignKey("doctors.id"), index=True)

    appointment_date: Mapped[datetime] = mapped_column(DateTime, index=True)
    status: Mapped[AppointmentStatus] = mapped_column(
        String(20), default=AppointmentStatus.SCHEDULED.value
    )
    reason: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    # Relationships
    patient: Mapped["User"] = relationship()
    doctor: Mapped["Doctor"] = relationship()

    @property
    def is_terminal(self) -> bool:
        return not STATUS_TRANSITIONS.get(self.status)
