"""User accounts and roles."""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medibook.database import Base, utcnow

if TYPE_CHECKING:
    from medibook.models.doctor import Doctor


class Role(str, Enum):
    """Caller classification gating which operations are permitted."""

    PATIENT = "patient"
    DOCTOR = "doctor"


def new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Local account. Created on registration or upsert, never hard-deleted."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True, default=new_user_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    role: Mapped[Role] = mapped_column(String(20), default=Role.PATIENT.value)
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(500))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    # Relationships
    doctor_profile: Mapped[Optional["Doctor"]] = relationship(
        back_populates="user", uselist=False
    )

    @property
    def is_doctor(self) -> bool:
        return self.role == Role.DOCTOR.value
