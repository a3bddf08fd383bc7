"""Doctor profiles."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, String, Text, DateTime, Float, Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medibook.database import Base, utcnow

if TYPE_CHECKING:
    from medibook.models.user import User


class Doctor(Base):
    """Professional profile owned 1:1 by a doctor-role user."""

    __tablename__ = "doctors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), unique=True, index=True)

    specialty: Mapped[str] = mapped_column(String(100), index=True)
    license_number: Mapped[Optional[str]] = mapped_column(String(100))
    bio: Mapped[Optional[str]] = mapped_column(Text)
    experience_years: Mapped[Optional[int]] = mapped_column(Integer)
    consultation_fee: Mapped[Optional[float]] = mapped_column(Float)  # Per visit
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    # Relationship
    user: Mapped["User"] = relationship(back_populates="doctor_profile")
