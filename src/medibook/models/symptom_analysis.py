"""Stored symptom analyses."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import ForeignKey, String, Text, DateTime, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column

from medibook.database import Base, utcnow


class SymptomAnalysis(Base):
    """Write-once result of running the analyzer over submitted symptoms."""

    __tablename__ = "symptom_analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)

    symptoms: Mapped[str] = mapped_column(Text)
    age: Mapped[Optional[int]] = mapped_column(Integer)
    gender: Mapped[Optional[str]] = mapped_column(String(20))
    analysis: Mapped[dict[str, Any]] = mapped_column(JSON)
    recommendations: Mapped[Optional[str]] = mapped_column(Text)  # "; "-joined

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
