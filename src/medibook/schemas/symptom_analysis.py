"""Pydantic schemas for symptom analysis."""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints

from medibook.schemas.common import CamelModel


class SymptomAnalysisCreate(CamelModel):
    """Symptoms submitted for analysis."""

    symptoms: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[str] = Field(None, max_length=20)


class PossibleCondition(BaseModel):
    """A candidate condition with a 0-100 likelihood."""

    name: str
    probability: int = Field(..., ge=0, le=100)
    description: str


class AnalysisResult(BaseModel):
    """Structured output of a symptom analyzer."""

    conditions: list[PossibleCondition]
    recommendations: list[str]


class SymptomAnalysisResponse(CamelModel):
    """Schema for stored analysis response."""

    id: int
    patient_id: str
    symptoms: str
    age: Optional[int]
    gender: Optional[str]
    analysis: AnalysisResult
    recommendations: Optional[str]
    created_at: datetime
