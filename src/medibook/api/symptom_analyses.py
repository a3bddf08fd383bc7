"""Symptom analysis persistence. Analyses are write-once."""

from typing import Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.models.symptom_analysis import SymptomAnalysis
from medibook.schemas.symptom_analysis import AnalysisResult, SymptomAnalysisCreate


async def create_symptom_analysis(
    db: AsyncSession,
    patient_id: str,
    submission: SymptomAnalysisCreate,
    result: AnalysisResult,
    recommendations: str,
) -> SymptomAnalysis:
    """Store the submitted symptoms alongside the analyzer's result."""
    db_analysis = SymptomAnalysis(
        **submission.model_dump(),
        patient_id=patient_id,
        analysis=result.model_dump(),
        recommendations=recommendations,
    )
    db.add(db_analysis)
    await db.flush()
    await db.refresh(db_analysis)
    return db_analysis


async def get_symptom_analyses_by_patient(
    db: AsyncSession, patient_id: str
) -> list[SymptomAnalysis]:
    """A patient's analyses, newest first."""
    result = await db.execute(
        select(SymptomAnalysis)
        .where(SymptomAnalysis.patient_id == patient_id)
        .order_by(desc(SymptomAnalysis.created_at), desc(SymptomAnalysis.id))
    )
    return list(result.scalars().all())


async def get_symptom_analysis_by_id(
    db: AsyncSession, analysis_id: int
) -> Optional[SymptomAnalysis]:
    result = await db.execute(select(SymptomAnalysis).where(SymptomAnalysis.id == analysis_id))
    return result.scalar_one_or_none()
