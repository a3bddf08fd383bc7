"""Symptom analysis engines.

The API talks to an analyzer through ``SymptomAnalyzer.analyze``. The only
bundled engine returns a fixed result; a real model or remote service plugs
in by subclassing and registering under a name selected via settings.
"""

import logging
from typing import Optional

from medibook.config import settings
from medibook.schemas.symptom_analysis import AnalysisResult, PossibleCondition

logger = logging.getLogger(__name__)


class SymptomAnalyzer:
    """Interface for symptom analysis engines."""

    name = "base"

    async def analyze(
        self, symptoms: str, age: Optional[int] = None, gender: Optional[str] = None
    ) -> AnalysisResult:
        raise NotImplementedError


class StaticSymptomAnalyzer(SymptomAnalyzer):
    """Placeholder engine: ignores its input and returns a canned result."""

    name = "static"

    CONDITIONS = (
        PossibleCondition(
            name="Viral Upper Respiratory Infection",
            probability=85,
            description="Common symptoms include headache, fever, and fatigue. Usually resolves within 7-10 days.",
        ),
        PossibleCondition(
            name="Seasonal Allergies",
            probability=45,
            description="May be environmental allergies if symptoms persist or worsen outdoors.",
        ),
    )
    RECOMMENDATIONS = (
        "Rest and stay hydrated",
        "Monitor temperature regularly",
        "Consider over-the-counter pain relievers",
        "Consult a doctor if symptoms worsen or persist beyond 7 days",
    )

    async def analyze(
        self, symptoms: str, age: Optional[int] = None, gender: Optional[str] = None
    ) -> AnalysisResult:
        return AnalysisResult(
            conditions=list(self.CONDITIONS),
            recommendations=list(self.RECOMMENDATIONS),
        )


ANALYZERS: dict[str, type[SymptomAnalyzer]] = {
    StaticSymptomAnalyzer.name: StaticSymptomAnalyzer,
}


def get_symptom_analyzer() -> SymptomAnalyzer:
    """Dependency returning the engine named by ``settings.symptom_analyzer``."""
    try:
        analyzer_cls = ANALYZERS[settings.symptom_analyzer]
    except KeyError:
        logger.error("Unknown symptom analyzer %r", settings.symptom_analyzer)
        raise
    return analyzer_cls()


def summarize_recommendations(result: AnalysisResult) -> str:
    return "; ".join(result.recommendations)
