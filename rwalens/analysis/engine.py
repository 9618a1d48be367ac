"""
Risk Analysis Engine.

One call, one result. ``analyze`` never raises for upstream problems: a
missing key, a transport failure, a timeout or an unusable reply all produce
the fixed fallback result, stamped with ``ai_model="fallback"``.
"""

import asyncio
from typing import Optional

import structlog

from rwalens.analysis.parsing import parse_analysis_response
from rwalens.analysis.prompt import build_analysis_prompt
from rwalens.analysis.recommendations import fallback_recommendations
from rwalens.schemas.analysis import (
    FALLBACK_MODEL,
    AnalysisResult,
    RiskAnalysisDraft,
    RiskLevel,
)
from rwalens.schemas.project import ProjectRead
from rwalens.services.llm_gateway import CompletionClient

logger = structlog.get_logger(__name__)

FALLBACK_SCORE = 50
FALLBACK_SUMMARY = (
    "Unable to complete full AI analysis. "
    "Please review project details manually and try again later."
)
FALLBACK_STRENGTHS = ["Project submitted for analysis", "Basic information provided"]
FALLBACK_WEAKNESSES = ["Full AI analysis could not be completed", "Manual review recommended"]
FALLBACK_ADVICE = [
    "Retry analysis when service is available",
    "Consider providing more detailed documentation",
]


def risk_level_for_score(score: int) -> RiskLevel:
    """Band an overall score: 75+ low, 50+ medium, 25+ high, below that critical."""
    if score >= 75:
        return RiskLevel.LOW
    if score >= 50:
        return RiskLevel.MEDIUM
    if score >= 25:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def fallback_result() -> AnalysisResult:
    """Neutral analysis used whenever the model cannot be consulted."""
    analysis = RiskAnalysisDraft(
        overall_score=FALLBACK_SCORE,
        financial_health_score=FALLBACK_SCORE,
        team_credibility_score=FALLBACK_SCORE,
        market_viability_score=FALLBACK_SCORE,
        regulatory_compliance_score=FALLBACK_SCORE,
        technical_implementation_score=FALLBACK_SCORE,
        risk_level=RiskLevel.MEDIUM,
        summary=FALLBACK_SUMMARY,
        strengths=list(FALLBACK_STRENGTHS),
        weaknesses=list(FALLBACK_WEAKNESSES),
        recommendations=list(FALLBACK_ADVICE),
        ai_model=FALLBACK_MODEL,
    )
    return AnalysisResult(analysis=analysis, recommendations=fallback_recommendations())


class RiskAnalysisEngine:
    """Scores a project through the completion client."""

    def __init__(self, client: CompletionClient, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout

    async def analyze(self, project: ProjectRead) -> AnalysisResult:
        prompt = build_analysis_prompt(project)
        try:
            call = self.client.complete_json(prompt)
            raw = await (asyncio.wait_for(call, self.timeout) if self.timeout else call)
            result = parse_analysis_response(raw, model=self.client.model)
        except asyncio.TimeoutError:
            logger.warning("analysis_fallback", project_id=str(project.id), reason="timeout", timeout=self.timeout)
            return fallback_result()
        except Exception as e:
            logger.warning(
                "analysis_fallback",
                project_id=str(project.id),
                reason=type(e).__name__,
                error=str(e)[:200],
            )
            return fallback_result()

        logger.info(
            "analysis_scored",
            project_id=str(project.id),
            overall_score=result.analysis.overall_score,
            risk_level=str(result.analysis.risk_level),
            model=result.analysis.ai_model,
        )
        return result
