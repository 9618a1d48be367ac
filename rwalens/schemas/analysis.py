"""Pydantic schemas for risk analyses and investment recommendations."""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import Field, model_validator

from rwalens.schemas.base import CamelModel

# Model identifier stamped on results that did not come from the upstream model
FALLBACK_MODEL = "fallback"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskTolerance(StrEnum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class RecommendationAction(StrEnum):
    STRONG_BUY = "strong_buy"
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"
    STRONG_SELL = "strong_sell"


class RiskAnalysisDraft(CamelModel):
    """Analysis as produced by the engine, before it is attached to a project."""

    overall_score: int = Field(ge=0, le=100)
    financial_health_score: int = Field(ge=0, le=100)
    team_credibility_score: int = Field(ge=0, le=100)
    market_viability_score: int = Field(ge=0, le=100)
    regulatory_compliance_score: int = Field(ge=0, le=100)
    technical_implementation_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    summary: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    ai_model: str

    @property
    def is_fallback(self) -> bool:
        return self.ai_model == FALLBACK_MODEL


class RiskAnalysisRead(RiskAnalysisDraft):
    id: uuid.UUID
    project_id: uuid.UUID
    analyzed_at: datetime


class RecommendationDraft(CamelModel):
    risk_tolerance: RiskTolerance
    recommendation: RecommendationAction
    suggested_allocation: float = Field(ge=0, le=100)
    reasoning: str


class RecommendationRead(RecommendationDraft):
    id: uuid.UUID
    project_id: uuid.UUID
    analysis_id: Optional[uuid.UUID] = None
    created_at: datetime


class AnalysisResult(CamelModel):
    """
    Output of one engine run: an analysis plus one recommendation per band.

    Construction fails unless every tolerance band appears exactly once.
    """

    analysis: RiskAnalysisDraft
    recommendations: list[RecommendationDraft]

    @model_validator(mode="after")
    def _one_per_band(self) -> "AnalysisResult":
        bands = [r.risk_tolerance for r in self.recommendations]
        if sorted(bands) != sorted(RiskTolerance):
            raise ValueError(
                f"expected one recommendation per tolerance band, got {[str(b) for b in bands]}"
            )
        order = list(RiskTolerance)
        self.recommendations.sort(key=lambda r: order.index(r.risk_tolerance))
        return self

    @property
    def is_fallback(self) -> bool:
        return self.analysis.is_fallback
