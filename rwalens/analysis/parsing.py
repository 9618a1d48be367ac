"""
Parsing of the model's JSON reply.

The reply is untrusted. Scores are coerced to integers and clamped into
[0, 100]; an unknown ``riskLevel`` becomes ``medium``. Anything structurally
wrong (not JSON, missing scores, missing summary) raises
``MalformedResponseError`` and the caller falls back.
"""

import json
import math
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from rwalens.analysis.recommendations import derive_recommendations
from rwalens.schemas.analysis import AnalysisResult, RiskAnalysisDraft, RiskLevel

logger = structlog.get_logger(__name__)


class MalformedResponseError(ValueError):
    """The model's reply could not be turned into an analysis."""

    pass


def clamp_score(value: Any) -> int:
    """Round a numeric value and pin it into [0, 100]."""
    if isinstance(value, bool):
        raise ValueError("score must be a number, not a boolean")
    if isinstance(value, str):
        value = value.strip()
    number = float(value)
    if math.isnan(number):
        raise ValueError("score must be a number")
    if math.isinf(number):
        return 100 if number > 0 else 0
    return max(0, min(100, int(round(number))))


def coerce_risk_level(value: Any) -> RiskLevel:
    try:
        return RiskLevel(str(value).strip().lower())
    except ValueError:
        logger.warning("risk_level_defaulted", received=str(value)[:50])
        return RiskLevel.MEDIUM


class _UpstreamAnalysis(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    overall_score: int
    financial_health_score: int
    team_credibility_score: int
    market_viability_score: int
    regulatory_compliance_score: int
    technical_implementation_score: int
    risk_level: RiskLevel = RiskLevel.MEDIUM
    summary: str = Field(min_length=1)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @field_validator(
        "overall_score",
        "financial_health_score",
        "team_credibility_score",
        "market_viability_score",
        "regulatory_compliance_score",
        "technical_implementation_score",
        mode="before",
    )
    @classmethod
    def _clamp(cls, v: Any) -> int:
        try:
            return clamp_score(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid score {v!r}") from e

    @field_validator("risk_level", mode="before")
    @classmethod
    def _level(cls, v: Any) -> RiskLevel:
        return coerce_risk_level(v)

    @field_validator("summary", mode="before")
    @classmethod
    def _strip_summary(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("strengths", "weaknesses", "recommendations", mode="before")
    @classmethod
    def _text_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [str(item).strip() for item in v if item is not None and str(item).strip()]
        return v


def parse_analysis_response(raw: str, model: str) -> AnalysisResult:
    """
    Turn the model's raw JSON text into an AnalysisResult.

    Args:
        raw: reply text, expected to be a single JSON object
        model: model identifier to stamp on the analysis

    Raises:
        MalformedResponseError: the reply is unusable
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"reply is not valid JSON: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("riskAnalysis"), dict):
        raise MalformedResponseError("reply has no riskAnalysis object")

    try:
        upstream = _UpstreamAnalysis.model_validate(payload["riskAnalysis"])
    except ValidationError as e:
        raise MalformedResponseError(f"riskAnalysis failed validation: {e.error_count()} error(s)") from e

    analysis = RiskAnalysisDraft(**upstream.model_dump(), ai_model=model)
    recommendations = derive_recommendations(
        payload.get("investmentRecommendations"), analysis.overall_score
    )
    return AnalysisResult(analysis=analysis, recommendations=recommendations)
