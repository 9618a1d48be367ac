"""
Recommendation derivation.

Turns the tolerance-banded blocks returned by the model into exactly three
RecommendationDrafts. A band whose block is missing or unusable is derived
from the overall score instead, so a run always yields one per band.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError

from rwalens.analysis.prompt import ALLOCATION_CEILINGS
from rwalens.schemas.analysis import (
    RecommendationAction,
    RecommendationDraft,
    RiskTolerance,
)

logger = structlog.get_logger(__name__)

# (action, allocation %) per band, by overall-score tier
_SCORE_TIERS: list[tuple[int, dict[RiskTolerance, tuple[RecommendationAction, float]]]] = [
    (75, {
        RiskTolerance.CONSERVATIVE: (RecommendationAction.BUY, 5.0),
        RiskTolerance.MODERATE: (RecommendationAction.STRONG_BUY, 10.0),
        RiskTolerance.AGGRESSIVE: (RecommendationAction.STRONG_BUY, 15.0),
    }),
    (60, {
        RiskTolerance.CONSERVATIVE: (RecommendationAction.HOLD, 2.0),
        RiskTolerance.MODERATE: (RecommendationAction.BUY, 7.0),
        RiskTolerance.AGGRESSIVE: (RecommendationAction.BUY, 12.0),
    }),
    (0, {
        RiskTolerance.CONSERVATIVE: (RecommendationAction.SELL, 0.0),
        RiskTolerance.MODERATE: (RecommendationAction.HOLD, 3.0),
        RiskTolerance.AGGRESSIVE: (RecommendationAction.BUY, 8.0),
    }),
]

FALLBACK_ALLOCATIONS = {
    RiskTolerance.CONSERVATIVE: 0.0,
    RiskTolerance.MODERATE: 2.0,
    RiskTolerance.AGGRESSIVE: 5.0,
}
FALLBACK_REASONING = "Pending full analysis"


def _fmt_pct(value: float) -> str:
    return f"{value:g}"


def derive_from_score(overall_score: int, band: RiskTolerance) -> RecommendationDraft:
    """Recommendation for ``band`` from the overall score alone."""
    for floor, table in _SCORE_TIERS:
        if overall_score >= floor:
            action, allocation = table[band]
            break

    pct = _fmt_pct(allocation)
    if overall_score >= 75:
        reasoning = (
            f"Strong risk profile with score of {overall_score}. "
            f"Suitable for {band} portfolios with {pct}% allocation."
        )
    elif overall_score >= 60:
        reasoning = (
            f"Moderate risk profile with score of {overall_score}. "
            f"Consider {pct}% allocation for {band} investors."
        )
    else:
        advice = "Not recommended" if band == RiskTolerance.CONSERVATIVE else f"Limited {pct}% allocation"
        reasoning = f"Higher risk profile with score of {overall_score}. {advice} for {band} portfolios."

    return RecommendationDraft(
        risk_tolerance=band,
        recommendation=action,
        suggested_allocation=allocation,
        reasoning=reasoning,
    )


def _clamp_allocation(value: Any, band: RiskTolerance) -> float:
    if isinstance(value, bool):
        raise ValueError("allocation must be a number")
    number = float(value)
    if number != number:  # NaN
        raise ValueError("allocation must be a number")
    return max(0.0, min(ALLOCATION_CEILINGS[str(band)], number))


def _from_block(block: Any, band: RiskTolerance) -> Optional[RecommendationDraft]:
    if not isinstance(block, dict):
        return None
    try:
        action = str(block.get("recommendation", "")).strip().lower()
        return RecommendationDraft(
            risk_tolerance=band,
            recommendation=RecommendationAction(action),
            suggested_allocation=_clamp_allocation(block.get("suggestedAllocation"), band),
            reasoning=str(block.get("reasoning") or "").strip() or f"No reasoning provided for {band} investors.",
        )
    except (TypeError, ValueError, ValidationError):
        return None


def derive_recommendations(blocks: Any, overall_score: int) -> list[RecommendationDraft]:
    """
    Exactly one recommendation per band, in band order.

    Args:
        blocks: the model's ``investmentRecommendations`` object (untrusted)
        overall_score: clamped overall score, used for bands the model got wrong
    """
    blocks = blocks if isinstance(blocks, dict) else {}
    drafts = []
    for band in RiskTolerance:
        draft = _from_block(blocks.get(str(band)), band)
        if draft is None:
            logger.warning("recommendation_derived_from_score", band=str(band), overall_score=overall_score)
            draft = derive_from_score(overall_score, band)
        drafts.append(draft)
    return drafts


def fallback_recommendations() -> list[RecommendationDraft]:
    """Fixed "hold" set used when no analysis could be performed."""
    return [
        RecommendationDraft(
            risk_tolerance=band,
            recommendation=RecommendationAction.HOLD,
            suggested_allocation=FALLBACK_ALLOCATIONS[band],
            reasoning=FALLBACK_REASONING,
        )
        for band in RiskTolerance
    ]
