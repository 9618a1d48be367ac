"""Tests for per-band recommendation derivation."""

import pytest

from rwalens.analysis.recommendations import (
    derive_from_score,
    derive_recommendations,
    fallback_recommendations,
)
from rwalens.schemas.analysis import RecommendationAction, RiskTolerance


def _by_band(drafts):
    return {d.risk_tolerance: d for d in drafts}


class TestDeriveFromScore:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (82, {"conservative": ("buy", 5), "moderate": ("strong_buy", 10), "aggressive": ("strong_buy", 15)}),
            (75, {"conservative": ("buy", 5), "moderate": ("strong_buy", 10), "aggressive": ("strong_buy", 15)}),
            (60, {"conservative": ("hold", 2), "moderate": ("buy", 7), "aggressive": ("buy", 12)}),
            (58, {"conservative": ("sell", 0), "moderate": ("hold", 3), "aggressive": ("buy", 8)}),
            (0, {"conservative": ("sell", 0), "moderate": ("hold", 3), "aggressive": ("buy", 8)}),
        ],
    )
    def test_score_tiers(self, score, expected):
        for band in RiskTolerance:
            draft = derive_from_score(score, band)
            action, allocation = expected[str(band)]
            assert draft.recommendation == RecommendationAction(action)
            assert draft.suggested_allocation == allocation

    def test_reasoning_mentions_score(self):
        draft = derive_from_score(58, RiskTolerance.CONSERVATIVE)
        assert draft.reasoning == (
            "Higher risk profile with score of 58. Not recommended for conservative portfolios."
        )

        draft = derive_from_score(58, RiskTolerance.AGGRESSIVE)
        assert "Limited 8% allocation" in draft.reasoning


class TestDeriveRecommendations:
    def test_uses_valid_model_blocks(self):
        blocks = {
            "conservative": {"recommendation": "hold", "suggestedAllocation": 3, "reasoning": "Wait."},
            "moderate": {"recommendation": "BUY", "suggestedAllocation": "12.5", "reasoning": "Go."},
            "aggressive": {"recommendation": "strong_buy", "suggestedAllocation": 25, "reasoning": "All in."},
        }
        drafts = _by_band(derive_recommendations(blocks, overall_score=70))

        assert drafts[RiskTolerance.CONSERVATIVE].recommendation == RecommendationAction.HOLD
        assert drafts[RiskTolerance.MODERATE].recommendation == RecommendationAction.BUY
        assert drafts[RiskTolerance.MODERATE].suggested_allocation == 12.5
        assert drafts[RiskTolerance.AGGRESSIVE].reasoning == "All in."

    def test_allocations_clamped_to_band_ceiling(self):
        blocks = {
            "conservative": {"recommendation": "buy", "suggestedAllocation": 95, "reasoning": "r"},
            "moderate": {"recommendation": "buy", "suggestedAllocation": 95, "reasoning": "r"},
            "aggressive": {"recommendation": "buy", "suggestedAllocation": -4, "reasoning": "r"},
        }
        drafts = _by_band(derive_recommendations(blocks, overall_score=70))

        assert drafts[RiskTolerance.CONSERVATIVE].suggested_allocation == 20
        assert drafts[RiskTolerance.MODERATE].suggested_allocation == 30
        assert drafts[RiskTolerance.AGGRESSIVE].suggested_allocation == 0

    def test_bad_blocks_fall_back_to_score(self):
        blocks = {
            "conservative": {"recommendation": "moon", "suggestedAllocation": 5, "reasoning": "r"},
            "moderate": "buy",
        }
        drafts = derive_recommendations(blocks, overall_score=82)

        assert len(drafts) == 3
        expected = [derive_from_score(82, band) for band in RiskTolerance]
        assert drafts == expected

    def test_missing_object_still_gives_three(self):
        drafts = derive_recommendations(None, overall_score=40)
        assert [d.risk_tolerance for d in drafts] == list(RiskTolerance)


def test_fallback_recommendations_hold_everything():
    drafts = _by_band(fallback_recommendations())

    assert {d.recommendation for d in drafts.values()} == {RecommendationAction.HOLD}
    assert drafts[RiskTolerance.CONSERVATIVE].suggested_allocation == 0
    assert drafts[RiskTolerance.MODERATE].suggested_allocation == 2
    assert drafts[RiskTolerance.AGGRESSIVE].suggested_allocation == 5
    assert all(d.reasoning == "Pending full analysis" for d in drafts.values())
