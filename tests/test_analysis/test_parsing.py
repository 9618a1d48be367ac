"""
Tests for model reply parsing.

Tests:
- Score clamping and coercion
- Unknown riskLevel defaults to medium
- Structural problems raise MalformedResponseError
"""

import json

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rwalens.analysis.parsing import MalformedResponseError, clamp_score, parse_analysis_response
from rwalens.schemas.analysis import RiskLevel, RiskTolerance
from tests.factories import model_reply

SCORE_KEYS = [
    "overallScore",
    "financialHealthScore",
    "teamCredibilityScore",
    "marketViabilityScore",
    "regulatoryComplianceScore",
    "technicalImplementationScore",
]


class TestClampScore:
    @pytest.mark.parametrize(
        "raw,expected",
        [(-5, 0), (140, 100), (0, 0), (100, 100), (72.4, 72), (72.6, 73), ("64", 64), (float("inf"), 100)],
    )
    def test_clamps_into_range(self, raw, expected):
        assert clamp_score(raw) == expected

    @pytest.mark.parametrize("raw", [True, "abc", None, float("nan")])
    def test_rejects_non_numbers(self, raw):
        with pytest.raises((TypeError, ValueError)):
            clamp_score(raw)

    @given(st.floats(allow_nan=False, allow_infinity=True) | st.integers(min_value=-10**9, max_value=10**9))
    def test_any_number_lands_in_range(self, value):
        assert 0 <= clamp_score(value) <= 100


class TestParseAnalysisResponse:
    def test_well_formed_reply(self):
        result = parse_analysis_response(json.dumps(model_reply()), model="gpt-test")

        assert result.analysis.overall_score == 82
        assert result.analysis.risk_level == RiskLevel.LOW
        assert result.analysis.ai_model == "gpt-test"
        assert not result.is_fallback
        assert [r.risk_tolerance for r in result.recommendations] == list(RiskTolerance)

    def test_out_of_range_scores_are_clamped(self):
        reply = model_reply(overall=-5, scores={"financialHealthScore": 140, "teamCredibilityScore": 55.5})
        analysis = parse_analysis_response(json.dumps(reply), model="m").analysis

        assert analysis.overall_score == 0
        assert analysis.financial_health_score == 100
        assert analysis.team_credibility_score == 56

    @given(st.lists(st.floats(min_value=-1e6, max_value=1e6), min_size=6, max_size=6))
    def test_all_six_scores_always_in_range(self, values):
        reply = model_reply(scores=dict(zip(SCORE_KEYS, values)))
        analysis = parse_analysis_response(json.dumps(reply), model="m").analysis

        for field in (
            "overall_score",
            "financial_health_score",
            "team_credibility_score",
            "market_viability_score",
            "regulatory_compliance_score",
            "technical_implementation_score",
        ):
            assert 0 <= getattr(analysis, field) <= 100

    @pytest.mark.parametrize("level", ["extreme", "", None, 7])
    def test_unknown_risk_level_becomes_medium(self, level):
        analysis = parse_analysis_response(json.dumps(model_reply(risk_level=level)), model="m").analysis
        assert analysis.risk_level == RiskLevel.MEDIUM

    def test_risk_level_is_case_insensitive(self):
        analysis = parse_analysis_response(json.dumps(model_reply(risk_level=" HIGH ")), model="m").analysis
        assert analysis.risk_level == RiskLevel.HIGH

    def test_null_list_entries_are_dropped(self):
        reply = model_reply(strengths=["Good team", None, "  "], weaknesses=None)
        analysis = parse_analysis_response(json.dumps(reply), model="m").analysis

        assert analysis.strengths == ["Good team"]
        assert analysis.weaknesses == []

    @pytest.mark.parametrize(
        "raw",
        [
            "not json at all",
            "[]",
            json.dumps({"investmentRecommendations": {}}),
            json.dumps({"riskAnalysis": "oops"}),
        ],
    )
    def test_structurally_broken_reply_raises(self, raw):
        with pytest.raises(MalformedResponseError):
            parse_analysis_response(raw, model="m")

    def test_missing_score_raises(self):
        reply = model_reply()
        del reply["riskAnalysis"]["marketViabilityScore"]
        with pytest.raises(MalformedResponseError):
            parse_analysis_response(json.dumps(reply), model="m")

    def test_non_numeric_score_raises(self):
        reply = model_reply(overall="very safe")
        with pytest.raises(MalformedResponseError):
            parse_analysis_response(json.dumps(reply), model="m")

    def test_blank_summary_raises(self):
        with pytest.raises(MalformedResponseError):
            parse_analysis_response(json.dumps(model_reply(summary="   ")), model="m")
