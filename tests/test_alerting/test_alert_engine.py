"""Tests for AlertEngine."""

import pytest

from rwalens.alerting.engine import AlertEngine
from rwalens.schemas.alert import AlertSeverity, AlertType
from rwalens.schemas.analysis import RiskAnalysisDraft, RiskLevel


def _analysis(score: int, level: str, summary: str = "Summary text.") -> RiskAnalysisDraft:
    return RiskAnalysisDraft(
        overall_score=score,
        financial_health_score=score,
        team_credibility_score=score,
        market_viability_score=score,
        regulatory_compliance_score=score,
        technical_implementation_score=score,
        risk_level=RiskLevel(level),
        summary=summary,
        ai_model="gpt-test",
    )


@pytest.fixture
def engine() -> AlertEngine:
    return AlertEngine()


class TestCompletionAlert:
    def test_good_score_is_risk_decrease(self, engine):
        alert = engine.completion_alert(_analysis(82, "low"))

        assert alert.alert_type == AlertType.RISK_DECREASE
        assert alert.severity == AlertSeverity.INFO
        assert alert.title == "Analysis Complete"
        assert alert.message == "Risk analysis completed with score 82/100. low risk level detected."
        assert alert.previous_value is None
        assert alert.new_value == 82

    def test_threshold_is_inclusive(self, engine):
        assert engine.completion_alert(_analysis(60, "medium")).alert_type == AlertType.RISK_DECREASE
        assert engine.completion_alert(_analysis(59, "medium")).alert_type == AlertType.RISK_INCREASE

    @pytest.mark.parametrize(
        "level,severity",
        [("critical", "critical"), ("high", "warning"), ("medium", "info"), ("low", "info")],
    )
    def test_severity_follows_risk_level(self, engine, level, severity):
        assert engine.completion_alert(_analysis(40, level)).severity == AlertSeverity(severity)


class TestReanalysisAlert:
    @pytest.mark.parametrize("level", ["low", "medium"])
    def test_no_alert_for_acceptable_risk(self, engine, level):
        assert engine.reanalysis_alert(_analysis(70, level)) is None

    def test_high_risk(self, engine):
        alert = engine.reanalysis_alert(_analysis(35, "high", summary="Thin track record."))

        assert alert.alert_type == AlertType.RISK_INCREASE
        assert alert.severity == AlertSeverity.WARNING
        assert alert.title == "High Risk Identified"
        assert alert.message == "Analysis complete. Overall score: 35/100. Thin track record."
        assert alert.new_value == 35

    def test_critical_risk(self, engine):
        alert = engine.reanalysis_alert(_analysis(10, "critical"))

        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.title == "Critical Risk Identified"
