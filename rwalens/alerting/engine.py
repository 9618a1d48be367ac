"""
Alert Engine: turns a finished analysis into a risk alert.

Two triggers, two rules:
- submission (background run): always alerts. Score >= 60 is reported as a
  risk decrease, below 60 as a risk increase.
- re-analysis (on request): alerts only when the result is high or critical.
"""

from typing import Optional

import structlog

from rwalens.schemas.alert import AlertDraft, AlertSeverity, AlertType
from rwalens.schemas.analysis import RiskAnalysisDraft, RiskLevel

logger = structlog.get_logger(__name__)

# Overall score at or above which a completed analysis reads as good news
RISK_DECREASE_THRESHOLD = 60

_SEVERITY_BY_LEVEL = {
    RiskLevel.CRITICAL: AlertSeverity.CRITICAL,
    RiskLevel.HIGH: AlertSeverity.WARNING,
    RiskLevel.MEDIUM: AlertSeverity.INFO,
    RiskLevel.LOW: AlertSeverity.INFO,
}


class AlertEngine:
    """Stateless; the caller persists whatever draft it returns."""

    def completion_alert(self, analysis: RiskAnalysisDraft) -> AlertDraft:
        """Alert raised after the background analysis of a new submission."""
        score = analysis.overall_score
        alert_type = (
            AlertType.RISK_DECREASE if score >= RISK_DECREASE_THRESHOLD else AlertType.RISK_INCREASE
        )
        return AlertDraft(
            alert_type=alert_type,
            severity=_SEVERITY_BY_LEVEL[analysis.risk_level],
            title="Analysis Complete",
            message=f"Risk analysis completed with score {score}/100. {analysis.risk_level} risk level detected.",
            previous_value=None,
            new_value=score,
        )

    def reanalysis_alert(self, analysis: RiskAnalysisDraft) -> Optional[AlertDraft]:
        """Alert raised by an on-demand re-analysis, if the result warrants one."""
        if analysis.risk_level not in (RiskLevel.HIGH, RiskLevel.CRITICAL):
            return None

        critical = analysis.risk_level == RiskLevel.CRITICAL
        logger.info(
            "elevated_risk_detected",
            risk_level=str(analysis.risk_level),
            overall_score=analysis.overall_score,
        )
        return AlertDraft(
            alert_type=AlertType.RISK_INCREASE,
            severity=AlertSeverity.CRITICAL if critical else AlertSeverity.WARNING,
            title=f"{'Critical' if critical else 'High'} Risk Identified",
            message=f"Analysis complete. Overall score: {analysis.overall_score}/100. {analysis.summary}",
            previous_value=None,
            new_value=analysis.overall_score,
        )
