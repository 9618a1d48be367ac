"""
AI risk analysis.

- prompt: renders a project into the analysis prompt
- parsing: validates and clamps the model's JSON reply
- recommendations: per-tolerance-band recommendations
- engine: RiskAnalysisEngine, with the fixed fallback result
"""

from rwalens.analysis.engine import RiskAnalysisEngine, fallback_result, risk_level_for_score

__all__ = ["RiskAnalysisEngine", "fallback_result", "risk_level_for_score"]
