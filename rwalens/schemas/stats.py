"""Aggregate statistics returned by the stats endpoint."""

from typing import Optional

from pydantic import Field

from rwalens.schemas.base import CamelModel


class StatsSummary(CamelModel):
    project_count: int = 0
    total_value: float = 0.0
    analysis_count: int = 0

    # Derived from each project's latest analysis
    average_score: Optional[float] = None
    risk_distribution: dict[str, int] = Field(default_factory=dict)
    asset_type_distribution: dict[str, int] = Field(default_factory=dict)
    unread_alert_count: int = 0
