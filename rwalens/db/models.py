"""
RWA Lens SQLAlchemy Models.

Project is the aggregate root. Analyses, recommendations and alerts hang off it
by foreign key; market data is keyed by its own (asset_type, symbol) pair.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rwalens.db.compat import GUID, JSONType
from rwalens.db.engine import Base
from rwalens.schemas.base import utcnow


def _genuuid():
    return uuid.uuid4()


class Project(Base):
    """A submitted tokenized real-world asset."""

    __tablename__ = "rwa_projects"
    __table_args__ = (
        Index("ix_rwa_projects_created_at", "created_at"),
        Index("ix_rwa_projects_asset_type", "asset_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    asset_type: Mapped[str] = mapped_column(String(32), nullable=False)
    total_value: Mapped[float] = mapped_column(Float, nullable=False)
    token_symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    token_supply: Mapped[int] = mapped_column(Integer, nullable=False)
    yield_percentage: Mapped[float] = mapped_column(Float, nullable=False)
    contract_address: Mapped[Optional[str]] = mapped_column(String(128))
    website_url: Mapped[Optional[str]] = mapped_column(String(500))
    whitepaper_url: Mapped[Optional[str]] = mapped_column(String(500))
    team_info: Mapped[str] = mapped_column(Text, nullable=False)
    tokenomics: Mapped[str] = mapped_column(Text, nullable=False)
    compliance_info: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    analyses: Mapped[list["RiskAnalysis"]] = relationship(back_populates="project")
    recommendations: Mapped[list["Recommendation"]] = relationship(back_populates="project")
    alerts: Mapped[list["Alert"]] = relationship(back_populates="project")


class RiskAnalysis(Base):
    """
    One analysis run. Immutable: re-analysis inserts a new row.

    Scores are clamped to [0, 100] before they ever reach this table.
    """

    __tablename__ = "risk_analyses"
    __table_args__ = (
        Index("ix_risk_analyses_project_analyzed", "project_id", "analyzed_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    project_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("rwa_projects.id"), nullable=False)
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    financial_health_score: Mapped[int] = mapped_column(Integer, nullable=False)
    team_credibility_score: Mapped[int] = mapped_column(Integer, nullable=False)
    market_viability_score: Mapped[int] = mapped_column(Integer, nullable=False)
    regulatory_compliance_score: Mapped[int] = mapped_column(Integer, nullable=False)
    technical_implementation_score: Mapped[int] = mapped_column(Integer, nullable=False)
    risk_level: Mapped[str] = mapped_column(String(20), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    strengths: Mapped[list] = mapped_column(JSONType(), nullable=False, default=list)
    weaknesses: Mapped[list] = mapped_column(JSONType(), nullable=False, default=list)
    recommendations: Mapped[list] = mapped_column(JSONType(), nullable=False, default=list)
    ai_model: Mapped[str] = mapped_column(String(100), nullable=False)
    analyzed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="analyses")


class Recommendation(Base):
    """Investment recommendation for one risk-tolerance band."""

    __tablename__ = "investment_recommendations"
    __table_args__ = (
        Index("ix_recommendations_project_id", "project_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    project_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("rwa_projects.id"), nullable=False)
    analysis_id: Mapped[Optional[uuid.UUID]] = mapped_column(GUID(), ForeignKey("risk_analyses.id"))
    risk_tolerance: Mapped[str] = mapped_column(String(20), nullable=False)
    recommendation: Mapped[str] = mapped_column(String(20), nullable=False)
    reasoning: Mapped[str] = mapped_column(Text, nullable=False)
    suggested_allocation: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="recommendations")


class Alert(Base):
    """Notification derived from an analysis run. Only ``is_read`` ever changes."""

    __tablename__ = "risk_alerts"
    __table_args__ = (
        Index("ix_risk_alerts_project_id", "project_id"),
        Index("ix_risk_alerts_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    project_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("rwa_projects.id"), nullable=False)
    alert_type: Mapped[str] = mapped_column(String(30), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    previous_value: Mapped[Optional[float]] = mapped_column(Float)
    new_value: Mapped[Optional[float]] = mapped_column(Float)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    project: Mapped["Project"] = relationship(back_populates="alerts")


class MarketData(Base):
    """Latest market snapshot for one (asset_type, symbol) key."""

    __tablename__ = "market_data"
    __table_args__ = (
        UniqueConstraint("asset_type", "symbol", name="uq_market_data_asset_symbol"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=_genuuid)
    asset_type: Mapped[str] = mapped_column(String(32), nullable=False)
    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    price_change_24h: Mapped[float] = mapped_column(Float, nullable=False)
    volume_24h: Mapped[float] = mapped_column(Float, nullable=False)
    market_cap: Mapped[Optional[float]] = mapped_column(Float)
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
