"""Pydantic schemas for RWA projects and project listing filters."""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import Field, field_validator

from rwalens.schemas.analysis import RecommendationRead, RiskAnalysisRead, RiskLevel
from rwalens.schemas.base import CamelModel


class AssetType(StrEnum):
    REAL_ESTATE = "real_estate"
    BONDS = "bonds"
    INVOICES = "invoices"
    COMMODITIES = "commodities"


class ProjectStatus(StrEnum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    return value


class _ProjectFields(CamelModel):
    """Validators shared by the create and update payloads."""

    @field_validator("token_symbol", mode="before", check_fields=False)
    @classmethod
    def _upper_symbol(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator(
        "contract_address", "website_url", "whitepaper_url",
        mode="before", check_fields=False,
    )
    @classmethod
    def _optional_blank(cls, v):
        return _blank_to_none(v)

    @field_validator("website_url", "whitepaper_url", check_fields=False)
    @classmethod
    def _urls(cls, v):
        return _check_url(v)


class ProjectCreate(_ProjectFields):
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    asset_type: AssetType
    total_value: float = Field(ge=0)
    token_symbol: str = Field(min_length=1, max_length=20)
    token_supply: int = Field(ge=1)
    yield_percentage: float = Field(ge=0, le=100)
    contract_address: Optional[str] = Field(default=None, max_length=128)
    website_url: Optional[str] = Field(default=None, max_length=500)
    whitepaper_url: Optional[str] = Field(default=None, max_length=500)
    team_info: str = Field(min_length=1)
    tokenomics: str = Field(min_length=1)
    compliance_info: str = Field(min_length=1)


class ProjectUpdate(_ProjectFields):
    """Partial edit. Status is owned by the analysis pipeline and cannot be set here."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    asset_type: Optional[AssetType] = None
    total_value: Optional[float] = Field(default=None, ge=0)
    token_symbol: Optional[str] = Field(default=None, min_length=1, max_length=20)
    token_supply: Optional[int] = Field(default=None, ge=1)
    yield_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    contract_address: Optional[str] = Field(default=None, max_length=128)
    website_url: Optional[str] = Field(default=None, max_length=500)
    whitepaper_url: Optional[str] = Field(default=None, max_length=500)
    team_info: Optional[str] = Field(default=None, min_length=1)
    tokenomics: Optional[str] = Field(default=None, min_length=1)
    compliance_info: Optional[str] = Field(default=None, min_length=1)

    def changes(self) -> dict:
        """Fields explicitly sent by the caller, minus nulls on required columns."""
        nullable = {"contract_address", "website_url", "whitepaper_url"}
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key in nullable
        }


class ProjectRead(CamelModel):
    id: uuid.UUID
    name: str
    description: str
    asset_type: AssetType
    total_value: float
    token_symbol: str
    token_supply: int
    yield_percentage: float
    contract_address: Optional[str] = None
    website_url: Optional[str] = None
    whitepaper_url: Optional[str] = None
    team_info: str
    tokenomics: str
    compliance_info: str
    status: ProjectStatus
    created_at: datetime


class ProjectWithAnalysis(ProjectRead):
    """A project joined with its latest analysis and its recommendations."""

    risk_analysis: Optional[RiskAnalysisRead] = None
    recommendations: list[RecommendationRead] = Field(default_factory=list)


class ProjectFilters(CamelModel):
    """Optional listing predicates, ANDed together."""

    asset_type: Optional[AssetType] = None
    risk_level: Optional[RiskLevel] = None
    min_yield: Optional[float] = None
    max_yield: Optional[float] = None
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    search: Optional[str] = None

    def matches(self, project: ProjectRead, latest: Optional[RiskAnalysisRead]) -> bool:
        """
        Evaluate the filters against one project and its latest analysis.

        A project without analysis never matches a risk-level filter and
        counts as score 0 for the score range.
        """
        if self.asset_type is not None and project.asset_type != self.asset_type:
            return False
        if self.risk_level is not None and (latest is None or latest.risk_level != self.risk_level):
            return False
        if self.min_yield is not None and project.yield_percentage < self.min_yield:
            return False
        if self.max_yield is not None and project.yield_percentage > self.max_yield:
            return False

        score = latest.overall_score if latest is not None else 0
        if self.min_score is not None and score < self.min_score:
            return False
        if self.max_score is not None and score > self.max_score:
            return False

        if self.search:
            needle = self.search.lower()
            haystacks = (project.name, project.description, project.token_symbol)
            if not any(needle in h.lower() for h in haystacks):
                return False
        return True
