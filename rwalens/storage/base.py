"""
Project store interface.

Every backend (SQL, in-memory) implements the same async contract so the
analysis pipeline and the API never know which one they are talking to.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Optional

from rwalens.schemas.alert import AlertDraft, AlertRead
from rwalens.schemas.analysis import AnalysisResult, RecommendationRead, RiskAnalysisRead
from rwalens.schemas.market import MarketDataRead, MarketDataUpsert
from rwalens.schemas.project import (
    ProjectCreate,
    ProjectFilters,
    ProjectRead,
    ProjectStatus,
    ProjectUpdate,
    ProjectWithAnalysis,
)
from rwalens.schemas.stats import StatsSummary


class StoreError(Exception):
    """A persistence operation failed."""

    pass


class NotFoundError(StoreError):
    """The referenced record does not exist."""

    pass


class ProjectNotFoundError(NotFoundError):
    """The referenced project does not exist."""

    def __init__(self, project_id: uuid.UUID):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class ProjectStore(ABC):
    """Async storage contract for projects and everything they own."""

    async def initialize(self) -> None:
        """Prepare the backend (create tables, etc.)."""
        return None

    async def close(self) -> None:
        """Release backend resources."""
        return None

    # ── Projects ──────────────────────────────────────────────────────

    @abstractmethod
    async def create_project(self, data: ProjectCreate) -> ProjectRead:
        """Persist a new project with status ``pending``."""

    @abstractmethod
    async def get_project(self, project_id: uuid.UUID) -> Optional[ProjectWithAnalysis]:
        """Project joined with its latest analysis and its recommendations."""

    @abstractmethod
    async def list_projects(
        self, filters: Optional[ProjectFilters] = None
    ) -> list[ProjectWithAnalysis]:
        """Filtered projects, newest-created first."""

    @abstractmethod
    async def update_project(
        self, project_id: uuid.UUID, data: ProjectUpdate
    ) -> Optional[ProjectRead]:
        """Apply a partial edit. Returns None if the project does not exist."""

    @abstractmethod
    async def set_status(
        self, project_id: uuid.UUID, status: ProjectStatus
    ) -> Optional[ProjectRead]:
        """Move a project to another lifecycle status."""

    # ── Analyses & recommendations ───────────────────────────────────

    @abstractmethod
    async def get_latest_analysis(self, project_id: uuid.UUID) -> Optional[RiskAnalysisRead]:
        """Analysis with the greatest ``analyzed_at`` for the project."""

    @abstractmethod
    async def record_analysis(
        self,
        project_id: uuid.UUID,
        result: AnalysisResult,
        alert: Optional[AlertDraft] = None,
    ) -> RiskAnalysisRead:
        """
        Atomically store a completed run.

        Inserts the analysis and its three recommendations, marks the project
        ``analyzed`` and appends ``alert`` if given. Either all of it is
        persisted or none of it is.

        Raises:
            ProjectNotFoundError: unknown project
            StoreError: the write failed
        """

    @abstractmethod
    async def list_recommendations(
        self, project_id: Optional[uuid.UUID] = None
    ) -> list[RecommendationRead]:
        """Recommendations, newest first, optionally for one project."""

    # ── Alerts ────────────────────────────────────────────────────────

    @abstractmethod
    async def create_alert(self, project_id: uuid.UUID, alert: AlertDraft) -> AlertRead:
        """Append an alert to the project's log."""

    @abstractmethod
    async def list_alerts(
        self,
        project_id: Optional[uuid.UUID] = None,
        unread_only: bool = False,
    ) -> list[AlertRead]:
        """Alerts, newest first."""

    @abstractmethod
    async def mark_alert_read(self, alert_id: uuid.UUID) -> bool:
        """Flag an alert as read. Idempotent. False if the alert does not exist."""

    # ── Market data ──────────────────────────────────────────────────

    @abstractmethod
    async def list_market_data(self, asset_type: Optional[str] = None) -> list[MarketDataRead]:
        """Market snapshots, optionally for one asset type."""

    @abstractmethod
    async def upsert_market_data(self, data: MarketDataUpsert) -> MarketDataRead:
        """Insert or replace the row for ``(asset_type, symbol)``."""

    # ── Aggregates ───────────────────────────────────────────────────

    @abstractmethod
    async def get_stats(self) -> StatsSummary:
        """Counts and totals across the whole store."""
