"""
In-memory project store.

Keeps everything in process memory. Useful for demos and tests; state is lost
on restart. One instance per application, owned by whoever builds it.
"""

import asyncio
import uuid
from collections import Counter
from typing import Iterable, Optional

import structlog

from rwalens.schemas.alert import AlertDraft, AlertRead
from rwalens.schemas.analysis import AnalysisResult, RecommendationRead, RiskAnalysisRead
from rwalens.schemas.base import utcnow
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
from rwalens.storage.base import ProjectNotFoundError, ProjectStore

logger = structlog.get_logger(__name__)


def _newest_first(items: Iterable, key: str) -> list:
    """Sort by timestamp descending; later insertions win ties."""
    return sorted(reversed(list(items)), key=lambda item: getattr(item, key), reverse=True)


class InMemoryProjectStore(ProjectStore):
    """Dict-backed store guarded by a single asyncio lock."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._projects: dict[uuid.UUID, ProjectRead] = {}
        self._analyses: dict[uuid.UUID, RiskAnalysisRead] = {}
        self._recommendations: dict[uuid.UUID, RecommendationRead] = {}
        self._alerts: dict[uuid.UUID, AlertRead] = {}
        self._market_data: dict[tuple[str, str], MarketDataRead] = {}

    # ── Projects ──────────────────────────────────────────────────────

    async def create_project(self, data: ProjectCreate) -> ProjectRead:
        project = ProjectRead(
            id=uuid.uuid4(),
            status=ProjectStatus.PENDING,
            created_at=utcnow(),
            **data.model_dump(),
        )
        async with self._lock:
            self._projects[project.id] = project
        logger.info("project_created", project_id=str(project.id), backend="memory")
        return project.model_copy()

    async def get_project(self, project_id: uuid.UUID) -> Optional[ProjectWithAnalysis]:
        project = self._projects.get(project_id)
        if project is None:
            return None
        return self._join(project)

    async def list_projects(
        self, filters: Optional[ProjectFilters] = None
    ) -> list[ProjectWithAnalysis]:
        rows = []
        for project in _newest_first(self._projects.values(), "created_at"):
            latest = self._latest(project.id)
            if filters is not None and not filters.matches(project, latest):
                continue
            rows.append(self._join(project, latest))
        return rows

    async def update_project(
        self, project_id: uuid.UUID, data: ProjectUpdate
    ) -> Optional[ProjectRead]:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return None
            updated = project.model_copy(update=data.changes())
            self._projects[project_id] = updated
        return updated.model_copy()

    async def set_status(
        self, project_id: uuid.UUID, status: ProjectStatus
    ) -> Optional[ProjectRead]:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                return None
            updated = project.model_copy(update={"status": status})
            self._projects[project_id] = updated
        return updated.model_copy()

    # ── Analyses & recommendations ───────────────────────────────────

    async def get_latest_analysis(self, project_id: uuid.UUID) -> Optional[RiskAnalysisRead]:
        latest = self._latest(project_id)
        return latest.model_copy() if latest else None

    async def record_analysis(
        self,
        project_id: uuid.UUID,
        result: AnalysisResult,
        alert: Optional[AlertDraft] = None,
    ) -> RiskAnalysisRead:
        async with self._lock:
            project = self._projects.get(project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)

            # Build everything first so a bad record leaves no partial state
            now = utcnow()
            analysis = RiskAnalysisRead(
                id=uuid.uuid4(),
                project_id=project_id,
                analyzed_at=now,
                **result.analysis.model_dump(),
            )
            recommendations = [
                RecommendationRead(
                    id=uuid.uuid4(),
                    project_id=project_id,
                    analysis_id=analysis.id,
                    created_at=now,
                    **rec.model_dump(),
                )
                for rec in result.recommendations
            ]
            stored = self._build_alert(project_id, alert) if alert is not None else None

            self._analyses[analysis.id] = analysis
            for rec in recommendations:
                self._recommendations[rec.id] = rec
            self._projects[project_id] = project.model_copy(
                update={"status": ProjectStatus.ANALYZED}
            )
            if stored is not None:
                self._alerts[stored.id] = stored

        return analysis.model_copy()

    async def list_recommendations(
        self, project_id: Optional[uuid.UUID] = None
    ) -> list[RecommendationRead]:
        recs = [
            r.model_copy()
            for r in self._recommendations.values()
            if project_id is None or r.project_id == project_id
        ]
        return _newest_first(recs, "created_at")

    # ── Alerts ────────────────────────────────────────────────────────

    async def create_alert(self, project_id: uuid.UUID, alert: AlertDraft) -> AlertRead:
        async with self._lock:
            if project_id not in self._projects:
                raise ProjectNotFoundError(project_id)
            stored = self._build_alert(project_id, alert)
            self._alerts[stored.id] = stored
        return stored.model_copy()

    async def list_alerts(
        self,
        project_id: Optional[uuid.UUID] = None,
        unread_only: bool = False,
    ) -> list[AlertRead]:
        alerts = [
            a.model_copy()
            for a in self._alerts.values()
            if (project_id is None or a.project_id == project_id)
            and not (unread_only and a.is_read)
        ]
        return _newest_first(alerts, "created_at")

    async def mark_alert_read(self, alert_id: uuid.UUID) -> bool:
        async with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                return False
            if not alert.is_read:
                self._alerts[alert_id] = alert.model_copy(update={"is_read": True})
        return True

    # ── Market data ──────────────────────────────────────────────────

    async def list_market_data(self, asset_type: Optional[str] = None) -> list[MarketDataRead]:
        return [
            self._market_data[key].model_copy()
            for key in sorted(self._market_data)
            if asset_type is None or key[0] == asset_type
        ]

    async def upsert_market_data(self, data: MarketDataUpsert) -> MarketDataRead:
        key = (str(data.asset_type), data.symbol)
        async with self._lock:
            existing = self._market_data.get(key)
            row = MarketDataRead(
                id=existing.id if existing else uuid.uuid4(),
                last_updated=utcnow(),
                **data.model_dump(),
            )
            self._market_data[key] = row
        return row.model_copy()

    # ── Aggregates ───────────────────────────────────────────────────

    async def get_stats(self) -> StatsSummary:
        latest = [self._latest(pid) for pid in self._projects]
        scored = [a for a in latest if a is not None]
        return StatsSummary(
            project_count=len(self._projects),
            total_value=sum(p.total_value for p in self._projects.values()),
            analysis_count=len(self._analyses),
            average_score=(
                round(sum(a.overall_score for a in scored) / len(scored), 2) if scored else None
            ),
            risk_distribution=dict(Counter(str(a.risk_level) for a in scored)),
            asset_type_distribution=dict(
                Counter(str(p.asset_type) for p in self._projects.values())
            ),
            unread_alert_count=sum(1 for a in self._alerts.values() if not a.is_read),
        )

    # ── Internals ────────────────────────────────────────────────────

    def _latest(self, project_id: uuid.UUID) -> Optional[RiskAnalysisRead]:
        latest = None
        for analysis in self._analyses.values():
            if analysis.project_id != project_id:
                continue
            if latest is None or analysis.analyzed_at >= latest.analyzed_at:
                latest = analysis
        return latest

    def _join(
        self,
        project: ProjectRead,
        latest: Optional[RiskAnalysisRead] = None,
    ) -> ProjectWithAnalysis:
        if latest is None:
            latest = self._latest(project.id)
        recs = [r for r in self._recommendations.values() if r.project_id == project.id]
        return ProjectWithAnalysis(
            **project.model_dump(),
            risk_analysis=latest.model_copy() if latest else None,
            recommendations=[r.model_copy() for r in _newest_first(recs, "created_at")],
        )

    @staticmethod
    def _build_alert(project_id: uuid.UUID, alert: AlertDraft) -> AlertRead:
        return AlertRead(
            id=uuid.uuid4(),
            project_id=project_id,
            is_read=False,
            created_at=utcnow(),
            **alert.model_dump(),
        )
