"""
SQLAlchemy-backed project store.

Uses async sessions from a factory the store owns. The latest analysis per
project is picked with a ROW_NUMBER() window so filtering and joining happen
in one SQL statement on both SQLite and PostgreSQL.
"""

import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.orm import aliased

from rwalens.config import Settings
from rwalens.db.engine import create_engine, create_session_factory, create_tables
from rwalens.db.models import Alert, MarketData, Project, Recommendation, RiskAnalysis
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
from rwalens.storage.base import ProjectNotFoundError, ProjectStore, StoreError

logger = structlog.get_logger(__name__)


def escape_like(query: str) -> str:
    """Escape LIKE wildcards so user search text matches literally."""
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _latest_analysis_subquery():
    """Rank each project's analyses, newest first."""
    return select(
        RiskAnalysis.id.label("analysis_id"),
        RiskAnalysis.project_id.label("project_id"),
        func.row_number()
        .over(partition_by=RiskAnalysis.project_id, order_by=RiskAnalysis.analyzed_at.desc())
        .label("rn"),
    ).subquery("ranked_analyses")


class SqlProjectStore(ProjectStore):
    """Relational store on top of async SQLAlchemy."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = create_session_factory(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlProjectStore":
        return cls(create_engine(settings))

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def initialize(self) -> None:
        await create_tables(self._engine)

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("database_closed")

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: commit on success, roll back on any error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("store_operation_failed", error=str(exc))
                raise StoreError(str(exc)) from exc
            except Exception:
                await session.rollback()
                raise

    # ── Projects ──────────────────────────────────────────────────────

    async def create_project(self, data: ProjectCreate) -> ProjectRead:
        async with self._session() as session:
            values = data.model_dump()
            values["asset_type"] = str(data.asset_type)
            project = Project(status=str(ProjectStatus.PENDING), created_at=utcnow(), **values)
            session.add(project)
            await session.flush()
            result = ProjectRead.model_validate(project)
        logger.info("project_created", project_id=str(result.id), backend="sql")
        return result

    async def get_project(self, project_id: uuid.UUID) -> Optional[ProjectWithAnalysis]:
        ranked = _latest_analysis_subquery()
        latest = aliased(RiskAnalysis)
        stmt = (
            select(Project, latest)
            .outerjoin(ranked, and_(ranked.c.project_id == Project.id, ranked.c.rn == 1))
            .outerjoin(latest, latest.id == ranked.c.analysis_id)
            .where(Project.id == project_id)
        )
        async with self._session() as session:
            row = (await session.execute(stmt)).first()
            if row is None:
                return None
            recs = await self._recommendations_by_project(session, [project_id])
            return self._join(row[0], row[1], recs.get(project_id, []))

    async def list_projects(
        self, filters: Optional[ProjectFilters] = None
    ) -> list[ProjectWithAnalysis]:
        ranked = _latest_analysis_subquery()
        latest = aliased(RiskAnalysis)
        stmt = (
            select(Project, latest)
            .outerjoin(ranked, and_(ranked.c.project_id == Project.id, ranked.c.rn == 1))
            .outerjoin(latest, latest.id == ranked.c.analysis_id)
        )

        if filters is not None:
            score = func.coalesce(latest.overall_score, 0)
            if filters.asset_type is not None:
                stmt = stmt.where(Project.asset_type == str(filters.asset_type))
            if filters.risk_level is not None:
                stmt = stmt.where(latest.risk_level == str(filters.risk_level))
            if filters.min_yield is not None:
                stmt = stmt.where(Project.yield_percentage >= filters.min_yield)
            if filters.max_yield is not None:
                stmt = stmt.where(Project.yield_percentage <= filters.max_yield)
            if filters.min_score is not None:
                stmt = stmt.where(score >= filters.min_score)
            if filters.max_score is not None:
                stmt = stmt.where(score <= filters.max_score)
            if filters.search:
                pattern = f"%{escape_like(filters.search.lower())}%"
                stmt = stmt.where(
                    or_(
                        func.lower(Project.name).like(pattern, escape="\\"),
                        func.lower(Project.description).like(pattern, escape="\\"),
                        func.lower(Project.token_symbol).like(pattern, escape="\\"),
                    )
                )

        stmt = stmt.order_by(Project.created_at.desc())

        async with self._session() as session:
            rows = (await session.execute(stmt)).all()
            recs = await self._recommendations_by_project(session, [r[0].id for r in rows])
            return [self._join(p, a, recs.get(p.id, [])) for p, a in rows]

    async def update_project(
        self, project_id: uuid.UUID, data: ProjectUpdate
    ) -> Optional[ProjectRead]:
        changes = data.changes()
        if "asset_type" in changes:
            changes["asset_type"] = str(changes["asset_type"])
        async with self._session() as session:
            project = await session.get(Project, project_id)
            if project is None:
                return None
            for key, value in changes.items():
                setattr(project, key, value)
            await session.flush()
            return ProjectRead.model_validate(project)

    async def set_status(
        self, project_id: uuid.UUID, status: ProjectStatus
    ) -> Optional[ProjectRead]:
        async with self._session() as session:
            project = await session.get(Project, project_id)
            if project is None:
                return None
            project.status = str(status)
            await session.flush()
            return ProjectRead.model_validate(project)

    # ── Analyses & recommendations ───────────────────────────────────

    async def get_latest_analysis(self, project_id: uuid.UUID) -> Optional[RiskAnalysisRead]:
        stmt = (
            select(RiskAnalysis)
            .where(RiskAnalysis.project_id == project_id)
            .order_by(RiskAnalysis.analyzed_at.desc())
            .limit(1)
        )
        async with self._session() as session:
            analysis = (await session.execute(stmt)).scalar_one_or_none()
            return RiskAnalysisRead.model_validate(analysis) if analysis else None

    async def record_analysis(
        self,
        project_id: uuid.UUID,
        result: AnalysisResult,
        alert: Optional[AlertDraft] = None,
    ) -> RiskAnalysisRead:
        async with self._session() as session:
            project = await session.get(Project, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)

            now = utcnow()
            values = result.analysis.model_dump()
            values["risk_level"] = str(result.analysis.risk_level)
            analysis = RiskAnalysis(
                id=uuid.uuid4(), project_id=project_id, analyzed_at=now, **values
            )
            session.add(analysis)
            # Recommendations reference the analysis row
            await session.flush()

            for rec in result.recommendations:
                session.add(
                    Recommendation(
                        project_id=project_id,
                        analysis_id=analysis.id,
                        risk_tolerance=str(rec.risk_tolerance),
                        recommendation=str(rec.recommendation),
                        suggested_allocation=rec.suggested_allocation,
                        reasoning=rec.reasoning,
                        created_at=now,
                    )
                )

            project.status = str(ProjectStatus.ANALYZED)

            if alert is not None:
                session.add(self._alert_row(project_id, alert))

            await session.flush()
            stored = RiskAnalysisRead.model_validate(analysis)

        logger.info(
            "analysis_recorded",
            project_id=str(project_id),
            analysis_id=str(stored.id),
            overall_score=stored.overall_score,
            alert=alert is not None,
        )
        return stored

    async def list_recommendations(
        self, project_id: Optional[uuid.UUID] = None
    ) -> list[RecommendationRead]:
        stmt = select(Recommendation).order_by(Recommendation.created_at.desc())
        if project_id is not None:
            stmt = stmt.where(Recommendation.project_id == project_id)
        async with self._session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [RecommendationRead.model_validate(r) for r in rows]

    # ── Alerts ────────────────────────────────────────────────────────

    async def create_alert(self, project_id: uuid.UUID, alert: AlertDraft) -> AlertRead:
        async with self._session() as session:
            if await session.get(Project, project_id) is None:
                raise ProjectNotFoundError(project_id)
            row = self._alert_row(project_id, alert)
            session.add(row)
            await session.flush()
            return AlertRead.model_validate(row)

    async def list_alerts(
        self,
        project_id: Optional[uuid.UUID] = None,
        unread_only: bool = False,
    ) -> list[AlertRead]:
        stmt = select(Alert).order_by(Alert.created_at.desc())
        if project_id is not None:
            stmt = stmt.where(Alert.project_id == project_id)
        if unread_only:
            stmt = stmt.where(Alert.is_read.is_(False))
        async with self._session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [AlertRead.model_validate(a) for a in rows]

    async def mark_alert_read(self, alert_id: uuid.UUID) -> bool:
        async with self._session() as session:
            exists = await session.execute(select(Alert.id).where(Alert.id == alert_id))
            if exists.scalar_one_or_none() is None:
                return False
            await session.execute(
                update(Alert).where(Alert.id == alert_id).values(is_read=True)
            )
        return True

    # ── Market data ──────────────────────────────────────────────────

    async def list_market_data(self, asset_type: Optional[str] = None) -> list[MarketDataRead]:
        stmt = select(MarketData).order_by(MarketData.asset_type, MarketData.symbol)
        if asset_type is not None:
            stmt = stmt.where(MarketData.asset_type == str(asset_type))
        async with self._session() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [MarketDataRead.model_validate(r) for r in rows]

    async def upsert_market_data(self, data: MarketDataUpsert) -> MarketDataRead:
        values = data.model_dump()
        values["asset_type"] = str(data.asset_type)
        values["last_updated"] = utcnow()
        changing = {k: v for k, v in values.items() if k not in ("asset_type", "symbol")}

        if self._engine.dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert

        stmt = (
            insert(MarketData)
            .values(id=uuid.uuid4(), **values)
            .on_conflict_do_update(index_elements=["asset_type", "symbol"], set_=changing)
        )

        async with self._session() as session:
            await session.execute(stmt)
            row = (
                await session.execute(
                    select(MarketData)
                    .where(MarketData.asset_type == values["asset_type"])
                    .where(MarketData.symbol == values["symbol"])
                    .execution_options(populate_existing=True)
                )
            ).scalar_one()
            return MarketDataRead.model_validate(row)

    # ── Aggregates ───────────────────────────────────────────────────

    async def get_stats(self) -> StatsSummary:
        ranked = _latest_analysis_subquery()
        latest = aliased(RiskAnalysis)
        latest_rows = (
            select(latest.overall_score, latest.risk_level)
            .join(ranked, and_(ranked.c.analysis_id == latest.id, ranked.c.rn == 1))
            .subquery("latest_analyses")
        )

        async with self._session() as session:
            project_count, total_value = (
                await session.execute(
                    select(func.count(Project.id), func.coalesce(func.sum(Project.total_value), 0))
                )
            ).one()
            analysis_count = (
                await session.execute(select(func.count(RiskAnalysis.id)))
            ).scalar_one()
            average_score = (
                await session.execute(select(func.avg(latest_rows.c.overall_score)))
            ).scalar_one()
            risk_rows = (
                await session.execute(
                    select(latest_rows.c.risk_level, func.count())
                    .group_by(latest_rows.c.risk_level)
                )
            ).all()
            asset_rows = (
                await session.execute(
                    select(Project.asset_type, func.count()).group_by(Project.asset_type)
                )
            ).all()
            unread = (
                await session.execute(
                    select(func.count(Alert.id)).where(Alert.is_read.is_(False))
                )
            ).scalar_one()

        return StatsSummary(
            project_count=project_count or 0,
            total_value=float(total_value or 0),
            analysis_count=analysis_count or 0,
            average_score=round(float(average_score), 2) if average_score is not None else None,
            risk_distribution={level: count for level, count in risk_rows},
            asset_type_distribution={asset: count for asset, count in asset_rows},
            unread_alert_count=unread or 0,
        )

    # ── Internals ────────────────────────────────────────────────────

    @staticmethod
    async def _recommendations_by_project(
        session: AsyncSession, project_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, list[RecommendationRead]]:
        grouped: dict[uuid.UUID, list[RecommendationRead]] = defaultdict(list)
        if not project_ids:
            return grouped
        rows = (
            await session.execute(
                select(Recommendation)
                .where(Recommendation.project_id.in_(project_ids))
                .order_by(Recommendation.created_at.desc())
            )
        ).scalars().all()
        for rec in rows:
            grouped[rec.project_id].append(RecommendationRead.model_validate(rec))
        return grouped

    @staticmethod
    def _join(
        project: Project,
        analysis: Optional[RiskAnalysis],
        recommendations: list[RecommendationRead],
    ) -> ProjectWithAnalysis:
        base = ProjectRead.model_validate(project)
        return ProjectWithAnalysis(
            **base.model_dump(),
            risk_analysis=RiskAnalysisRead.model_validate(analysis) if analysis else None,
            recommendations=recommendations,
        )

    @staticmethod
    def _alert_row(project_id: uuid.UUID, alert: AlertDraft) -> Alert:
        return Alert(
            project_id=project_id,
            alert_type=str(alert.alert_type),
            severity=str(alert.severity),
            title=alert.title,
            message=alert.message,
            previous_value=alert.previous_value,
            new_value=alert.new_value,
            is_read=False,
            created_at=utcnow(),
        )
