"""
Analysis Orchestrator: one full analysis run for one project.

pending/analyzed → analyzing → (engine) → record analysis + recommendations
+ alert → analyzed. The record step is a single store transaction. If the
run fails or is cancelled after the project was moved to ``analyzing``, it is
moved back to ``pending`` so it never stays stuck.
"""

import asyncio
import uuid
from enum import StrEnum
from typing import Optional

import structlog

from rwalens.alerting.engine import AlertEngine
from rwalens.analysis.engine import RiskAnalysisEngine
from rwalens.schemas.alert import AlertDraft
from rwalens.schemas.analysis import AnalysisResult
from rwalens.schemas.project import ProjectStatus, ProjectWithAnalysis
from rwalens.storage.base import ProjectNotFoundError, ProjectStore

logger = structlog.get_logger(__name__)


class AnalysisTrigger(StrEnum):
    SUBMISSION = "submission"   # background run after create
    REANALYSIS = "reanalysis"   # explicit request


class AnalysisFailedError(Exception):
    """A run could not be completed; the project was returned to pending."""

    def __init__(self, project_id: uuid.UUID, cause: Exception):
        super().__init__(f"Analysis of project {project_id} failed: {cause}")
        self.project_id = project_id
        self.cause = cause


class AnalysisOrchestrator:
    """Drives a project through one analysis run."""

    def __init__(
        self,
        store: ProjectStore,
        engine: RiskAnalysisEngine,
        alerts: Optional[AlertEngine] = None,
    ):
        self.store = store
        self.engine = engine
        self.alerts = alerts or AlertEngine()

    def _alert_for(self, result: AnalysisResult, trigger: AnalysisTrigger) -> Optional[AlertDraft]:
        if trigger == AnalysisTrigger.SUBMISSION:
            return self.alerts.completion_alert(result.analysis)
        return self.alerts.reanalysis_alert(result.analysis)

    async def run(self, project_id: uuid.UUID, trigger: AnalysisTrigger) -> Optional[ProjectWithAnalysis]:
        """
        Analyze ``project_id`` and persist the outcome.

        Returns:
            The project joined with its new analysis, or None if the project
            does not exist.

        Raises:
            AnalysisFailedError: persisting the run failed
        """
        log = logger.bind(project_id=str(project_id), trigger=str(trigger))

        project = await self.store.set_status(project_id, ProjectStatus.ANALYZING)
        if project is None:
            log.warning("analysis_project_missing")
            return None

        log.info("analysis_started")
        try:
            result = await self.engine.analyze(project)
            alert = self._alert_for(result, trigger)
            analysis = await self.store.record_analysis(project_id, result, alert)
        except ProjectNotFoundError:
            log.warning("analysis_project_deleted")
            return None
        except asyncio.CancelledError:
            log.warning("analysis_cancelled")
            await asyncio.shield(self._revert(project_id))
            raise
        except Exception as e:
            log.error("analysis_failed", error=str(e), error_type=type(e).__name__)
            await self._revert(project_id)
            raise AnalysisFailedError(project_id, e) from e

        log.info(
            "analysis_completed",
            analysis_id=str(analysis.id),
            overall_score=analysis.overall_score,
            risk_level=str(analysis.risk_level),
            fallback=result.is_fallback,
            alerted=alert is not None,
        )
        return await self.store.get_project(project_id)

    async def reanalyze(self, project_id: uuid.UUID) -> Optional[ProjectWithAnalysis]:
        return await self.run(project_id, AnalysisTrigger.REANALYSIS)

    async def _revert(self, project_id: uuid.UUID) -> None:
        try:
            await self.store.set_status(project_id, ProjectStatus.PENDING)
        except Exception as e:
            # Original failure is what gets reported
            logger.error("analysis_revert_failed", project_id=str(project_id), error=str(e))
