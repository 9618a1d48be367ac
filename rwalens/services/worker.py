"""
Background analysis worker.

Project submission must return before analysis runs. Submissions are queued
and a single asyncio task drains the queue, so the response is never delayed
by the model and a failed run only affects its own project.
"""

import asyncio
import uuid
from typing import Optional

import structlog

from rwalens.services.orchestrator import AnalysisFailedError, AnalysisOrchestrator, AnalysisTrigger

logger = structlog.get_logger(__name__)


class AnalysisWorker:
    def __init__(self, orchestrator: AnalysisOrchestrator, max_queue: int = 100):
        self.orchestrator = orchestrator
        self._queue: asyncio.Queue[uuid.UUID] = asyncio.Queue(maxsize=max_queue)
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._drain(), name="analysis-worker")
        logger.info("analysis_worker_started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("analysis_worker_stopped", dropped=self._queue.qsize())

    def submit(self, project_id: uuid.UUID) -> None:
        """
        Queue a background analysis.

        Raises:
            asyncio.QueueFull: the backlog is at capacity
        """
        self._queue.put_nowait(project_id)
        logger.info("analysis_queued", project_id=str(project_id), backlog=self._queue.qsize())

    async def join(self) -> None:
        """Wait until every queued submission has been processed."""
        await self._queue.join()

    async def _drain(self) -> None:
        while True:
            project_id = await self._queue.get()
            try:
                await self.orchestrator.run(project_id, AnalysisTrigger.SUBMISSION)
            except AnalysisFailedError:
                # Already logged and reverted by the orchestrator
                pass
            except Exception as e:
                logger.error("analysis_worker_error", project_id=str(project_id), error=str(e))
            finally:
                self._queue.task_done()
