"""Tests for the background AnalysisWorker."""

import asyncio
import uuid

import pytest

from rwalens.analysis.engine import RiskAnalysisEngine
from rwalens.schemas.project import ProjectStatus
from rwalens.services.orchestrator import AnalysisOrchestrator
from rwalens.services.worker import AnalysisWorker
from rwalens.storage import InMemoryProjectStore, StoreError
from tests.factories import HangingClient, ScriptedClient, model_reply, project_create

pytestmark = pytest.mark.asyncio


class FlakyStore(InMemoryProjectStore):
    """Fails the first recorded run, succeeds afterwards."""

    def __init__(self):
        super().__init__()
        self.failed = False

    async def record_analysis(self, project_id, result, alert=None):
        if not self.failed:
            self.failed = True
            raise StoreError("transient")
        return await super().record_analysis(project_id, result, alert)


def _worker(store, max_queue: int = 10, client=None) -> AnalysisWorker:
    client = client or ScriptedClient(model_reply())
    orchestrator = AnalysisOrchestrator(store, RiskAnalysisEngine(client))
    return AnalysisWorker(orchestrator, max_queue=max_queue)


class TestAnalysisWorker:
    async def test_processes_queued_projects(self):
        store = InMemoryProjectStore()
        worker = _worker(store)
        projects = [await store.create_project(project_create(name=f"P{i}")) for i in range(3)]

        worker.start()
        for p in projects:
            worker.submit(p.id)
        await asyncio.wait_for(worker.join(), timeout=5)
        await worker.stop()

        for p in projects:
            assert (await store.get_project(p.id)).status == ProjectStatus.ANALYZED

    async def test_failure_does_not_stop_the_worker(self):
        store = FlakyStore()
        worker = _worker(store)
        first = await store.create_project(project_create(name="First"))
        second = await store.create_project(project_create(name="Second"))

        worker.start()
        worker.submit(first.id)
        worker.submit(second.id)
        await asyncio.wait_for(worker.join(), timeout=5)

        assert worker.running
        assert (await store.get_project(first.id)).status == ProjectStatus.PENDING
        assert (await store.get_project(second.id)).status == ProjectStatus.ANALYZED
        await worker.stop()

    async def test_unknown_project_is_skipped(self):
        worker = _worker(InMemoryProjectStore())
        worker.start()
        worker.submit(uuid.uuid4())
        await asyncio.wait_for(worker.join(), timeout=5)
        assert worker.running
        await worker.stop()

    async def test_full_backlog_raises(self):
        store = InMemoryProjectStore()
        worker = _worker(store, max_queue=1)
        worker.submit(uuid.uuid4())
        with pytest.raises(asyncio.QueueFull):
            worker.submit(uuid.uuid4())

    async def test_stop_is_safe_when_not_started(self):
        worker = _worker(InMemoryProjectStore())
        await worker.stop()
        assert not worker.running

    async def test_stop_mid_run_leaves_project_pending(self):
        store = InMemoryProjectStore()
        client = HangingClient()
        worker = _worker(store, client=client)
        project = await store.create_project(project_create())

        worker.start()
        worker.submit(project.id)
        while not client.prompts:
            await asyncio.sleep(0.01)
        await worker.stop()

        assert not worker.running
        assert (await store.get_project(project.id)).status == ProjectStatus.PENDING
