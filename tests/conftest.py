"""
Test fixtures for RWA Lens.

Provides:
- Store fixtures for both backends (in-memory, SQLite in-memory)
- FastAPI app + httpx client over ASGITransport
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rwalens.config import Settings
from rwalens.db.engine import create_engine
from rwalens.main import create_app
from rwalens.storage import InMemoryProjectStore, ProjectStore, SqlProjectStore
from tests.factories import ScriptedClient, model_reply

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# ── Stores ───────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage_backend="memory",
        llm_api_key="",
        seed_sample_data=False,
        analysis_queue_size=10,
        llm_timeout_seconds=5.0,
    )


@pytest_asyncio.fixture
async def memory_store() -> InMemoryProjectStore:
    return InMemoryProjectStore()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, settings) -> AsyncGenerator[ProjectStore, None]:
    """Every store contract test runs against both backends."""
    if request.param == "memory":
        backend: ProjectStore = InMemoryProjectStore()
    else:
        backend = SqlProjectStore(create_engine(settings, url=TEST_DB_URL))
    await backend.initialize()
    yield backend
    await backend.close()


# ── App / HTTP client ────────────────────────────────────────────────────


@pytest.fixture
def completion_client() -> ScriptedClient:
    return ScriptedClient(model_reply())


@pytest_asyncio.fixture
async def app(settings, memory_store, completion_client):
    application = create_app(settings=settings, store=memory_store, completion_client=completion_client)
    # ASGITransport does not send lifespan events
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
