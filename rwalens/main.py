"""
RWA Lens: FastAPI Application.

AI risk assessment for tokenized real-world assets.
Run: python -m rwalens.main  (or uvicorn rwalens.main:app)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from rwalens.alerting.engine import AlertEngine
from rwalens.analysis.engine import RiskAnalysisEngine
from rwalens.api.routers.alerts import router as alerts_router
from rwalens.api.routers.market_data import router as market_data_router
from rwalens.api.routers.projects import router as projects_router
from rwalens.api.routers.recommendations import router as recommendations_router
from rwalens.api.routers.stats import router as stats_router
from rwalens.config import Settings, settings as default_settings
from rwalens.middleware.error_handler import (
    ErrorHandlerMiddleware,
    http_exception_handler,
    validation_exception_handler,
)
from rwalens.middleware.request_context import RequestContextMiddleware
from rwalens.services.llm_gateway import CompletionClient, LLMGateway
from rwalens.services.orchestrator import AnalysisOrchestrator
from rwalens.services.seed import seed_sample_data
from rwalens.services.worker import AnalysisWorker
from rwalens.storage import ProjectStore, build_store


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings
    store: ProjectStore = app.state.store
    worker: AnalysisWorker = app.state.worker

    logger.info("rwalens_starting", version=settings.app_version, storage=type(store).__name__)
    await store.initialize()
    if settings.seed_sample_data:
        await seed_sample_data(store)
    worker.start()
    yield
    await worker.stop()
    gateway = app.state.gateway
    if gateway is not None:
        await gateway.aclose()
    await store.close()
    logger.info("rwalens_shutdown")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ProjectStore] = None,
    completion_client: Optional[CompletionClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: defaults to the environment-loaded settings
        store: defaults to ``build_store(settings)``
        completion_client: defaults to an LLMGateway for the configured provider
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.app_name,
        description="AI-driven risk assessment and investment recommendations for tokenized real-world assets.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_tags=[
            {"name": "health", "description": "Liveness probe"},
            {"name": "projects", "description": "RWA project submission, listing and analysis"},
            {"name": "alerts", "description": "Risk alerts"},
            {"name": "recommendations", "description": "Investment recommendations per risk tolerance"},
            {"name": "market-data", "description": "Asset-class market snapshots"},
            {"name": "stats", "description": "Dashboard aggregates"},
        ],
    )

    # ── Services (owned by the app, never module globals) ────────────
    gateway = None
    if completion_client is None:
        gateway = LLMGateway(settings)
        completion_client = gateway
    store = store or build_store(settings)
    engine = RiskAnalysisEngine(completion_client, timeout=settings.llm_timeout_seconds)
    orchestrator = AnalysisOrchestrator(store, engine, AlertEngine())

    app.state.settings = settings
    app.state.store = store
    app.state.gateway = gateway
    app.state.orchestrator = orchestrator
    app.state.worker = AnalysisWorker(orchestrator, max_queue=settings.analysis_queue_size)

    # ── Errors ────────────────────────────────────────────────────────
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # ── Middleware (last added = outermost) ──────────────────────────
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(ErrorHandlerMiddleware, debug=settings.debug)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routes ────────────────────────────────────────────────────────
    app.include_router(projects_router)
    app.include_router(alerts_router)
    app.include_router(recommendations_router)
    app.include_router(market_data_router)
    app.include_router(stats_router)

    @app.get("/health", tags=["health"])
    async def health():
        """Liveness probe. Does not check dependencies."""
        return {
            "status": "ok",
            "version": settings.app_version,
            "service": "rwalens",
            "analysis_backlog": app.state.worker.pending,
        }

    return app


configure_logging(default_settings)

# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rwalens.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        reload=default_settings.debug,
        log_level=default_settings.log_level.lower(),
    )
