"""FastAPI dependencies. Everything is owned by ``app.state``, set up in ``create_app``."""

from fastapi import Request

from rwalens.services.orchestrator import AnalysisOrchestrator
from rwalens.services.worker import AnalysisWorker
from rwalens.storage.base import ProjectStore


def get_store(request: Request) -> ProjectStore:
    return request.app.state.store


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    return request.app.state.orchestrator


def get_worker(request: Request) -> AnalysisWorker:
    return request.app.state.worker


__all__ = ["get_orchestrator", "get_store", "get_worker"]
