"""
Project Endpoints.

GET   /api/v1/projects                 - list with filters
POST  /api/v1/projects                 - submit (201, analysis runs in background)
GET   /api/v1/projects/{id}            - project + latest analysis + recommendations
PATCH /api/v1/projects/{id}            - partial edit
POST  /api/v1/projects/{id}/analyze    - synchronous re-analysis
"""

import asyncio
import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from rwalens.api.deps import get_orchestrator, get_store, get_worker
from rwalens.schemas.analysis import RiskLevel
from rwalens.schemas.project import (
    AssetType,
    ProjectCreate,
    ProjectFilters,
    ProjectRead,
    ProjectUpdate,
    ProjectWithAnalysis,
)
from rwalens.services.orchestrator import AnalysisFailedError, AnalysisOrchestrator
from rwalens.services.worker import AnalysisWorker
from rwalens.storage.base import ProjectStore

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.get("", response_model=list[ProjectWithAnalysis])
async def list_projects(
    asset_type: Optional[AssetType] = Query(None, alias="assetType"),
    risk_level: Optional[RiskLevel] = Query(None, alias="riskLevel"),
    min_yield: Optional[float] = Query(None, alias="minYield"),
    max_yield: Optional[float] = Query(None, alias="maxYield"),
    min_score: Optional[int] = Query(None, alias="minScore"),
    max_score: Optional[int] = Query(None, alias="maxScore"),
    search: Optional[str] = Query(None, max_length=200),
    store: ProjectStore = Depends(get_store),
):
    filters = ProjectFilters(
        asset_type=asset_type,
        risk_level=risk_level,
        min_yield=min_yield,
        max_yield=max_yield,
        min_score=min_score,
        max_score=max_score,
        search=search.strip() if search and search.strip() else None,
    )
    return await store.list_projects(filters)


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    store: ProjectStore = Depends(get_store),
    worker: AnalysisWorker = Depends(get_worker),
):
    """Store the project as pending and queue its first analysis."""
    project = await store.create_project(body)
    try:
        worker.submit(project.id)
    except asyncio.QueueFull:
        # Project stays pending; it can be re-analyzed on request
        logger.warning("analysis_backlog_full", project_id=str(project.id))
    return project


@router.get("/{project_id}", response_model=ProjectWithAnalysis)
async def get_project(project_id: uuid.UUID, store: ProjectStore = Depends(get_store)):
    project = await store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    store: ProjectStore = Depends(get_store),
):
    project = await store.update_project(project_id, body)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("/{project_id}/analyze", response_model=ProjectWithAnalysis)
async def analyze_project(
    project_id: uuid.UUID,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """
    Run a fresh analysis now and return the updated project.

    An unreachable model still yields 200 with a fallback analysis. Only a
    failure to persist the run is reported as 500.
    """
    try:
        project = await orchestrator.reanalyze(project_id)
    except AnalysisFailedError:
        return JSONResponse(status_code=500, content={"error": "Failed to analyze project"})
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project
