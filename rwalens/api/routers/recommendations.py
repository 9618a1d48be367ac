"""GET /api/v1/recommendations - investment recommendations, newest first."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from rwalens.api.deps import get_store
from rwalens.schemas.analysis import RecommendationRead
from rwalens.storage.base import ProjectStore

router = APIRouter(prefix="/api/v1/recommendations", tags=["recommendations"])


@router.get("", response_model=list[RecommendationRead])
async def list_recommendations(
    project_id: Optional[uuid.UUID] = Query(None, alias="projectId"),
    store: ProjectStore = Depends(get_store),
):
    return await store.list_recommendations(project_id)
