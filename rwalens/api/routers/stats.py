"""GET /api/v1/stats - dashboard aggregates."""

from fastapi import APIRouter, Depends

from rwalens.api.deps import get_store
from rwalens.schemas.stats import StatsSummary
from rwalens.storage.base import ProjectStore

router = APIRouter(prefix="/api/v1/stats", tags=["stats"])


@router.get("", response_model=StatsSummary)
async def get_stats(store: ProjectStore = Depends(get_store)):
    """Project count, total value and analysis count, plus distributions over latest analyses."""
    return await store.get_stats()
