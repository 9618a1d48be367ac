"""
Market Data Endpoints.

GET /api/v1/market-data    - snapshots (assetType)
PUT /api/v1/market-data    - insert or replace the snapshot for (assetType, symbol)
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from rwalens.api.deps import get_store
from rwalens.schemas.market import MarketDataRead, MarketDataUpsert
from rwalens.schemas.project import AssetType
from rwalens.storage.base import ProjectStore

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/market-data", tags=["market-data"])


@router.get("", response_model=list[MarketDataRead])
async def list_market_data(
    asset_type: Optional[AssetType] = Query(None, alias="assetType"),
    store: ProjectStore = Depends(get_store),
):
    return await store.list_market_data(str(asset_type) if asset_type else None)


@router.put("", response_model=MarketDataRead)
async def upsert_market_data(body: MarketDataUpsert, store: ProjectStore = Depends(get_store)):
    row = await store.upsert_market_data(body)
    logger.info("market_data_upserted", asset_type=str(row.asset_type), symbol=row.symbol, price=row.price)
    return row
