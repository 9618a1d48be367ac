"""Pydantic schemas for market data snapshots."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from rwalens.schemas.base import CamelModel
from rwalens.schemas.project import AssetType


class MarketDataUpsert(CamelModel):
    asset_type: AssetType
    symbol: str = Field(min_length=1, max_length=32)
    price: float = Field(ge=0)
    # to_camel would yield "...24H"
    price_change_24h: float = Field(alias="priceChange24h")
    volume_24h: float = Field(ge=0, alias="volume24h")
    market_cap: Optional[float] = Field(default=None, ge=0)

    @field_validator("symbol", mode="before")
    @classmethod
    def _upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class MarketDataRead(MarketDataUpsert):
    id: uuid.UUID
    last_updated: datetime
