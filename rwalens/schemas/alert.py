"""Pydantic schemas for risk alerts."""

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Optional

from rwalens.schemas.base import CamelModel


class AlertType(StrEnum):
    RISK_INCREASE = "risk_increase"
    RISK_DECREASE = "risk_decrease"
    YIELD_CHANGE = "yield_change"
    MARKET_EVENT = "market_event"


class AlertSeverity(StrEnum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertDraft(CamelModel):
    """An alert before it is attached to a project and stored."""

    alert_type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    previous_value: Optional[float] = None
    new_value: Optional[float] = None


class AlertRead(AlertDraft):
    id: uuid.UUID
    project_id: uuid.UUID
    is_read: bool = False
    created_at: datetime


class AlertReadAck(CamelModel):
    success: bool = True
    alert_id: uuid.UUID
