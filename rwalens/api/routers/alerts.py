"""
Alert Endpoints.

GET   /api/v1/alerts              - list, newest first (projectId, unreadOnly)
PATCH /api/v1/alerts/{id}/read    - mark as read (idempotent)
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from rwalens.api.deps import get_store
from rwalens.schemas.alert import AlertRead, AlertReadAck
from rwalens.storage.base import ProjectStore

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


@router.get("", response_model=list[AlertRead])
async def list_alerts(
    project_id: Optional[uuid.UUID] = Query(None, alias="projectId"),
    unread_only: bool = Query(False, alias="unreadOnly"),
    store: ProjectStore = Depends(get_store),
):
    return await store.list_alerts(project_id=project_id, unread_only=unread_only)


@router.patch("/{alert_id}/read", response_model=AlertReadAck)
async def mark_alert_read(alert_id: uuid.UUID, store: ProjectStore = Depends(get_store)):
    if not await store.mark_alert_read(alert_id):
        raise HTTPException(status_code=404, detail="Alert not found")
    return AlertReadAck(alert_id=alert_id)
