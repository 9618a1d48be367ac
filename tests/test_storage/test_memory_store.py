"""Behaviour specific to InMemoryProjectStore."""

import pytest
from pydantic import ValidationError

from rwalens.schemas.alert import AlertDraft, AlertSeverity, AlertType
from rwalens.schemas.project import ProjectStatus
from rwalens.storage import InMemoryProjectStore
from tests.factories import project_create
from tests.test_storage.test_store_contract import _result

pytestmark = pytest.mark.asyncio


async def test_invalid_alert_leaves_no_partial_state():
    store = InMemoryProjectStore()
    project = await store.create_project(project_create())
    # Skips validation, so the failure surfaces inside record_analysis
    bad_alert = AlertDraft.model_construct(
        alert_type=AlertType.RISK_DECREASE,
        severity=AlertSeverity.INFO,
        title=None,
        message="Done.",
        previous_value=None,
        new_value=80,
    )

    with pytest.raises(ValidationError):
        await store.record_analysis(project.id, _result(82, "low"), bad_alert)

    fetched = await store.get_project(project.id)
    assert fetched.status == ProjectStatus.PENDING
    assert fetched.risk_analysis is None
    assert await store.list_recommendations(project.id) == []
    assert await store.list_alerts(project.id) == []
