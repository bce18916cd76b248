from __future__ import annotations

from datetime import datetime

import pytest

from agrihero.persistence.filters import AuditLogFilter
from agrihero.services.seed import seed_demo_data
from agrihero.tests.utils.auth import create_test_session


@pytest.mark.asyncio
async def test_toggle_flag_refreshes_stamp_and_audits(app, client) -> None:
    await seed_demo_data(app.state.repository, app.state.settings)
    headers, admin = await create_test_session(app, role="super_admin")
    before = await app.state.repository.feature_flags.get(1)
    assert before.enabled is True

    response = await client.put("/api/feature-flags/1", json={"enabled": False}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["enabled"] is False
    assert body["updatedBy"] == admin.id
    assert datetime.fromisoformat(body["lastUpdated"]) > before.last_updated

    logs = await app.state.repository.audit_logs.list_all(AuditLogFilter(action="feature_flag_update"))
    assert len(logs) == 1
    assert logs[0].metadata["oldEnabled"] is True
    assert logs[0].metadata["newEnabled"] is False
    assert logs[0].metadata["flagName"] == before.name


@pytest.mark.asyncio
async def test_update_without_enabled_reports_unchanged_value(app, client) -> None:
    headers, _ = await create_test_session(app, role="super_admin")
    flag = await app.state.repository.feature_flags.create({"name": "Chat", "enabled": False})
    response = await client.put(f"/api/feature-flags/{flag.id}", json={"description": "In-app chat"}, headers=headers)
    assert response.status_code == 200
    logs = await app.state.repository.audit_logs.list_all(AuditLogFilter(action="feature_flag_update"))
    assert logs[0].metadata["oldEnabled"] is False
    assert logs[0].metadata["newEnabled"] is False


@pytest.mark.asyncio
async def test_create_flag_and_reject_duplicate_name(app, client) -> None:
    headers, admin = await create_test_session(app, role="super_admin")
    payload = {"name": "IoT Sync", "scope": "region", "regions": ["Kenya", "Uganda"]}
    created = await client.post("/api/feature-flags", json=payload, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["enabled"] is True
    assert body["updatedBy"] == admin.id
    assert body["regions"] == ["Kenya", "Uganda"]

    logs = await app.state.repository.audit_logs.list_all(AuditLogFilter(action="feature_flag_creation"))
    assert logs[0].metadata == {"flagId": body["id"], "flagName": "IoT Sync"}

    duplicate = await client.post("/api/feature-flags", json=payload, headers=headers)
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_list_flags_by_region_and_enabled(app, client) -> None:
    await seed_demo_data(app.state.repository, app.state.settings)
    headers, _ = await create_test_session(app, role="support_agent")

    kenya = await client.get("/api/feature-flags", params={"region": "Kenya"}, headers=headers)
    assert [flag["name"] for flag in kenya.json()] == ["Agricultural Chat"]

    disabled = await client.get("/api/feature-flags", params={"enabled": "false"}, headers=headers)
    assert [flag["name"] for flag in disabled.json()] == ["Agricultural Chat"]

    missing = await client.put("/api/feature-flags/999", json={"enabled": True}, headers=await _super(app))
    assert missing.status_code == 404


async def _super(app) -> dict[str, str]:
    headers, _ = await create_test_session(app, role="super_admin")
    return headers
