from __future__ import annotations

import pytest

from agrihero.persistence.filters import AuditLogFilter
from agrihero.tests.utils.auth import create_test_session


BOB = {
    "username": "bob",
    "password": "x",
    "email": "b@x.com",
    "fullName": "Bob B",
    "role": "farmer",
    "region": "Kenya",
    "status": "active",
}


@pytest.mark.asyncio
async def test_create_user_then_get_returns_same_record(app, client) -> None:
    headers, admin = await create_test_session(app, role="support_agent")
    created = await client.post("/api/users", json=BOB, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["username"] == "bob"
    assert body["fullName"] == "Bob B"
    assert body["lastActive"]
    # Password hashes never appear in responses.
    assert "password" not in body

    fetched = await client.get(f"/api/users/{body['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json() == body

    stored = await app.state.repository.users.get(body["id"])
    assert stored.password != "x"
    logs = await app.state.repository.audit_logs.list_all(AuditLogFilter(action="user_creation"))
    assert len(logs) == 1
    assert logs[0].admin_id == admin.id
    assert logs[0].metadata == {"userId": body["id"], "userRole": "farmer"}


@pytest.mark.asyncio
async def test_list_users_filters_by_query_params(app, client) -> None:
    headers, _ = await create_test_session(app, role="regional_admin", region="Kenya")
    await client.post("/api/users", json=BOB, headers=headers)
    await client.post("/api/users", json={**BOB, "username": "ada", "region": "Nigeria"}, headers=headers)
    await client.post("/api/users", json={**BOB, "username": "wanjiru", "role": "vendor"}, headers=headers)

    response = await client.get("/api/users", params={"role": "farmer", "region": "Kenya"}, headers=headers)
    assert response.status_code == 200
    assert [user["username"] for user in response.json()] == ["bob"]

    # Unknown filter values simply match nothing.
    empty = await client.get("/api/users", params={"role": "astronaut"}, headers=headers)
    assert empty.status_code == 200
    assert empty.json() == []


@pytest.mark.asyncio
async def test_duplicate_username_is_a_conflict(app, client) -> None:
    headers, _ = await create_test_session(app, role="super_admin")
    assert (await client.post("/api/users", json=BOB, headers=headers)).status_code == 201
    duplicate = await client.post("/api/users", json=BOB, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "CONFLICT"
    assert duplicate.json()["error"]["details"] == {"field": "username"}


@pytest.mark.asyncio
async def test_invalid_user_body_is_rejected_without_audit(app, client) -> None:
    headers, _ = await create_test_session(app, role="support_agent")
    response = await client.post("/api/users", json={**BOB, "role": "emperor"}, headers=headers)
    assert response.status_code == 400
    payload = response.json()
    assert payload["error"]["code"] == "VALIDATION_ERROR"
    assert any(error["loc"][-1] == "role" for error in payload["error"]["details"]["errors"])
    assert await app.state.repository.audit_logs.list_all() == []


@pytest.mark.asyncio
async def test_update_user_merges_partial_and_audits_keys(app, client) -> None:
    headers, _ = await create_test_session(app, role="support_agent")
    user_id = (await client.post("/api/users", json=BOB, headers=headers)).json()["id"]

    response = await client.put(f"/api/users/{user_id}", json={"status": "suspended"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "suspended"
    assert response.json()["region"] == "Kenya"

    logs = await app.state.repository.audit_logs.list_all(AuditLogFilter(action="user_update"))
    assert logs[-1].metadata == {"userId": user_id, "updates": ["status"]}

    missing = await client.put("/api/users/9999", json={"status": "active"}, headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_regional_admin_cannot_delete_users(app, client) -> None:
    headers, _ = await create_test_session(app, role="regional_admin")
    user_id = (await client.post("/api/users", json=BOB, headers=headers)).json()["id"]

    response = await client.delete(f"/api/users/{user_id}", headers=headers)
    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Forbidden: Super Admin role required"
    assert await app.state.repository.users.get(user_id) is not None


@pytest.mark.asyncio
async def test_super_admin_deletes_user_and_revokes_sessions(app, client) -> None:
    headers, _ = await create_test_session(app, role="super_admin")
    victim_headers, victim = await create_test_session(app, role="support_agent")

    response = await client.delete(f"/api/users/{victim.id}", headers=headers)
    assert response.status_code == 204
    assert await app.state.repository.users.get(victim.id) is None
    assert (await client.get("/api/users", headers=victim_headers)).status_code == 401

    logs = await app.state.repository.audit_logs.list_all(AuditLogFilter(action="user_deletion"))
    assert logs[0].metadata == {"userId": victim.id, "userRole": "support_agent", "userEmail": victim.email}

    again = await client.delete(f"/api/users/{victim.id}", headers=headers)
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_update_audit_lists_camel_case_field_names(app, client) -> None:
    headers, _ = await create_test_session(app, role="support_agent")
    user_id = (await client.post("/api/users", json=BOB, headers=headers)).json()["id"]

    response = await client.put(f"/api/users/{user_id}", json={"fullName": "Robert B"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["fullName"] == "Robert B"

    logs = await app.state.repository.audit_logs.list_all(AuditLogFilter(action="user_update"))
    assert logs[-1].metadata == {"userId": user_id, "updates": ["fullName"]}


@pytest.mark.asyncio
async def test_blank_query_parameters_do_not_filter(app, client) -> None:
    headers, admin = await create_test_session(app, role="support_agent")
    response = await client.get("/api/users?role=&region=", headers=headers)
    assert response.status_code == 200
    assert [user["id"] for user in response.json()] == [admin.id]
