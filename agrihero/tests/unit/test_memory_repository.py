from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from agrihero.core.errors import DuplicateKeyError
from agrihero.persistence.filters import FeatureFlagFilter, UserFilter
from agrihero.persistence.memory import MemoryRepository
from agrihero.persistence.repository import next_stamp


def _user(username: str, **overrides) -> dict:
    return {
        "username": username,
        "password": "hash",
        "email": f"{username}@example.com",
        "full_name": username.title(),
        **overrides,
    }


@pytest.mark.asyncio
async def test_create_assigns_sequential_ids_and_defaults() -> None:
    repo = MemoryRepository()
    first = await repo.users.create(_user("amina"))
    second = await repo.users.create(_user("bob", role="vendor"))
    assert (first.id, second.id) == (1, 2)
    assert first.role == "farmer"
    assert first.status == "active"
    assert first.last_active.tzinfo is not None


@pytest.mark.asyncio
async def test_create_ignores_caller_supplied_id_and_stamps() -> None:
    repo = MemoryRepository()
    stale = datetime(2001, 1, 1, tzinfo=timezone.utc)
    user = await repo.users.create(_user("amina", id=99, last_active=stale))
    assert user.id == 1
    assert user.last_active > stale


@pytest.mark.asyncio
async def test_ids_are_not_reused_after_delete() -> None:
    repo = MemoryRepository()
    first = await repo.users.create(_user("amina"))
    assert await repo.users.delete(first.id) is True
    assert await repo.users.delete(first.id) is False
    second = await repo.users.create(_user("bob"))
    assert second.id == 2
    assert await repo.users.get(first.id) is None


@pytest.mark.asyncio
async def test_update_merges_partial_and_returns_none_when_absent() -> None:
    repo = MemoryRepository()
    user = await repo.users.create(_user("amina", region="Kenya"))
    updated = await repo.users.update(user.id, {"status": "suspended"})
    assert updated is not None
    assert updated.status == "suspended"
    assert updated.region == "Kenya"
    assert updated.username == "amina"
    assert await repo.users.update(404, {"status": "active"}) is None


@pytest.mark.asyncio
async def test_update_refreshes_update_stamp_strictly() -> None:
    repo = MemoryRepository()
    flag = await repo.feature_flags.create({"name": "Chat", "enabled": False})
    updated = await repo.feature_flags.update(flag.id, {"enabled": True})
    assert updated is not None
    assert updated.enabled is True
    assert updated.last_updated > flag.last_updated


@pytest.mark.asyncio
async def test_returned_records_are_copies() -> None:
    repo = MemoryRepository()
    flag = await repo.feature_flags.create({"name": "Chat", "regions": ["Kenya"]})
    flag.regions.append("Nigeria")
    stored = await repo.feature_flags.get(flag.id)
    assert stored is not None
    assert stored.regions == ["Kenya"]


@pytest.mark.asyncio
async def test_unique_fields_reject_duplicates_on_create_and_update() -> None:
    repo = MemoryRepository()
    await repo.users.create(_user("amina"))
    other = await repo.users.create(_user("bob"))
    with pytest.raises(DuplicateKeyError) as excinfo:
        await repo.users.create(_user("amina"))
    assert excinfo.value.field == "username"
    with pytest.raises(DuplicateKeyError):
        await repo.users.update(other.id, {"username": "amina"})
    # Re-saving a record's own value is not a conflict.
    same = await repo.users.update(other.id, {"username": "bob"})
    assert same is not None


@pytest.mark.asyncio
async def test_list_all_filters_in_insertion_order() -> None:
    repo = MemoryRepository()
    await repo.users.create(_user("a", role="farmer", region="Kenya"))
    await repo.users.create(_user("b", role="vendor", region="Kenya"))
    await repo.users.create(_user("c", role="farmer", region="Nigeria"))
    farmers = await repo.users.list_all(UserFilter(role="farmer"))
    assert [user.username for user in farmers] == ["a", "c"]
    assert len(await repo.users.list_all()) == 3


@pytest.mark.asyncio
async def test_region_filter_matches_flag_region_lists() -> None:
    repo = MemoryRepository()
    await repo.feature_flags.create({"name": "Global"})
    await repo.feature_flags.create({"name": "Chat", "scope": "region", "regions": ["Kenya", "Uganda"]})
    flags = await repo.feature_flags.list_all(FeatureFlagFilter(regions=("Uganda",)))
    assert [flag.name for flag in flags] == ["Chat"]


@pytest.mark.asyncio
async def test_touch_refreshes_only_named_stamps() -> None:
    repo = MemoryRepository()
    report = await repo.compliance_reports.create(
        {"title": "GDPR", "type": "gdpr", "frequency": "weekly", "pending_actions": 3}
    )
    touched = await repo.compliance_reports.touch(report.id, "last_generated")
    assert touched is not None
    assert touched.last_generated > report.last_generated
    assert touched.pending_actions == 3
    assert await repo.compliance_reports.touch(404, "last_generated") is None


@pytest.mark.asyncio
async def test_find_first_matches_all_criteria() -> None:
    repo = MemoryRepository()
    await repo.users.create(_user("amina", role="vendor"))
    assert (await repo.users.find_first(username="amina")).role == "vendor"
    assert await repo.users.find_first(username="amina", role="farmer") is None


@pytest.mark.asyncio
async def test_reset_clears_records_and_id_counters() -> None:
    repo = MemoryRepository()
    await repo.users.create(_user("amina"))
    await repo.audit_logs.create({"action": "user_creation"})
    await repo.reset()
    assert await repo.users.list_all() == []
    assert await repo.audit_logs.list_all() == []
    assert (await repo.users.create(_user("bob"))).id == 1


def test_next_stamp_is_strictly_later_than_previous() -> None:
    future = datetime.now(timezone.utc) + timedelta(seconds=5)
    assert next_stamp(future) > future
    # Naive values are read as UTC.
    naive = (datetime.now(timezone.utc) + timedelta(seconds=5)).replace(tzinfo=None)
    assert next_stamp(naive).tzinfo is not None
    assert next_stamp(None).tzinfo is not None
