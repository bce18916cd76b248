from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol, TypeVar

from agrihero.domain.entities import (
    AuditLog,
    ComplianceReport,
    Content,
    Entity,
    FeatureFlag,
    ProduceMarket,
    SystemMetric,
    User,
)
from agrihero.persistence.filters import EntityFilter


E = TypeVar("E", bound=Entity)

_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def next_stamp(previous: datetime | None) -> datetime:
    # Refreshed timestamps must be strictly later than the value they replace.
    now = utc_now()
    if previous is not None and now <= as_utc(previous):
        return as_utc(previous) + _TICK
    return now


def strip_managed(entity: type[Entity], data: Mapping[str, Any]) -> dict[str, Any]:
    # Drop caller-supplied ids and repository-stamped timestamps.
    managed = {"id", *entity.created_stamps, *entity.updated_stamps}
    return {key: value for key, value in data.items() if key not in managed}


class AppendOnlyCollection(Protocol[E]):
    entity: type[E]

    async def get(self, record_id: int) -> E | None: ...

    async def create(self, data: Mapping[str, Any]) -> E: ...

    async def list_all(self, filters: EntityFilter | None = None) -> list[E]: ...

    async def find_first(self, **criteria: Any) -> E | None: ...


class UpdatableCollection(AppendOnlyCollection[E], Protocol[E]):
    async def update(self, record_id: int, partial: Mapping[str, Any]) -> E | None: ...

    async def touch(self, record_id: int, *stamp_fields: str) -> E | None: ...


class Collection(UpdatableCollection[E], Protocol[E]):
    async def delete(self, record_id: int) -> bool: ...


class Repository(Protocol):
    """Sole owner of entity state, one collection per entity type.

    AuditLog and SystemMetric are append-only; ComplianceReport can be updated
    but not deleted; the remaining collections support the full CRUD surface.
    """

    users: Collection[User]
    contents: Collection[Content]
    feature_flags: Collection[FeatureFlag]
    audit_logs: AppendOnlyCollection[AuditLog]
    compliance_reports: UpdatableCollection[ComplianceReport]
    system_metrics: AppendOnlyCollection[SystemMetric]
    produce_markets: Collection[ProduceMarket]

    async def startup(self) -> None: ...

    async def shutdown(self) -> None: ...

    async def reset(self) -> None: ...
