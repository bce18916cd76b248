from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic

from agrihero.core.errors import DuplicateKeyError
from agrihero.domain.entities import (
    AuditLog,
    ComplianceReport,
    Content,
    FeatureFlag,
    ProduceMarket,
    SystemMetric,
    User,
)
from agrihero.persistence.filters import EntityFilter, apply_filter
from agrihero.persistence.repository import E, next_stamp, strip_managed, utc_now


class MemoryAppendOnlyCollection(Generic[E]):
    # Records live in an insertion-ordered dict keyed by id; callers only ever see copies.

    def __init__(self, entity: type[E]) -> None:
        self.entity = entity
        self._records: dict[int, E] = {}
        self._next_id = 1

    def clear(self) -> None:
        self._records.clear()
        self._next_id = 1

    async def get(self, record_id: int) -> E | None:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    async def create(self, data: Mapping[str, Any]) -> E:
        values = strip_managed(self.entity, data)
        self._check_unique(values, exclude_id=None)
        now = utc_now()
        for stamp in self.entity.created_stamps:
            values[stamp] = now
        record = self.entity.model_validate({**values, "id": self._next_id})
        self._records[record.id] = record
        # Ids are never reused, even after deletes.
        self._next_id += 1
        return record.model_copy(deep=True)

    async def list_all(self, filters: EntityFilter | None = None) -> list[E]:
        return [record.model_copy(deep=True) for record in apply_filter(self._records.values(), filters)]

    async def find_first(self, **criteria: Any) -> E | None:
        for record in self._records.values():
            if all(getattr(record, key) == value for key, value in criteria.items()):
                return record.model_copy(deep=True)
        return None

    def _check_unique(self, values: Mapping[str, Any], *, exclude_id: int | None) -> None:
        for field in self.entity.unique_fields:
            if field not in values:
                continue
            for record in self._records.values():
                if record.id != exclude_id and getattr(record, field) == values[field]:
                    raise DuplicateKeyError(entity=self.entity.__name__, field=field, value=values[field])


class MemoryUpdatableCollection(MemoryAppendOnlyCollection[E]):
    async def update(self, record_id: int, partial: Mapping[str, Any]) -> E | None:
        existing = self._records.get(record_id)
        if existing is None:
            return None
        changes = strip_managed(self.entity, partial)
        self._check_unique(changes, exclude_id=record_id)
        merged = {**existing.model_dump(), **changes}
        for stamp in self.entity.updated_stamps:
            merged[stamp] = next_stamp(getattr(existing, stamp))
        record = self.entity.model_validate(merged)
        self._records[record_id] = record
        return record.model_copy(deep=True)

    async def touch(self, record_id: int, *stamp_fields: str) -> E | None:
        existing = self._records.get(record_id)
        if existing is None:
            return None
        stamps = {field: next_stamp(getattr(existing, field)) for field in stamp_fields}
        record = existing.model_copy(update=stamps, deep=True)
        self._records[record_id] = record
        return record.model_copy(deep=True)


class MemoryCollection(MemoryUpdatableCollection[E]):
    async def delete(self, record_id: int) -> bool:
        return self._records.pop(record_id, None) is not None


class MemoryRepository:
    """In-process store; state lives only as long as this object."""

    def __init__(self) -> None:
        self.users = MemoryCollection(User)
        self.contents = MemoryCollection(Content)
        self.feature_flags = MemoryCollection(FeatureFlag)
        self.audit_logs = MemoryAppendOnlyCollection(AuditLog)
        self.compliance_reports = MemoryUpdatableCollection(ComplianceReport)
        self.system_metrics = MemoryAppendOnlyCollection(SystemMetric)
        self.produce_markets = MemoryCollection(ProduceMarket)

    def _collections(self) -> list[MemoryAppendOnlyCollection[Any]]:
        return [
            self.users,
            self.contents,
            self.feature_flags,
            self.audit_logs,
            self.compliance_reports,
            self.system_metrics,
            self.produce_markets,
        ]

    async def startup(self) -> None:
        return None

    async def shutdown(self) -> None:
        return None

    async def reset(self) -> None:
        # Clear records and id counters so each test starts from an empty store.
        for collection in self._collections():
            collection.clear()
