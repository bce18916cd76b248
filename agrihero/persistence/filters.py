from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, fields
from typing import Any, Union


@dataclass(frozen=True)
class Eq:
    # Match records whose field value equals the filter value.
    field: str
    value: Any


@dataclass(frozen=True)
class Overlaps:
    # Match records whose list field shares at least one element with the filter values.
    field: str
    values: tuple[Any, ...]


FilterClause = Union[Eq, Overlaps]


def clause_matches(clause: FilterClause, record: Any) -> bool:
    value = getattr(record, clause.field, None)
    if isinstance(clause, Overlaps):
        if not isinstance(value, (list, tuple, set, frozenset)):
            return False
        return any(item in value for item in clause.values)
    return value == clause.value


def matches(record: Any, clauses: Sequence[FilterClause]) -> bool:
    return all(clause_matches(clause, record) for clause in clauses)


def apply_filter(records: Iterable[Any], entity_filter: "EntityFilter | None") -> list[Any]:
    # Linear scan preserving the incoming (insertion) order.
    clauses = entity_filter.clauses() if entity_filter is not None else []
    return [record for record in records if matches(record, clauses)]


class EntityFilter:
    """Base for per-entity filters.

    Unset attributes (``None``, or an empty string as sent by a blank query
    parameter) contribute no clause; list-valued attributes become
    :class:`Overlaps` clauses and everything else an :class:`Eq` clause.
    """

    def clauses(self) -> list[FilterClause]:
        result: list[FilterClause] = []
        for field_def in fields(self):  # type: ignore[arg-type]
            value = getattr(self, field_def.name)
            if value is None or value == "":
                continue
            if isinstance(value, (list, tuple, set, frozenset)):
                result.append(Overlaps(field_def.name, tuple(value)))
            else:
                result.append(Eq(field_def.name, value))
        return result


@dataclass(frozen=True)
class UserFilter(EntityFilter):
    role: str | None = None
    region: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class ContentFilter(EntityFilter):
    type: str | None = None
    status: str | None = None
    reported: bool | None = None
    region: str | None = None


@dataclass(frozen=True)
class FeatureFlagFilter(EntityFilter):
    scope: str | None = None
    enabled: bool | None = None
    regions: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ComplianceReportFilter(EntityFilter):
    type: str | None = None
    status: str | None = None
    region: str | None = None


@dataclass(frozen=True)
class SystemMetricFilter(EntityFilter):
    type: str | None = None


@dataclass(frozen=True)
class AuditLogFilter(EntityFilter):
    action: str | None = None
    admin_id: int | None = None


@dataclass(frozen=True)
class ProduceMarketFilter(EntityFilter):
    produce_name: str | None = None
    category: str | None = None
    region: str | None = None
    status: str | None = None
