from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
import logging
from typing import Any, Generic

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from agrihero.core.errors import DatabaseError, DuplicateKeyError
from agrihero.domain.entities import (
    AuditLog,
    ComplianceReport,
    Content,
    FeatureFlag,
    ProduceMarket,
    SystemMetric,
    User,
)
from agrihero.domain.models import (
    AuditLogRow,
    Base,
    ComplianceReportRow,
    ContentRow,
    FeatureFlagRow,
    ProduceMarketRow,
    SystemMetricRow,
    UserRow,
)
from agrihero.persistence.db import create_engine, create_session_factory
from agrihero.persistence.filters import Eq, EntityFilter, matches
from agrihero.persistence.repository import E, as_utc, next_stamp, strip_managed, utc_now


logger = logging.getLogger(__name__)


class SqlAppendOnlyCollection(Generic[E]):
    """Collection backed by one relational table.

    Each call runs in its own session and commits before returning. Equality
    clauses become WHERE conditions; overlap clauses are evaluated on the
    loaded rows since array containment is not portable across dialects.
    """

    def __init__(
        self,
        entity: type[E],
        model: type[Base],
        sessions: async_sessionmaker[AsyncSession],
        *,
        renames: Mapping[str, str] | None = None,
    ) -> None:
        self.entity = entity
        self.model = model
        self._sessions = sessions
        # Entity field -> ORM attribute, for attributes that cannot share the entity name.
        self._renames = dict(renames or {})

    def _attr(self, field: str) -> str:
        return self._renames.get(field, field)

    def _to_entity(self, row: Any) -> E:
        values: dict[str, Any] = {}
        for field in self.entity.model_fields:
            value = getattr(row, self._attr(field))
            values[field] = as_utc(value) if isinstance(value, datetime) else value
        return self.entity.model_validate(values)

    def _to_columns(self, values: Mapping[str, Any]) -> dict[str, Any]:
        return {self._attr(field): value for field, value in values.items()}

    def _complete(self, values: Mapping[str, Any]) -> dict[str, Any]:
        # Fill entity defaults so both backends store the same field set.
        record = self.entity.model_validate({**values, "id": 0})
        return record.model_dump(exclude={"id"})

    async def _check_unique(
        self, session: AsyncSession, values: Mapping[str, Any], *, exclude_id: int | None
    ) -> None:
        for field in self.entity.unique_fields:
            if field not in values:
                continue
            column = getattr(self.model, self._attr(field))
            stmt = select(self.model.id).where(column == values[field])
            if exclude_id is not None:
                stmt = stmt.where(self.model.id != exclude_id)
            if (await session.execute(stmt.limit(1))).first() is not None:
                raise DuplicateKeyError(entity=self.entity.__name__, field=field, value=values[field])

    def _duplicate_from(self, values: Mapping[str, Any]) -> DuplicateKeyError:
        field = next((f for f in self.entity.unique_fields if f in values), "id")
        return DuplicateKeyError(entity=self.entity.__name__, field=field, value=values.get(field))

    async def get(self, record_id: int) -> E | None:
        try:
            async with self._sessions() as session:
                row = await session.get(self.model, record_id)
                return self._to_entity(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to load {self.entity.__name__} {record_id}") from exc

    async def create(self, data: Mapping[str, Any]) -> E:
        values = strip_managed(self.entity, data)
        now = utc_now()
        for stamp in self.entity.created_stamps:
            values[stamp] = now
        values = self._complete(values)
        async with self._sessions() as session:
            try:
                await self._check_unique(session, values, exclude_id=None)
                row = self.model(**self._to_columns(values))
                session.add(row)
                await session.commit()
            except IntegrityError as exc:
                # Unique constraints still guard against a concurrent insert slipping past the check.
                await session.rollback()
                raise self._duplicate_from(values) from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                raise DatabaseError(f"Failed to create {self.entity.__name__}") from exc
            return self._to_entity(row)

    async def list_all(self, filters: EntityFilter | None = None) -> list[E]:
        clauses = filters.clauses() if filters is not None else []
        # Ids are assigned monotonically, so id order is insertion order.
        stmt = select(self.model).order_by(self.model.id)
        remaining = []
        for clause in clauses:
            if isinstance(clause, Eq):
                stmt = stmt.where(getattr(self.model, self._attr(clause.field)) == clause.value)
            else:
                remaining.append(clause)
        try:
            async with self._sessions() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to list {self.entity.__name__} records") from exc
        records = [self._to_entity(row) for row in rows]
        return [record for record in records if matches(record, remaining)]

    async def find_first(self, **criteria: Any) -> E | None:
        stmt = select(self.model).order_by(self.model.id).limit(1)
        for field, value in criteria.items():
            stmt = stmt.where(getattr(self.model, self._attr(field)) == value)
        try:
            async with self._sessions() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to query {self.entity.__name__}") from exc
        return self._to_entity(row) if row is not None else None


class SqlUpdatableCollection(SqlAppendOnlyCollection[E]):
    async def _apply(self, record_id: int, changes: Mapping[str, Any], stamp_fields: tuple[str, ...]) -> E | None:
        async with self._sessions() as session:
            try:
                row = await session.get(self.model, record_id)
                if row is None:
                    return None
                existing = self._to_entity(row)
                await self._check_unique(session, changes, exclude_id=record_id)
                merged = {**existing.model_dump(), **changes}
                for stamp in stamp_fields:
                    merged[stamp] = next_stamp(getattr(existing, stamp))
                record = self.entity.model_validate(merged)
                for field in (*changes.keys(), *stamp_fields):
                    setattr(row, self._attr(field), getattr(record, field))
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise self._duplicate_from(changes) from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                raise DatabaseError(f"Failed to update {self.entity.__name__} {record_id}") from exc
            return record

    async def update(self, record_id: int, partial: Mapping[str, Any]) -> E | None:
        changes = strip_managed(self.entity, partial)
        return await self._apply(record_id, changes, self.entity.updated_stamps)

    async def touch(self, record_id: int, *stamp_fields: str) -> E | None:
        return await self._apply(record_id, {}, stamp_fields)


class SqlCollection(SqlUpdatableCollection[E]):
    async def delete(self, record_id: int) -> bool:
        async with self._sessions() as session:
            try:
                row = await session.get(self.model, record_id)
                if row is None:
                    return False
                await session.delete(row)
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise DatabaseError(f"Failed to delete {self.entity.__name__} {record_id}") from exc
            return True


class SqlRepository:
    """Relational backend sharing the collection surface of the in-memory store."""

    def __init__(self, engine: AsyncEngine, *, create_schema: bool = True) -> None:
        self.engine = engine
        self._create_schema = create_schema
        sessions = create_session_factory(engine)
        self.users = SqlCollection(User, UserRow, sessions)
        self.contents = SqlCollection(Content, ContentRow, sessions)
        self.feature_flags = SqlCollection(FeatureFlag, FeatureFlagRow, sessions)
        self.audit_logs = SqlAppendOnlyCollection(
            AuditLog, AuditLogRow, sessions, renames={"metadata": "metadata_json"}
        )
        self.compliance_reports = SqlUpdatableCollection(ComplianceReport, ComplianceReportRow, sessions)
        self.system_metrics = SqlAppendOnlyCollection(SystemMetric, SystemMetricRow, sessions)
        self.produce_markets = SqlCollection(ProduceMarket, ProduceMarketRow, sessions)

    @classmethod
    def from_url(cls, database_url: str, *, create_schema: bool = True) -> "SqlRepository":
        return cls(create_engine(database_url), create_schema=create_schema)

    async def startup(self) -> None:
        if not self._create_schema:
            return
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("sql_schema_ready url=%s", self.engine.url.render_as_string(hide_password=True))

    async def shutdown(self) -> None:
        await self.engine.dispose()

    async def reset(self) -> None:
        # Recreate tables so id sequences restart along with the data.
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
