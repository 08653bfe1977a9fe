"""
Generic repository for synchronized entities

Provides CRUD for one table plus outbox bookkeeping: every create, update
and delete writes exactly one SyncRecord in the same transaction as the
primary write.
Reference: https://docs.sqlalchemy.org/en/20/orm/session_transaction.html
"""
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskly.core.exceptions import PersistenceException, ValidationException
from taskly.models.mixins import (
    IsoDateTime,
    SyncedEntityMixin,
    SyncStatus,
    generate_id,
    to_utc,
    utcnow,
)
from taskly.models.sync_record import SyncOperation, SyncRecord

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SyncedEntityMixin)

# Input accepted by create/update: a pydantic schema or a plain mapping
EntityData = Union[BaseModel, Mapping[str, Any]]

# Columns only the repository (or the sync service) may write
PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at", "sync_status", "last_sync_at"})


class BaseRepository(Generic[ModelT]):
    """
    CRUD for a single entity table with automatic outbox enqueueing

    Subclasses set `model`; the outbox table name is the model's table.
    Instances are cheap and hold only the session factory, so one instance
    per entity kind is built at startup and shared.
    """

    model: type[ModelT]

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    # ---- sessions ----

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Session with an open transaction

        Commits when the block exits normally and rolls back otherwise.
        Store errors surface as PersistenceException; any other exception
        (validation, domain rules) propagates unchanged after the rollback.
        """
        async with self._session_maker() as session:
            try:
                async with session.begin():
                    yield session
            except SQLAlchemyError as e:
                logger.error(f"Write to {self.table_name} failed: {e}", exc_info=True)
                raise PersistenceException(f"Failed to write {self.table_name}: {e}") from e

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Read-only session; store errors surface as PersistenceException"""
        async with self._session_maker() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                logger.error(f"Read from {self.table_name} failed: {e}", exc_info=True)
                raise PersistenceException(f"Failed to read {self.table_name}: {e}") from e

    # ---- helpers shared by subclasses ----

    # Text columns that must hold a non-blank value; stripped before writing
    required_text_fields: tuple[str, ...] = ()

    def _prepare(self, data: EntityData, creating: bool = False) -> dict[str, Any]:
        """
        Turn create/update input into column values.

        Only explicitly-set schema fields are kept, enums are stored by
        value, timestamps become aware UTC, and protected bookkeeping
        columns are dropped.

        Raises:
            ValidationException: On unknown fields, a blank required text
                field, or None for a non-nullable column on update
        """
        if isinstance(data, BaseModel):
            values = data.model_dump(exclude_unset=True)
        else:
            values = dict(data)

        columns = {column.key: column for column in self.model.__table__.columns}
        unknown = set(values) - set(columns)
        if unknown:
            raise ValidationException(
                f"Unknown {self.table_name} fields: {', '.join(sorted(unknown))}"
            )

        prepared: dict[str, Any] = {}
        for key, value in values.items():
            if key in PROTECTED_FIELDS:
                continue
            if isinstance(value, Enum):
                value = value.value
            elif value is not None and isinstance(columns[key].type, IsoDateTime):
                value = to_utc(value)
            prepared[key] = value

        for field in self.required_text_fields:
            if field not in prepared and not creating:
                continue
            value = prepared.get(field)
            if not isinstance(value, str) or not value.strip():
                raise ValidationException(f"{self.table_name} {field} must not be blank")
            prepared[field] = value.strip()

        if not creating:
            for key, value in prepared.items():
                if value is None and not columns[key].nullable:
                    raise ValidationException(f"{self.table_name} {key} cannot be null")
        return prepared

    async def _check_references(self, session: AsyncSession, values: dict[str, Any]) -> None:
        """
        Validate foreign keys in `values` before writing.

        Overridden by repositories whose entities reference other tables.
        """
        return None

    async def _after_update(
        self, session: AsyncSession, entity: ModelT, previous: dict[str, Any]
    ) -> None:
        """
        Hook run inside the update transaction, after the entity is written.

        `previous` holds the old values of the fields that were updated.
        """
        return None

    @staticmethod
    def _enqueue(
        session: AsyncSession,
        entity: SyncedEntityMixin,
        operation: SyncOperation,
        snapshot: Optional[dict[str, Any]] = None,
    ) -> SyncRecord:
        """Add one outbox record for `entity` to the current transaction"""
        record = SyncRecord(
            id=generate_id(),
            table_name=entity.__tablename__,
            record_id=entity.id,
            operation=operation.value,
            data=snapshot if snapshot is not None else entity.to_dict(),
            timestamp=utcnow(),
            retry_count=0,
        )
        session.add(record)
        return record

    @classmethod
    async def _insert(cls, session: AsyncSession, entity: SyncedEntityMixin) -> None:
        """
        Persist a new entity as pending and enqueue its create record.
        """
        now = utcnow()
        entity.id = generate_id()
        entity.created_at = now
        entity.updated_at = now
        entity.sync_status = SyncStatus.PENDING.value

        # Apply scalar column defaults now so the outbox snapshot is complete
        for column in entity.__table__.columns:
            if getattr(entity, column.key) is None and column.default is not None:
                if column.default.is_scalar:
                    setattr(entity, column.key, column.default.arg)

        session.add(entity)
        await session.flush()
        cls._enqueue(session, entity, SyncOperation.CREATE)

    async def _apply_update(
        self, session: AsyncSession, entity: SyncedEntityMixin, values: dict[str, Any]
    ) -> None:
        """
        Write `values` onto an entity, mark it pending and enqueue an update record.

        Works for any synchronized entity so that cascades from one
        repository into another table are still recorded in the outbox.
        """
        for field, value in values.items():
            setattr(entity, field, value)
        entity.updated_at = max(utcnow(), entity.created_at)
        entity.sync_status = SyncStatus.PENDING.value

        await session.flush()
        self._enqueue(session, entity, SyncOperation.UPDATE)

    @classmethod
    async def _remove(cls, session: AsyncSession, entity: SyncedEntityMixin) -> None:
        """Delete an entity and enqueue a delete record carrying its last state"""
        snapshot = entity.to_dict()
        await session.delete(entity)
        await session.flush()
        cls._enqueue(session, entity, SyncOperation.DELETE, snapshot)

    # ---- public API ----

    async def create(self, data: EntityData) -> ModelT:
        """
        Create a new entity

        Assigns a fresh id and timestamps, marks the entity pending, and
        enqueues a create record in the same transaction.

        Raises:
            ValidationException: If a referenced row does not exist
            PersistenceException: If the store write fails
        """
        values = self._prepare(data, creating=True)
        async with self._transaction() as session:
            await self._check_references(session, values)
            entity = self.model(**values)
            await self._insert(session, entity)

        logger.info(f"Created {self.table_name} record {entity.id}")
        return entity

    async def get_by_id(self, entity_id: str) -> Optional[ModelT]:
        """
        Retrieve a single entity by ID

        Returns:
            The entity if found, None otherwise
        """
        async with self._session() as session:
            return await session.get(self.model, entity_id)

    async def get_all(self) -> list[ModelT]:
        """
        All entities, newest first

        Fail-soft: a store failure is logged and yields an empty list.
        """
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(self.model).order_by(self.model.created_at.desc())
                )
                return list(result.scalars().all())
        except PersistenceException:
            logger.error(f"Returning no {self.table_name} records after read failure")
            return []

    async def update(self, entity_id: str, data: EntityData) -> Optional[ModelT]:
        """
        Update an existing entity (partial)

        Returns:
            Updated entity if found, None otherwise
        """
        values = self._prepare(data)
        async with self._transaction() as session:
            entity = await session.get(self.model, entity_id)
            if entity is None:
                return None
            await self._check_references(session, values)
            previous = {field: getattr(entity, field) for field in values}
            await self._apply_update(session, entity, values)
            await self._after_update(session, entity, previous)

        logger.info(f"Updated {self.table_name} record {entity_id}")
        return entity

    async def delete(self, entity_id: str) -> bool:
        """
        Delete an entity

        Returns:
            True if deleted, False if not found
        """
        async with self._transaction() as session:
            entity = await session.get(self.model, entity_id)
            if entity is None:
                return False
            await self._remove(session, entity)

        logger.info(f"Deleted {self.table_name} record {entity_id}")
        return True

    async def get_pending_sync(self) -> list[ModelT]:
        """Entities awaiting propagation, least recently updated first"""
        async with self._session() as session:
            result = await session.execute(
                select(self.model)
                .where(self.model.sync_status == SyncStatus.PENDING.value)
                .order_by(self.model.updated_at.asc())
            )
            return list(result.scalars().all())

    async def get_conflicts(self) -> list[ModelT]:
        """Entities flagged as conflicting, most recently updated first"""
        async with self._session() as session:
            result = await session.execute(
                select(self.model)
                .where(self.model.sync_status == SyncStatus.CONFLICT.value)
                .order_by(self.model.updated_at.desc())
            )
            return list(result.scalars().all())

    async def batch_create(self, rows: list[EntityData]) -> list[ModelT]:
        """
        Insert many entities in one transaction, already marked synced.

        Bypasses the outbox entirely; intended for bulk seeding only.
        """
        now = utcnow()
        entities: list[ModelT] = []
        async with self._transaction() as session:
            for row in rows:
                values = self._prepare(row, creating=True)
                await self._check_references(session, values)
                entity = self.model(**values)
                entity.id = generate_id()
                entity.created_at = now
                entity.updated_at = now
                entity.sync_status = SyncStatus.SYNCED.value
                entity.last_sync_at = now
                entities.append(entity)
            session.add_all(entities)

        logger.info(f"Batch created {len(entities)} {self.table_name} records")
        return entities

    async def update_sync_status(
        self,
        entity_id: str,
        status: SyncStatus,
        last_sync_at: Optional[datetime] = None,
    ) -> bool:
        """
        Set sync status directly, without touching updated_at or the outbox.

        Only the sync service calls this; going through update() would
        enqueue a new record for every record it drains.

        Returns:
            True if a row was changed, False if the entity no longer exists
        """
        async with self._transaction() as session:
            result = await session.execute(
                update(self.model)
                .where(self.model.id == entity_id)
                .values(
                    sync_status=SyncStatus(status).value,
                    last_sync_at=last_sync_at or utcnow(),
                )
            )
            return result.rowcount == 1

    async def count(self) -> int:
        async with self._session() as session:
            return int(await session.scalar(select(func.count()).select_from(self.model)) or 0)
