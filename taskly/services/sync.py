"""
Sync service
Drains the outbox (sync_metadata) through a push collaborator, marks the
affected entities as synced and reports progress to listeners
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskly.api.v1.schemas.sync import (
    SyncProgress,
    SyncRecordResponse,
    SyncResult,
    SyncState,
    SyncStatistics,
)
from taskly.core.exceptions import PersistenceException, SyncInProgressException, SyncItemException
from taskly.models.mixins import SyncStatus, utcnow
from taskly.models.sync_record import SyncRecord
from taskly.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

PushFn = Callable[[SyncRecord], Awaitable[None]]
SyncListener = Callable[[SyncProgress], None]


async def local_push(record: SyncRecord) -> None:
    """Default push: nothing leaves the device, records are just acknowledged"""
    logger.debug(
        f"Processing sync item: {record.table_name} {record.record_id} ({record.operation})"
    )


class SyncService:
    """
    Coordinates outbox draining

    At most one drain runs at a time per service instance. Build one
    instance per process (see taskly.services.container) and share it.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        repositories: Mapping[str, BaseRepository],
        push: Optional[PushFn] = None,
    ) -> None:
        self._session_maker = session_maker
        self._repositories = dict(repositories)
        self._push = push or local_push
        self._listeners: list[SyncListener] = []
        self._in_progress = False
        self._state = SyncState.IDLE

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_sync_in_progress(self) -> bool:
        return self._in_progress

    # ---- listeners ----

    def add_listener(self, listener: SyncListener) -> Callable[[], None]:
        """
        Subscribe to progress events

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(
        self,
        status: SyncState,
        progress: int,
        message: str,
        total_items: int = 0,
        processed_items: int = 0,
    ) -> None:
        self._state = status
        event = SyncProgress(
            status=status,
            progress=progress,
            message=message,
            total_items=total_items,
            processed_items=processed_items,
        )
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Sync listener {listener!r} failed: {e}", exc_info=True)

    # ---- outbox access ----

    async def _list_records(
        self, table_name: Optional[str] = None, record_id: Optional[str] = None
    ) -> list[SyncRecord]:
        query = select(SyncRecord)
        if table_name is not None:
            query = query.where(SyncRecord.table_name == table_name)
        if record_id is not None:
            query = query.where(SyncRecord.record_id == record_id)
        query = query.order_by(SyncRecord.timestamp.asc(), SyncRecord.id.asc())

        try:
            async with self._session_maker() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to read sync records: {e}") from e

    async def _delete_record(self, record_id: str) -> None:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    await session.execute(delete(SyncRecord).where(SyncRecord.id == record_id))
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to delete sync record {record_id}: {e}") from e

    async def _record_failure(self, record: SyncRecord, message: str) -> None:
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    await session.execute(
                        update(SyncRecord)
                        .where(SyncRecord.id == record.id)
                        .values(retry_count=SyncRecord.retry_count + 1, error=message)
                    )
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to update sync record {record.id}: {e}") from e

    async def _process_record(self, record: SyncRecord) -> None:
        """
        Push one record and mark its entity synced

        A missing entity (already deleted) is not an error: there is nothing
        left to mark.
        """
        repository = self._repositories.get(record.table_name)
        if repository is None:
            raise SyncItemException(f"Unknown table: {record.table_name}")

        await self._push(record)
        await repository.update_sync_status(record.record_id, SyncStatus.SYNCED, utcnow())

    async def _sync_one(self, record: SyncRecord) -> Optional[str]:
        """
        Process one record and settle its outbox row

        A store failure while settling the outbox row counts as a failure of
        this record only; the record stays queued for the next drain.

        Returns:
            None on success, otherwise the error line for SyncResult.errors
        """
        prefix = f"Failed to sync {record.table_name} {record.record_id}"
        try:
            await self._process_record(record)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.warning(f"{prefix}: {message}")
            try:
                await self._record_failure(record, message)
            except PersistenceException as settle_error:
                logger.error(
                    f"Could not record failure of sync record {record.id}: {settle_error.message}"
                )
            return f"{prefix}: {message}"

        try:
            await self._delete_record(record.id)
        except PersistenceException as e:
            logger.error(f"{prefix}: {e.message}")
            return f"{prefix}: {e.message}"
        return None

    # ---- public API ----

    async def perform_sync(self) -> SyncResult:
        """
        Drain every outbox record, oldest first

        Raises:
            SyncInProgressException: If another drain is running
        """
        if self._in_progress:
            raise SyncInProgressException()
        self._in_progress = True

        synced_count = 0
        failed_count = 0
        errors: list[str] = []

        try:
            self._notify(SyncState.SYNCING, 0, "Starting sync...")

            records = await self._list_records()
            total = len(records)

            if total == 0:
                self._notify(SyncState.IDLE, 100, "No items to sync")
                return SyncResult(success=True)

            self._notify(SyncState.SYNCING, 0, f"Syncing {total} items...", total, 0)

            for index, record in enumerate(records, start=1):
                error = await self._sync_one(record)
                if error is None:
                    synced_count += 1
                else:
                    failed_count += 1
                    errors.append(error)

                self._notify(
                    SyncState.SYNCING,
                    round(index / total * 100),
                    f"Synced {synced_count} of {total} items...",
                    total,
                    index,
                )

            success = failed_count == 0
            if success:
                message = f"Successfully synced {synced_count} items"
            else:
                message = f"Synced {synced_count} items, {failed_count} failed"
            self._notify(
                SyncState.IDLE if success else SyncState.ERROR, 100, message, total, total
            )
            logger.info(message)

            return SyncResult(
                success=success,
                synced_count=synced_count,
                failed_count=failed_count,
                errors=errors,
            )
        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)
            errors.append(str(e))
            self._notify(SyncState.ERROR, 0, f"Sync failed: {e}")
            return SyncResult(
                success=False,
                synced_count=synced_count,
                failed_count=failed_count + 1,
                errors=errors,
            )
        finally:
            self._in_progress = False

    async def force_sync_record(self, table_name: str, record_id: str) -> bool:
        """
        Drain only the outbox records of one entity

        Returns:
            True if at least one record existed and all of them synced
        """
        try:
            records = await self._list_records(table_name, record_id)
        except PersistenceException as e:
            logger.error(f"Failed to force sync {table_name} {record_id}: {e}")
            return False

        if not records:
            logger.warning(f"No sync metadata found for {table_name} {record_id}")
            return False

        ok = True
        for record in records:
            if await self._sync_one(record) is not None:
                ok = False
        return ok

    async def get_pending_sync_items(self) -> list[SyncRecord]:
        return await self._list_records()

    async def get_pending_sync_count(self) -> int:
        try:
            async with self._session_maker() as session:
                count = await session.scalar(select(func.count()).select_from(SyncRecord))
                return int(count or 0)
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to count sync records: {e}") from e

    async def get_sync_statistics(self) -> SyncStatistics:
        """
        Pending count, how many of those already failed, plus the oldest and
        the most retried record
        """
        records = await self._list_records()
        if not records:
            return SyncStatistics()

        # records are oldest first; max() keeps the first of equal retry counts
        most_retried = max(records, key=lambda r: r.retry_count)
        return SyncStatistics(
            pending_count=len(records),
            failed_count=sum(1 for r in records if r.error),
            oldest_pending_item=SyncRecordResponse.model_validate(records[0]),
            most_retried_item=SyncRecordResponse.model_validate(most_retried),
        )

    async def clear_sync_metadata(self) -> int:
        """
        Drop every outbox record without syncing it

        Returns:
            Number of records removed
        """
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    result = await session.execute(delete(SyncRecord))
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to clear sync records: {e}") from e

        logger.warning(f"Cleared {result.rowcount} sync records")
        return result.rowcount

    async def auto_sync(self) -> Optional[SyncResult]:
        """
        Drain the outbox if anything is pending and no drain is running

        Never raises; problems are logged.

        Returns:
            The SyncResult if a drain ran, None otherwise
        """
        if self._in_progress:
            return None
        try:
            if await self.get_pending_sync_count() == 0:
                return None
            return await self.perform_sync()
        except SyncInProgressException:
            return None
        except Exception as e:
            logger.error(f"Auto sync failed: {e}", exc_info=True)
            return None

    async def run_periodic(self, interval: float) -> None:
        """
        Call auto_sync every `interval` seconds until cancelled
        """
        logger.info(f"Periodic sync every {interval}s")
        while True:
            await self.auto_sync()
            await asyncio.sleep(interval)
