"""Watch store backed by the SQLite ``watches`` table."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

from sqlalchemy import delete, func, select, update

from vigil.db.engine import Database
from vigil.db.models import WatchRecord
from vigil.watches.types import Watch, WatchAction, WatchStatus

logger = logging.getLogger(__name__)

StatusFilter = WatchStatus | Literal["all"]

_ACTIVE = WatchStatus.ACTIVE.value


class WatchStore:
    """Durable CRUD over watch records.

    Every mutation is a single statement, so the daemon and control callers
    can write concurrently without extra locking. Status transitions are
    conditional on the row still being ``active``; terminal rows are never
    rewritten.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    @property
    def database(self) -> Database:
        return self._db

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def get_by_id(self, watch_id: str) -> Watch | None:
        async with self._db.session() as session:
            record = await session.get(WatchRecord, watch_id)
            return _to_watch(record) if record else None

    async def list(self, status: StatusFilter | str = "all") -> list[Watch]:
        """List watches newest-first, optionally filtered by status."""
        stmt = select(WatchRecord).order_by(
            WatchRecord.created_at.desc(), WatchRecord.id.desc()
        )
        if status != "all":
            stmt = stmt.where(WatchRecord.status == WatchStatus(status).value)

        async with self._db.session() as session:
            result = await session.execute(stmt)
            return [_to_watch(record) for record in result.scalars()]

    async def get_active(self) -> list[Watch]:
        """Get active watches in a stable order (oldest first)."""
        stmt = (
            select(WatchRecord)
            .where(WatchRecord.status == _ACTIVE)
            .order_by(WatchRecord.created_at, WatchRecord.id)
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            return [_to_watch(record) for record in result.scalars()]

    async def count_by_status(self) -> dict[str, int]:
        stmt = select(WatchRecord.status, func.count()).group_by(WatchRecord.status)
        async with self._db.session() as session:
            result = await session.execute(stmt)
            counts = {status.value: 0 for status in WatchStatus}
            for status, count in result.all():
                counts[status] = count
            return counts

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def insert(self, watch: Watch) -> None:
        if watch.status is WatchStatus.FIRED and watch.fired_at is None:
            raise ValueError("fired watches require fired_at")

        async with self._db.session() as session:
            session.add(_to_record(watch))

    async def update_status(self, watch_id: str, status: WatchStatus) -> bool:
        """Move an active watch to a terminal status.

        Returns:
            True if the watch was active and is now ``status``.

        Raises:
            ValueError: If ``status`` is not terminal, or is ``fired`` (use
                mark_fired, which also records the fire time).
        """
        status = WatchStatus(status)
        if not status.is_terminal:
            raise ValueError("Watches cannot be moved back to active")
        if status is WatchStatus.FIRED:
            raise ValueError("Use mark_fired() to record a fire")

        stmt = (
            update(WatchRecord)
            .where(WatchRecord.id == watch_id, WatchRecord.status == _ACTIVE)
            .values(status=status.value)
        )
        return await self._execute_update(stmt) > 0

    async def update_last_checked(self, watch_id: str, checked_at: datetime) -> bool:
        stmt = (
            update(WatchRecord)
            .where(WatchRecord.id == watch_id)
            .values(last_checked_at=checked_at)
        )
        return await self._execute_update(stmt) > 0

    async def mark_fired(self, watch_id: str, fired_at: datetime) -> bool:
        """Set status=fired and fired_at in one statement.

        Returns:
            False if the watch is missing or already terminal (for example it
            was cancelled or expired while its trigger was running).
        """
        stmt = (
            update(WatchRecord)
            .where(WatchRecord.id == watch_id, WatchRecord.status == _ACTIVE)
            .values(status=WatchStatus.FIRED.value, fired_at=fired_at)
        )
        return await self._execute_update(stmt) > 0

    async def expire_active_past_deadline(self, now: datetime) -> int:
        """Expire every active watch whose deadline is before ``now``.

        Returns:
            Number of watches expired.
        """
        stmt = (
            update(WatchRecord)
            .where(WatchRecord.status == _ACTIVE, WatchRecord.expires_at < now)
            .values(status=WatchStatus.EXPIRED.value)
        )
        return await self._execute_update(stmt)

    async def delete(self, watch_id: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                delete(WatchRecord).where(WatchRecord.id == watch_id)
            )
            return (result.rowcount or 0) > 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _execute_update(self, stmt) -> int:  # type: ignore[no-untyped-def]
        async with self._db.session() as session:
            result = await session.execute(
                stmt.execution_options(synchronize_session=False)
            )
            return result.rowcount or 0


def _to_record(watch: Watch) -> WatchRecord:
    return WatchRecord(
        id=watch.id,
        trigger=watch.trigger,
        params=list(watch.params),
        action=watch.action.to_dict(),
        status=watch.status.value,
        interval=watch.interval,
        created_at=watch.created_at,
        expires_at=watch.expires_at,
        last_checked_at=watch.last_checked_at,
        fired_at=watch.fired_at,
    )


def _to_watch(record: WatchRecord) -> Watch:
    return Watch(
        id=record.id,
        trigger=record.trigger,
        params=list(record.params),
        action=WatchAction.from_dict(record.action),
        status=WatchStatus(record.status),
        interval=record.interval,
        created_at=record.created_at,
        expires_at=record.expires_at,
        last_checked_at=record.last_checked_at,
        fired_at=record.fired_at,
    )
