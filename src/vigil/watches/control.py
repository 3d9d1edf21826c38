"""Control API: register, list, inspect and cancel watches.

This is the seam every outer surface (CLI, tools) goes through. Errors are
raised as WatchError subclasses and are meant to be reported back to the
caller, not logged as faults.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from vigil.durations import InvalidDurationError, generate_watch_id, parse_duration
from vigil.watches.errors import (
    TriggerNotFoundError,
    WatchNotActiveError,
    WatchNotFoundError,
    WatchValidationError,
)
from vigil.watches.store import WatchStore
from vigil.watches.triggers import TriggerRunner
from vigil.watches.types import Trigger, Watch, WatchAction, WatchStatus

logger = logging.getLogger(__name__)

DEFAULT_TTL = "48h"
DEFAULT_INTERVAL = "30s"


@dataclass
class Registration:
    """Returned by WatchControl.register."""

    watch_id: str
    expires_at: datetime
    interval: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "watchId": self.watch_id,
            "expiresAt": self.expires_at.isoformat(),
            "interval": self.interval,
        }


def _positive_duration(value: str, field_name: str) -> timedelta:
    # InvalidDurationError propagates for malformed strings
    delta = parse_duration(value)
    if delta <= timedelta(0):
        raise WatchValidationError(f"{field_name} must be positive: {value!r}")
    return delta


class WatchControl:
    """Operations on watches for control surfaces."""

    def __init__(
        self,
        store: WatchStore,
        triggers: TriggerRunner,
        default_ttl: str = DEFAULT_TTL,
        default_interval: str = DEFAULT_INTERVAL,
    ) -> None:
        self._store = store
        self._triggers = triggers
        self._default_ttl = default_ttl
        self._default_interval = default_interval

    @property
    def store(self) -> WatchStore:
        return self._store

    @property
    def triggers(self) -> TriggerRunner:
        return self._triggers

    async def register(
        self,
        trigger: str,
        params: list[str],
        action: WatchAction,
        ttl: str | None = None,
        interval: str | None = None,
    ) -> Registration:
        """Register a new active watch.

        When ``interval`` is omitted the trigger's own default interval is
        used if its sidecar declares a valid one.

        Raises:
            TriggerNotFoundError: If the trigger does not exist.
            InvalidDurationError: If ``ttl`` or ``interval`` cannot be parsed.
            WatchValidationError: For an empty prompt, non-string params,
                non-positive durations or a ttl past the representable range.
        """
        if not isinstance(params, list) or not all(
            isinstance(p, str) for p in params
        ):
            raise WatchValidationError("params must be a list of strings")
        if not action.prompt_template or not action.prompt_template.strip():
            raise WatchValidationError("action prompt must not be empty")

        found = await asyncio.to_thread(self._triggers.get, trigger)
        if found is None:
            raise TriggerNotFoundError(trigger)

        ttl = ttl or self._default_ttl
        ttl_delta = _positive_duration(ttl, "ttl")
        interval = interval or self._default_interval_for(found)
        _positive_duration(interval, "interval")

        now = datetime.now(UTC)
        try:
            expires_at = now + ttl_delta
        except OverflowError:
            raise WatchValidationError(f"ttl is too large: {ttl!r}") from None
        watch = Watch(
            id=generate_watch_id(),
            trigger=trigger,
            params=list(params),
            action=action,
            created_at=now,
            expires_at=expires_at,
            interval=interval,
        )
        await self._store.insert(watch)

        logger.info(
            "watch_registered",
            extra={
                "watch.id": watch.id,
                "trigger.name": trigger,
                "watch.interval": interval,
                "watch.expires_at": watch.expires_at.isoformat(),
            },
        )
        return Registration(
            watch_id=watch.id, expires_at=watch.expires_at, interval=interval
        )

    async def list(self, status: str | None = None) -> list[Watch]:
        """List watches, newest first. ``None`` and ``"all"`` list everything."""
        if status is None or status == "all":
            return await self._store.list("all")
        try:
            wanted = WatchStatus(status)
        except ValueError:
            valid = ", ".join(["all", *(s.value for s in WatchStatus)])
            raise WatchValidationError(
                f"Unknown status: {status!r} (expected one of: {valid})"
            ) from None
        return await self._store.list(wanted)

    async def status(self, watch_id: str) -> Watch:
        watch = await self._store.get_by_id(watch_id)
        if watch is None:
            raise WatchNotFoundError(watch_id)
        return watch

    async def cancel(self, watch_id: str) -> Watch:
        """Cancel an active watch and return its updated record.

        Raises:
            WatchNotFoundError: If no such watch exists.
            WatchNotActiveError: If the watch already reached a terminal state.
        """
        watch = await self.status(watch_id)
        if not watch.is_active:
            raise WatchNotActiveError(watch_id, watch.status)

        if not await self._store.update_status(watch_id, WatchStatus.CANCELLED):
            # Fired or expired between the read and the update
            current = await self.status(watch_id)
            raise WatchNotActiveError(watch_id, current.status)

        logger.info("watch_cancelled", extra={"watch.id": watch_id})
        return await self.status(watch_id)

    async def list_triggers(self) -> list[Trigger]:
        return await asyncio.to_thread(self._triggers.list)

    def _default_interval_for(self, trigger: Trigger) -> str:
        """The trigger's sidecar interval if it is usable, else the configured one."""
        declared = trigger.default_interval
        if not declared:
            return self._default_interval
        try:
            _positive_duration(declared, "interval")
        except (InvalidDurationError, WatchValidationError):
            logger.warning(
                "trigger_default_interval_invalid",
                extra={"trigger.name": trigger.name, "watch.interval": declared},
            )
            return self._default_interval
        return declared
