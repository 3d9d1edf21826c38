"""Watch scheduler: polls due triggers, fires actions, expires stale watches.

The scheduler owns the polling loop and the expiry sweep. All durable state
lives in WatchStore; the only in-memory state is the last-polled map, which
is rebuilt from ``last_checked_at`` after a restart.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from vigil.durations import InvalidDurationError, parse_duration
from vigil.watches.actions import ActionRunner
from vigil.watches.store import WatchStore
from vigil.watches.triggers import TriggerRunner
from vigil.watches.types import Watch, WatchResult

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 5.0
DEFAULT_EXPIRY_INTERVAL = 60.0

# Used when a stored interval no longer parses
FALLBACK_POLL_INTERVAL = timedelta(seconds=30)

# Heartbeat every 60 ticks (~5 min at 5s interval)
HEARTBEAT_TICKS = 60


class WatchScheduler:
    """Polls active watches and runs their actions when triggers fire.

    Example:
        scheduler = WatchScheduler(store, triggers, actions)
        await scheduler.start()
        ...
        await scheduler.stop()

    Stopping wakes any sleeping loop and lets the current tick finish.
    Running trigger and action processes are not killed; each is bounded by
    its own timeout.
    """

    def __init__(
        self,
        store: WatchStore,
        triggers: TriggerRunner,
        actions: ActionRunner,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        expiry_interval: float = DEFAULT_EXPIRY_INTERVAL,
        max_concurrency: int = 1,
        strict_trigger_output: bool = False,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._store = store
        self._triggers = triggers
        self._actions = actions
        self._tick_interval = tick_interval
        self._expiry_interval = expiry_interval
        self._max_concurrency = max_concurrency
        self._strict_trigger_output = strict_trigger_output

        self._running = False
        self._stop_event = asyncio.Event()
        self._tick_task: asyncio.Task | None = None
        self._expiry_task: asyncio.Task | None = None
        self._tick_count = 0
        self._last_polled: dict[str, datetime] = {}
        self._in_flight: set[str] = set()
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def store(self) -> WatchStore:
        return self._store

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tick_count(self) -> int:
        return self._tick_count

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        logger.info(
            "watch_scheduler_started",
            extra={
                "scheduler.tick_interval": self._tick_interval,
                "scheduler.expiry_interval": self._expiry_interval,
                "scheduler.max_concurrency": self._max_concurrency,
            },
        )
        await self._sweep_expired()
        self._tick_task = asyncio.create_task(self._tick_loop())
        self._expiry_task = asyncio.create_task(self._expiry_loop())

    def request_stop(self) -> None:
        """Ask the loops to exit. Safe to call from a signal handler."""
        self._running = False
        self._stop_event.set()

    async def stop(self) -> None:
        self.request_stop()
        for task in (self._tick_task, self._expiry_task):
            if task is not None:
                await task
        if self._tick_task or self._expiry_task:
            logger.info(
                "watch_scheduler_stopped", extra={"tick.count": self._tick_count}
            )
        self._tick_task = None
        self._expiry_task = None

    async def run(self) -> None:
        """Start the scheduler and block until a stop is requested."""
        await self.start()
        await self._stop_event.wait()
        await self.stop()

    async def run_once(self, now: datetime | None = None) -> int:
        """Run a single tick.

        Returns:
            Number of watches that were due and polled.
        """
        now = now or datetime.now(UTC)
        watches = await self._store.get_active()

        # Forget polling state for watches that left the active set
        active_ids = {watch.id for watch in watches}
        for watch_id in list(self._last_polled):
            if watch_id not in active_ids:
                del self._last_polled[watch_id]

        due = [
            watch
            for watch in watches
            if watch.id not in self._in_flight and self.is_due(watch, now)
        ]
        logger.debug(
            f"Watch check: {len(watches)} active, {len(due)} due "
            f"(max_concurrency={self._max_concurrency})"
        )
        if not due:
            return 0

        # Claim before dispatch so an overlapping tick cannot pick them up
        self._in_flight.update(watch.id for watch in due)
        if self._max_concurrency == 1:
            for watch in due:
                await self._process(watch, now)
        else:
            await asyncio.gather(*(self._process(watch, now) for watch in due))
        return len(due)

    async def expire_now(self, now: datetime | None = None) -> int:
        """Expire every active watch past its deadline.

        Returns:
            Number of watches expired.
        """
        now = now or datetime.now(UTC)
        count = await self._store.expire_active_past_deadline(now)
        if count:
            logger.info("watches_expired", extra={"watch.count": count})
        return count

    def is_due(self, watch: Watch, now: datetime) -> bool:
        # Past-deadline watches are left for the expiry sweep
        if watch.expires_at < now:
            return False
        last = self._last_polled.get(watch.id) or watch.last_checked_at
        if last is None:
            return True
        return now - last >= self._interval_for(watch)

    def _interval_for(self, watch: Watch) -> timedelta:
        try:
            return parse_duration(watch.interval)
        except InvalidDurationError:
            logger.warning(
                "watch_interval_invalid",
                extra={"watch.id": watch.id, "watch.interval": watch.interval},
            )
            return FALLBACK_POLL_INTERVAL

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    async def _tick_loop(self) -> None:
        while self._running:
            self._tick_count += 1
            if self._tick_count % HEARTBEAT_TICKS == 0:
                logger.info(
                    "watch_scheduler_heartbeat",
                    extra={
                        "tick.count": self._tick_count,
                        "watch.in_flight": len(self._in_flight),
                    },
                )
            try:
                await self.run_once()
            except Exception as e:
                logger.error("watch_tick_error", extra={"error.message": str(e)})
            await self._sleep(self._tick_interval)

    async def _expiry_loop(self) -> None:
        while self._running:
            await self._sleep(self._expiry_interval)
            if not self._running:
                break
            await self._sweep_expired()

    async def _sweep_expired(self) -> None:
        try:
            await self.expire_now()
        except Exception as e:
            logger.error("watch_expiry_error", extra={"error.message": str(e)})

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except TimeoutError:
            pass

    # ------------------------------------------------------------------
    # Per-watch pipeline
    # ------------------------------------------------------------------

    async def _process(self, watch: Watch, now: datetime) -> None:
        try:
            async with self._semaphore:
                await self._poll(watch, now)
        except Exception as e:
            logger.error(
                "watch_poll_error",
                extra={"watch.id": watch.id, "error.message": str(e)},
            )
        finally:
            self._in_flight.discard(watch.id)

    async def _poll(self, watch: Watch, now: datetime) -> None:
        # Record the check before running the trigger so a crash mid-run
        # does not cause an immediate re-poll on restart
        self._last_polled[watch.id] = now
        await self._store.update_last_checked(watch.id, now)

        outcome = await self._triggers.execute(watch.trigger, watch.params)

        if outcome.is_fault:
            logger.warning(
                "trigger_execution_failed",
                extra={
                    "watch.id": watch.id,
                    "trigger.name": watch.trigger,
                    "error.message": outcome.error,
                },
            )
            return

        if not outcome.fired:
            logger.debug(f"Trigger {watch.trigger} not fired for watch {watch.id}")
            return

        if outcome.error:
            if self._strict_trigger_output:
                logger.warning(
                    "trigger_output_rejected",
                    extra={
                        "watch.id": watch.id,
                        "trigger.name": watch.trigger,
                        "error.message": outcome.error,
                    },
                )
                return
            logger.warning(
                "trigger_output_invalid",
                extra={
                    "watch.id": watch.id,
                    "trigger.name": watch.trigger,
                    "error.message": outcome.error,
                },
            )

        fired_at = datetime.now(UTC)
        if not await self._store.mark_fired(watch.id, fired_at):
            # Cancelled or expired while the trigger was running
            logger.info("watch_fire_skipped", extra={"watch.id": watch.id})
            return
        self._last_polled.pop(watch.id, None)

        logger.info(
            "watch_fired",
            extra={"watch.id": watch.id, "trigger.name": watch.trigger},
        )

        payload = outcome.payload or {}
        action_outcome = await self._actions.run(watch.id, watch.action, payload)
        result = WatchResult(
            watch_id=watch.id,
            trigger=watch.trigger,
            params=list(watch.params),
            trigger_payload=payload,
            action=action_outcome,
            fired_at=fired_at,
        )
        try:
            await asyncio.to_thread(self._actions.persist_result, result)
        except OSError as e:
            logger.error(
                "result_write_failed",
                extra={
                    "watch.id": watch.id,
                    "process.exit_code": action_outcome.exit_code,
                    "error.message": str(e),
                },
            )
