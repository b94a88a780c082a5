"""Background task that keeps this instance's lease status up to date."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable

from .clock import ClockSource
from .election import (
    RECENT_CHECKIN_TIMEOUT_SECONDS,
    ElectionDecision,
    ElectionOutcome,
    apply_outcome,
    decide,
    log_outcome,
    seconds_between,
)
from .errors import StoreUnavailable
from .lease_store import LeaseStore
from .oracle import RoleOracle

logger = logging.getLogger(__name__)

MONITOR_TICK_SECONDS = 60
OWNER_CACHE_TTL_SECONDS = MONITOR_TICK_SECONDS


class InstanceMonitor:
    """Runs the election once per tick for the lifetime of the process."""

    def __init__(
        self,
        store: LeaseStore,
        clock: ClockSource,
        oracle: RoleOracle,
        *,
        tick_seconds: float = MONITOR_TICK_SECONDS,
        timeout_seconds: float = RECENT_CHECKIN_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.clock = clock
        self.oracle = oracle
        self.tick_seconds = max(float(tick_seconds), 0.0)
        self.timeout = timedelta(seconds=timeout_seconds)
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self.last_decision: ElectionDecision | None = None
        self.ticks = 0
        self.failed_ticks = 0

    @property
    def identity(self) -> str:
        return self.oracle.identity

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _log_extra(self) -> dict[str, str]:
        return {"instance_id": self.identity}

    async def tick(self) -> ElectionOutcome:
        """Check whether this instance should hold, take, or leave the bot role.

        Store or clock failures abandon the tick and count as a no-op.
        """
        try:
            owner = await self.store.get_owner(fresh=True)
            last_checkin = await self.store.get_last_checkin()
            now = await self.clock.now()
            outcome = decide(self.identity, owner, last_checkin, now, self.timeout)
            try:
                await apply_outcome(self.store, outcome)
            except StoreUnavailable:
                # A takeover may have written the owner before failing; the
                # tick still counts as a no-op, so the oracle must not claim it.
                self.store.forget_owner()
                self.oracle.observe(owner)
                raise
        except StoreUnavailable as exc:
            self.failed_ticks += 1
            logger.warning(
                "instance monitor tick skipped: %s",
                exc,
                extra=self._log_extra(),
            )
            return ElectionOutcome(ElectionDecision.NO_OP)

        self.ticks += 1
        self.last_decision = outcome.decision
        self.oracle.observe(
            self.identity if outcome.decision is ElectionDecision.BECOME_LEADER else owner
        )
        log_outcome(outcome, instance_id=self.identity)
        return outcome

    async def run_forever(self, *, immediate: bool = True) -> None:
        if not immediate:
            await self._sleep(self.tick_seconds)
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                self.failed_ticks += 1
                logger.exception("instance monitor tick failed", extra=self._log_extra())
            await self._sleep(self.tick_seconds)

    def start(self, *, immediate: bool = True) -> asyncio.Task[None]:
        """Start the monitor on the running event loop (idempotent).

        With `immediate=False` the first tick waits one interval, for callers
        that already ran a tick themselves.
        """
        if self._task is not None and not self._task.done():
            return self._task
        self._task = asyncio.create_task(
            self.run_forever(immediate=immediate), name="instance-monitor"
        )
        logger.info(
            "instance monitor started tick_seconds=%s timeout_seconds=%s",
            self.tick_seconds,
            self.timeout.total_seconds(),
            extra=self._log_extra(),
        )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        task = self._task
        self._task = None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("instance monitor stopped", extra=self._log_extra())

    async def seconds_since_last_checkin(self) -> float | None:
        """Seconds since the active instance last checked in, or None if it never has.

        Always reads the store; do not call this in a tight loop.
        """
        last_checkin = await self.store.get_last_checkin()
        if last_checkin is None:
            return None
        return seconds_between(last_checkin, await self.clock.now())
