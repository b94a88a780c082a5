"""Decide which instance handles bot duties.

The instance named in the lease checks in every tick. Any other instance that
finds the last checkin missing, or older than the timeout, takes over. The
decision itself is a pure function of its inputs; `apply_outcome` performs the
resulting writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .clock import format_seconds
from .lease_store import LAST_CHECKIN_KEY, OWNER_KEY, LeaseStore

logger = logging.getLogger(__name__)

# A lease is up for grabs once its holder misses this many seconds of checkins
# (three monitor ticks).
RECENT_CHECKIN_TIMEOUT_SECONDS = 60 * 3


class ElectionDecision(str, Enum):
    RENEW_AS_LEADER = "renew_as_leader"
    BECOME_LEADER = "become_leader"
    NO_OP = "no_op"


@dataclass(frozen=True)
class LeaseWrite:
    """A single store mutation; applied in order."""

    key: str
    value: str | datetime


@dataclass(frozen=True)
class ElectionOutcome:
    decision: ElectionDecision
    writes: tuple[LeaseWrite, ...] = ()
    seconds_since_checkin: float | None = None


def seconds_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds()


def checkin_is_stale(
    last_checkin: datetime | None,
    now: datetime,
    timeout: timedelta | float = RECENT_CHECKIN_TIMEOUT_SECONDS,
) -> bool:
    """`True` if there has never been a checkin or the last one is older than `timeout`."""
    if last_checkin is None:
        return True
    limit = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
    return seconds_between(last_checkin, now) > limit


def decide(
    my_identity: str,
    stored_owner: str | None,
    stored_last_checkin: datetime | None,
    now: datetime,
    timeout: timedelta | float = RECENT_CHECKIN_TIMEOUT_SECONDS,
) -> ElectionOutcome:
    """Compute the election decision and the writes it requires."""
    elapsed = (
        seconds_between(stored_last_checkin, now) if stored_last_checkin is not None else None
    )
    # The current holder always renews, however stale its own checkin looks.
    if stored_owner is not None and stored_owner == my_identity:
        return ElectionOutcome(
            ElectionDecision.RENEW_AS_LEADER,
            (LeaseWrite(LAST_CHECKIN_KEY, now),),
            elapsed,
        )
    if checkin_is_stale(stored_last_checkin, now, timeout):
        return ElectionOutcome(
            ElectionDecision.BECOME_LEADER,
            (LeaseWrite(OWNER_KEY, my_identity), LeaseWrite(LAST_CHECKIN_KEY, now)),
            elapsed,
        )
    return ElectionOutcome(ElectionDecision.NO_OP, (), elapsed)


async def apply_outcome(store: LeaseStore, outcome: ElectionOutcome) -> None:
    """Write the outcome's mutations to the lease store in order."""
    for write in outcome.writes:
        if write.key == OWNER_KEY:
            await store.set_owner(str(write.value))
        elif write.key == LAST_CHECKIN_KEY:
            if not isinstance(write.value, datetime):
                msg = f"{LAST_CHECKIN_KEY} requires a datetime, got {write.value!r}"
                raise TypeError(msg)
            await store.set_last_checkin(write.value)
        else:
            msg = f"unknown lease key {write.key!r}"
            raise ValueError(msg)


def log_outcome(outcome: ElectionOutcome, *, instance_id: str) -> None:
    extra = {"instance_id": instance_id}
    if outcome.seconds_since_checkin is not None:
        logger.debug(
            "last bot checkin was %s ago",
            format_seconds(outcome.seconds_since_checkin),
            extra=extra,
        )
    if outcome.decision is ElectionDecision.RENEW_AS_LEADER:
        logger.debug("this instance is performing bot duties", extra=extra)
    elif outcome.decision is ElectionDecision.BECOME_LEADER:
        logger.info("this instance will now handle bot duties", extra=extra)
    else:
        logger.debug("another instance is already handling bot duties", extra=extra)
