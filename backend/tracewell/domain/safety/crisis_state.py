# backend/tracewell/domain/safety/crisis_state.py
"""
Per-user crisis follow-up state.

A user enters the crisis window on any high-distress message and leaves it when
either CRISIS_WINDOW_MINUTES pass without further distress, or SAFE_MESSAGES_TO_EXIT
consecutive safe messages arrive after at least MIN_MINUTES_TO_EXIT. There are no
timers: expiry is evaluated from the stored timestamp whenever state is read.

Every operation takes the store explicitly and returns an Outcome. Storage problems
never raise into the chat path; they come back as the inactive default with ok=False.
That fail-open choice is acceptable because the classifier's own crisis response
(hotlines, resource cards) does not depend on this state.

Public API:
- mark_in_crisis(store, user_id, source="chat", tag="distress") -> Outcome[bool]
- is_in_crisis_window(store, user_id, window_minutes=90) -> Outcome[bool]
- get_crisis_state(store, user_id) -> Outcome[CrisisState]
- update_after_message(store, user_id, is_currently_distressed) -> Outcome[MessageUpdate]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from tracewell.domain.safety.repo import CrisisStore, Row
from tracewell.schemas.safety import CrisisState, MessageUpdate
from tracewell.utils.time import minutes_between, parse_iso, utc_iso, utc_now

log = logging.getLogger(__name__)

__all__ = [
    "CRISIS_WINDOW_MINUTES",
    "SAFE_MESSAGES_TO_EXIT",
    "MIN_MINUTES_TO_EXIT",
    "PENDING_EXIT_SAFE_MESSAGES",
    "Outcome",
    "mark_in_crisis",
    "is_in_crisis_window",
    "get_crisis_state",
    "update_after_message",
]

CRISIS_WINDOW_MINUTES = 90
SAFE_MESSAGES_TO_EXIT = 4
MIN_MINUTES_TO_EXIT = 30
# one message ahead of SAFE_MESSAGES_TO_EXIT; intentionally not derived from it
PENDING_EXIT_SAFE_MESSAGES = 3

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a tracker operation. ok=False means the read or write did not take effect.
    value is then the inactive default, except after a distressed message, which
    still reports active=True so the caller can respond to it.
    """

    value: T
    ok: bool = True
    error: Optional[str] = None

    @classmethod
    def degraded(cls, value: T, error: str) -> "Outcome[T]":
        return cls(value=value, ok=False, error=error)


# ---------------------------------------------------------------------
# Row evaluation
# ---------------------------------------------------------------------
def _minutes_since_crisis(row: Optional[Row], now: datetime) -> Optional[float]:
    """Minutes since last_crisis_at, or None when the row carries no active flag."""
    if not row or not row.get("last_crisis_at"):
        return None
    flagged_at = parse_iso(row["last_crisis_at"])
    if flagged_at is None:
        log.warning("unparseable last_crisis_at=%r for user %s", row.get("last_crisis_at"), row.get("user_id"))
        return None
    # clock skew can put the flag slightly in the future
    return max(0.0, minutes_between(flagged_at, now))


def _safe_count(row: Row) -> int:
    try:
        return max(0, int(row.get("safe_messages_since") or 0))
    except (TypeError, ValueError):
        return 0


def _can_exit(safe_messages: int, minutes: float) -> bool:
    return safe_messages >= SAFE_MESSAGES_TO_EXIT and minutes >= MIN_MINUTES_TO_EXIT


def _in_window(minutes: Optional[float], safe_messages: int, window_minutes: float) -> bool:
    if minutes is None or minutes > window_minutes:
        return False
    return not _can_exit(safe_messages, minutes)


def _pending_exit(safe_messages: int, minutes: float) -> bool:
    return (
        safe_messages >= PENDING_EXIT_SAFE_MESSAGES
        and minutes >= MIN_MINUTES_TO_EXIT
        and not _can_exit(safe_messages, minutes)
    )


def _missing(store: Optional[CrisisStore], user_id: Any, op: str) -> bool:
    if store is None or not user_id:
        log.warning("cannot %s: missing store or user_id", op)
        return True
    return False


# ---------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------
def mark_in_crisis(
    store: Optional[CrisisStore],
    user_id: str,
    source: Optional[str] = "chat",
    tag: Optional[str] = "distress",
    *,
    now: Optional[datetime] = None,
) -> Outcome[bool]:
    """
    Flag the user as in crisis: last_crisis_at=now and the safe counter back to 0.
    Repeated calls simply refresh the window.
    """
    if _missing(store, user_id, "mark crisis"):
        return Outcome.degraded(False, "missing_input")

    source = source or "chat"
    tag = tag or "distress"
    ts = utc_iso(now or utc_now())
    try:
        store.upsert({
            "user_id": user_id,
            "last_crisis_at": ts,
            "last_crisis_source": source,
            "last_crisis_tag": tag,
            "safe_messages_since": 0,
            "updated_at": ts,
        })
    except Exception as e:
        log.exception("failed to mark crisis for user %s", user_id)
        return Outcome.degraded(False, f"storage_error: {e}")

    log.info("user %s marked in crisis (source=%s, tag=%s)", user_id, source, tag)
    return Outcome(True)


def is_in_crisis_window(
    store: Optional[CrisisStore],
    user_id: str,
    window_minutes: float = CRISIS_WINDOW_MINUTES,
    *,
    now: Optional[datetime] = None,
) -> Outcome[bool]:
    if _missing(store, user_id, "check crisis window"):
        return Outcome.degraded(False, "missing_input")
    try:
        row = store.fetch(user_id)
    except Exception as e:
        log.exception("failed to read crisis window for user %s", user_id)
        return Outcome.degraded(False, f"storage_error: {e}")

    minutes = _minutes_since_crisis(row, now or utc_now())
    return Outcome(_in_window(minutes, _safe_count(row or {}), window_minutes))


def get_crisis_state(
    store: Optional[CrisisStore],
    user_id: str,
    *,
    now: Optional[datetime] = None,
) -> Outcome[CrisisState]:
    """
    Full snapshot for the caller. Reads only; calling it repeatedly at the same
    instant always yields the same answer.
    """
    if _missing(store, user_id, "read crisis state"):
        return Outcome.degraded(CrisisState(), "missing_input")
    try:
        row = store.fetch(user_id)
    except Exception as e:
        log.exception("failed to read crisis state for user %s", user_id)
        return Outcome.degraded(CrisisState(), f"storage_error: {e}")

    if not row:
        return Outcome(CrisisState())

    minutes = _minutes_since_crisis(row, now or utc_now())
    if minutes is None:
        # flag cleared (or unreadable): keep the audit labels, nothing is active
        return Outcome(CrisisState(
            last_crisis_tag=row.get("last_crisis_tag"),
            last_crisis_source=row.get("last_crisis_source"),
        ))

    safe = _safe_count(row)
    active = _in_window(minutes, safe, CRISIS_WINDOW_MINUTES)
    return Outcome(CrisisState(
        active=active,
        last_crisis_at=utc_iso(parse_iso(row["last_crisis_at"])),
        last_crisis_tag=row.get("last_crisis_tag"),
        last_crisis_source=row.get("last_crisis_source"),
        safe_messages_since=safe,
        pending_exit_check_in=active and _pending_exit(safe, minutes),
    ))


def update_after_message(
    store: Optional[CrisisStore],
    user_id: str,
    is_currently_distressed: bool,
    *,
    tag: str = "high-distress",
    now: Optional[datetime] = None,
) -> Outcome[MessageUpdate]:
    """
    Advance the state machine by one inbound message.

    Distressed: (re)enter the window, counter to 0.
    Safe: outside a live window nothing changes; inside it the counter goes up by
    one and the flag is cleared once the exit rule is met.
    """
    if _missing(store, user_id, "update crisis state"):
        return Outcome.degraded(MessageUpdate(), "missing_input")

    now = now or utc_now()

    if is_currently_distressed:
        marked = mark_in_crisis(store, user_id, source="chat", tag=tag, now=now)
        if marked.ok:
            log.info("user %s crisis mode ACTIVE (distress detected)", user_id)
        return Outcome(MessageUpdate(active=True), ok=marked.ok, error=marked.error)

    try:
        row = store.fetch(user_id)
        minutes = _minutes_since_crisis(row, now)
        if minutes is None or minutes > CRISIS_WINDOW_MINUTES:
            return Outcome(MessageUpdate())

        new_count = _safe_count(row) + 1
        log.debug("user %s safe message #%d, %dmin since flag", user_id, new_count, round(minutes))

        # compare-and-swap: skip the write if a newer flag or count landed since the read
        guard = {
            "last_crisis_at": row["last_crisis_at"],
            "safe_messages_since": row.get("safe_messages_since"),
        }
        ts = utc_iso(now)

        if _can_exit(new_count, minutes):
            applied = store.update(
                user_id,
                {"last_crisis_at": None, "safe_messages_since": 0, "updated_at": ts},
                match=guard,
            )
            if not applied:
                log.warning("crisis exit for user %s not applied (row changed)", user_id)
                return Outcome.degraded(MessageUpdate(), "write_not_applied")
            log.info("user %s crisis mode EXITED (%d safe messages, %d min)", user_id, new_count, round(minutes))
            return Outcome(MessageUpdate())

        applied = store.update(
            user_id,
            {"safe_messages_since": new_count, "updated_at": ts},
            match=guard,
        )
        if not applied:
            log.warning("safe-message count for user %s not applied (row changed)", user_id)
            return Outcome.degraded(MessageUpdate(), "write_not_applied")

        pending = _pending_exit(new_count, minutes)
        if pending:
            log.info("user %s pending exit check-in (%d safe, %d min)", user_id, new_count, round(minutes))
        return Outcome(MessageUpdate(active=True, safe_messages_since=new_count, pending_exit_check_in=pending))
    except Exception as e:
        log.exception("failed to update crisis state for user %s", user_id)
        return Outcome.degraded(MessageUpdate(), f"storage_error: {e}")
