# backend/tracewell/domain/safety/repo.py
"""
Row stores for per-user crisis state (table `user_safety_state`).

Rows are plain dicts keyed by column name:
  user_id, last_crisis_at, last_crisis_source, last_crisis_tag,
  safe_messages_since, updated_at
Timestamps are ISO-8601 strings, as PostgREST returns them.
"""
from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from supabase import Client

from tracewell.core.config import get_settings

log = logging.getLogger(__name__)

Row = Dict[str, Any]

__all__ = [
    "Row",
    "CrisisStore",
    "SupabaseCrisisStore",
    "InMemoryCrisisStore",
    "get_crisis_store",
    "reset_crisis_store",
]


@runtime_checkable
class CrisisStore(Protocol):
    def fetch(self, user_id: str) -> Optional[Row]: ...

    def upsert(self, row: Row) -> None: ...

    def update(self, user_id: str, fields: Row, match: Optional[Row] = None) -> bool: ...

    def ping(self) -> bool: ...


class SupabaseCrisisStore:
    """Crisis rows in Postgres via the Supabase (PostgREST) client. Errors propagate to the caller."""

    def __init__(self, client: Client, table: Optional[str] = None):
        self.client = client
        self.table = table or get_settings().SAFETY_TABLE

    def fetch(self, user_id: str) -> Optional[Row]:
        res = (
            self.client.table(self.table)
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None

    def upsert(self, row: Row) -> None:
        self.client.table(self.table).upsert(row, on_conflict="user_id").execute()

    def update(self, user_id: str, fields: Row, match: Optional[Row] = None) -> bool:
        q = self.client.table(self.table).update(fields).eq("user_id", user_id)
        for col, val in (match or {}).items():
            q = q.is_(col, "null") if val is None else q.eq(col, val)
        res = q.execute()
        return bool(res.data)

    def ping(self) -> bool:
        try:
            self.client.table(self.table).select("user_id").limit(1).execute()
            return True
        except Exception as e:
            log.warning("crisis store ping failed: %s", e)
            return False


class InMemoryCrisisStore:
    """Process-local store for dev runs and tests. One lock guards every row."""

    def __init__(self) -> None:
        self._rows: Dict[str, Row] = {}
        self._lock = threading.Lock()

    def fetch(self, user_id: str) -> Optional[Row]:
        with self._lock:
            row = self._rows.get(user_id)
            return copy.deepcopy(row) if row is not None else None

    def upsert(self, row: Row) -> None:
        user_id = row["user_id"]
        with self._lock:
            merged = dict(self._rows.get(user_id) or {})
            merged.update(row)
            merged.setdefault("safe_messages_since", 0)
            self._rows[user_id] = merged

    def update(self, user_id: str, fields: Row, match: Optional[Row] = None) -> bool:
        with self._lock:
            row = self._rows.get(user_id)
            if row is None:
                return False
            if any(row.get(col) != val for col, val in (match or {}).items()):
                return False
            row.update(fields)
            return True

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._rows)


_store_lock = threading.Lock()
_store: Optional[CrisisStore] = None
_store_built = False


def get_crisis_store() -> Optional[CrisisStore]:
    """
    Shared store for the HTTP layer, chosen by SAFETY_STORE ("supabase" | "memory").
    Returns None when Supabase credentials are missing; callers treat that as
    "no storage handle" and fall back to inactive state.
    """
    global _store, _store_built
    if _store_built:
        return _store
    with _store_lock:
        if not _store_built:
            _store = _build_store()
            _store_built = True
    return _store


def reset_crisis_store() -> None:
    global _store, _store_built
    with _store_lock:
        _store = None
        _store_built = False


def _build_store() -> Optional[CrisisStore]:
    from tracewell.adapters.supabase_client import SupabaseConfigError, supa

    s = get_settings()
    kind = (s.SAFETY_STORE or "supabase").strip().lower()
    if kind == "memory":
        log.info("crisis store: in-memory (state is lost on restart)")
        return InMemoryCrisisStore()
    if kind != "supabase":
        log.warning("unknown SAFETY_STORE=%r, falling back to supabase", kind)
    try:
        return SupabaseCrisisStore(supa(), table=s.SAFETY_TABLE)
    except SupabaseConfigError as e:
        log.warning("crisis store unavailable: %s", e)
        return None
