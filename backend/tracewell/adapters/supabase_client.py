# backend/tracewell/adapters/supabase_client.py
from __future__ import annotations

import os
import threading
from typing import Optional

from supabase import Client, create_client

try:  # supabase>=2.6
    from supabase.lib.client_options import SyncClientOptions as ClientOptions  # type: ignore
except ImportError:  # pragma: no cover
    ClientOptions = None  # type: ignore

from tracewell.core.config import get_settings

__all__ = ["supa", "supa_reset", "SupabaseConfigError"]

_client_lock = threading.Lock()
_client: Optional[Client] = None


class SupabaseConfigError(RuntimeError):
    """Raised when the service-role client cannot be built from the environment."""


def _build_client(url: str, key: str, *, timeout_s: float, schema: str) -> Client:
    """
    Build a Supabase Client with timeouts/headers when the installed SDK supports them.
    """
    headers = {"X-Client-Info": os.getenv("SUPABASE_CLIENT_INFO", "tracewell-backend")}
    if ClientOptions is not None:
        opts = ClientOptions(
            postgrest_client_timeout=timeout_s,
            headers=headers,
            schema=schema,
        )
        return create_client(url, key, options=opts)
    return create_client(url, key)


def supa() -> Client:
    """
    Thread-safe singleton Supabase client using the service-role key (server-side writes).
    Raises SupabaseConfigError when SUPABASE_URL / SUPABASE_SERVICE_ROLE are missing.
    """
    global _client
    if _client is not None:
        return _client
    with _client_lock:
        if _client is None:
            s = get_settings()
            url = str(s.SUPABASE_URL or os.getenv("SUPABASE_URL") or "").rstrip("/")
            key = s.SUPABASE_SERVICE_ROLE or os.getenv("SUPABASE_KEY") or ""
            if not url or not key:
                raise SupabaseConfigError(
                    "Missing required Supabase env vars for service client (SUPABASE_URL/SERVICE_ROLE)"
                )
            _client = _build_client(url, key, timeout_s=s.SUPABASE_TIMEOUT_S, schema=s.SUPABASE_SCHEMA or "public")
    return _client


def supa_reset() -> None:
    """
    Reset the cached client (handy for tests or when rotating keys at runtime).
    """
    global _client
    with _client_lock:
        _client = None
