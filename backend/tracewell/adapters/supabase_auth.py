from __future__ import annotations

import os
from typing import Any, Dict

import httpx


class SupabaseAuthError(Exception):
    pass


def verify_supabase_token(token: str) -> Dict[str, Any]:
    """
    Resolve a Supabase (GoTrue) access token to its user by calling /auth/v1/user
    with the project's anon key. Returns the user payload with a "sub" key set.
    """
    url = (os.getenv("SUPABASE_URL") or "").rstrip("/")
    anon = os.getenv("SUPABASE_ANON_KEY")
    if not url or not anon:
        raise SupabaseAuthError("Missing SUPABASE_URL or SUPABASE_ANON_KEY")

    headers = {
        "Authorization": f"Bearer {token}",
        "apikey": anon,
        "accept": "application/json",
    }
    try:
        with httpx.Client(timeout=httpx.Timeout(5.0)) as client:
            resp = client.get(f"{url}/auth/v1/user", headers=headers)
    except httpx.HTTPError as e:
        raise SupabaseAuthError(f"Auth verification failed: {e}") from e

    if resp.status_code != 200:
        raise SupabaseAuthError("Invalid token")
    data = resp.json() or {}
    user_id = data.get("id") or data.get("sub")
    if not user_id:
        raise SupabaseAuthError("Token verified but user id missing")
    data.setdefault("sub", user_id)
    return data
