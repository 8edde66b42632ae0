# backend/tracewell/interfaces/http/deps/auth.py
from __future__ import annotations

import os
from typing import Optional, Dict, Any, Annotated

from fastapi import Header, HTTPException
from tracewell.adapters.supabase_auth import verify_supabase_token, SupabaseAuthError

# NOTE: no default inside Header(); the default (None) lives on the parameter.
AuthHeader = Annotated[Optional[str], Header(alias="Authorization")]


def dev_bypass_enabled() -> bool:
    """Local-only auth bypass. Never enable in production."""
    return os.getenv("DEV_BYPASS_AUTH", "").lower() in {"1", "true", "yes"}


def _extract_bearer(auth: Optional[str]) -> str:
    if not auth:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    parts = auth.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Expected 'Bearer <token>'")
    return parts[1]


def get_current_user(authorization: AuthHeader = None) -> Dict[str, Any]:
    """
    Strict auth dependency. In dev, can be bypassed with DEV_BYPASS_AUTH=1.
    """
    if dev_bypass_enabled():
        return {"id": "dev-user", "claims": {"dev": True}}

    token = _extract_bearer(authorization)
    try:
        claims = verify_supabase_token(token)
    except SupabaseAuthError:
        raise HTTPException(status_code=401, detail="Invalid token")
    return {"id": claims.get("sub"), "claims": claims}


__all__ = ["AuthHeader", "get_current_user", "dev_bypass_enabled"]
