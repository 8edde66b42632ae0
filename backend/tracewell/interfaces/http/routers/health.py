from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from tracewell.domain.safety.repo import CrisisStore
from tracewell.interfaces.http.deps import get_store

router = APIRouter()

@router.get("/healthz")
def healthz(store: Optional[CrisisStore] = Depends(get_store)):
    ok_store = store is not None and store.ping()
    return {"ok": ok_store, "store": ok_store}
