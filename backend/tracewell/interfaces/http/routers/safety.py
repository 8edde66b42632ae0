from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from tracewell.domain.safety import crisis_state
from tracewell.domain.safety.repo import CrisisStore
from tracewell.domain.safety.service import classify, crisis_message, crisis_tag, is_high_distress
from tracewell.interfaces.http.deps import get_current_user, get_store
from tracewell.schemas.safety import (
    ClassifyResponse,
    CrisisStateResponse,
    MarkRequest,
    MessageRequest,
    MessageUpdateResponse,
)

router = APIRouter()

@router.get("/state", response_model=CrisisStateResponse)
def safety_state(user: Dict[str, Any] = Depends(get_current_user), store: Optional[CrisisStore] = Depends(get_store)):
    out = crisis_state.get_crisis_state(store, user["id"])
    return CrisisStateResponse(**out.value.model_dump(), degraded=not out.ok)

@router.get("/window")
def safety_window(
    window_minutes: float = Query(crisis_state.CRISIS_WINDOW_MINUTES, gt=0),
    user: Dict[str, Any] = Depends(get_current_user),
    store: Optional[CrisisStore] = Depends(get_store),
):
    out = crisis_state.is_in_crisis_window(store, user["id"], window_minutes)
    return {"in_window": out.value, "degraded": not out.ok}

@router.post("/mark")
def safety_mark(body: MarkRequest, user: Dict[str, Any] = Depends(get_current_user), store: Optional[CrisisStore] = Depends(get_store)):
    out = crisis_state.mark_in_crisis(store, user["id"], source=body.source, tag=body.tag)
    return {"ok": out.value, "degraded": not out.ok}

@router.post("/message", response_model=MessageUpdateResponse)
def safety_message(body: MessageRequest, user: Dict[str, Any] = Depends(get_current_user), store: Optional[CrisisStore] = Depends(get_store)):
    level, details = classify(body.text or "")
    distressed = body.distressed if body.distressed is not None else is_high_distress(level)

    out = crisis_state.update_after_message(store, user["id"], distressed, tag=crisis_tag(level, details))

    return MessageUpdateResponse(
        **out.value.model_dump(),
        degraded=not out.ok,
        level=level,
        resources=crisis_message(body.region) if distressed else None,
    )

@router.get("/classify", response_model=ClassifyResponse)
def safety_classify(text: str):
    level, details = classify(text)
    return ClassifyResponse(level=level, details=details)
