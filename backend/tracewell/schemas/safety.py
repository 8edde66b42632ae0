from __future__ import annotations
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

class CrisisState(BaseModel):
    active: bool = False
    last_crisis_at: Optional[str] = Field(None, description="ISO-8601 time of the last flagged message")
    last_crisis_tag: Optional[str] = None
    last_crisis_source: Optional[str] = None
    safe_messages_since: int = 0
    pending_exit_check_in: bool = False

class MessageUpdate(BaseModel):
    active: bool = False
    safe_messages_since: int = 0
    pending_exit_check_in: bool = False

class MarkRequest(BaseModel):
    source: Optional[str] = Field(None, description="Where distress was detected, e.g. chat, journal")
    tag: Optional[str] = Field(None, description="Why it was flagged, e.g. self-harm-language")

class MessageRequest(BaseModel):
    text: Optional[str] = None
    distressed: Optional[bool] = Field(None, description="Upstream classification; classifier runs when omitted")
    region: Optional[str] = None

class CrisisStateResponse(CrisisState):
    degraded: bool = False

class MessageUpdateResponse(MessageUpdate):
    degraded: bool = False
    level: Optional[str] = None
    resources: Optional[str] = None

class ClassifyResponse(BaseModel):
    level: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
