from __future__ import annotations
from fastapi import APIRouter

from . import health, safety

api = APIRouter()
api.include_router(health.router, prefix="/health", tags=["health"])
api.include_router(safety.router, prefix="/safety", tags=["safety"])
