from __future__ import annotations

import logging
from typing import Literal, cast
from fastapi import FastAPI

from tracewell.core.config import get_settings
from tracewell.core.logging import setup_logging
from tracewell.domain.safety.repo import get_crisis_store

log = logging.getLogger("tracewell.core")


def _startup_health() -> None:
    """
    Best-effort check that crisis storage is reachable.
    Never raises; the tracker fails open when storage is down.
    """
    store = get_crisis_store()
    if store is None:
        log.warning("crisis store not configured (crisis tracking will report inactive)")
    elif not store.ping():
        log.warning("crisis store not reachable")


def register_lifecycle(app: FastAPI) -> None:
    """
    Registers startup/shutdown hooks on the FastAPI app.
    """
    settings = get_settings()
    fmt: Literal["console", "json"] = cast(Literal["console", "json"], settings.LOG_FORMAT)
    setup_logging(level=settings.LOG_LEVEL, fmt=fmt)

    @app.on_event("startup")
    async def _on_startup() -> None:  # noqa: D401
        log.info("starting %s (env=%s)", settings.APP_NAME, settings.ENV)
        _startup_health()

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:  # noqa: D401
        log.info("shutting down %s", settings.APP_NAME)
