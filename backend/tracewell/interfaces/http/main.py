# backend/tracewell/interfaces/http/main.py
from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging
import uuid

from tracewell import __version__
from tracewell.core.config import get_settings
from tracewell.core.events import register_lifecycle

logger = logging.getLogger("tracewell")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.APP_NAME, version=__version__)
    register_lifecycle(app)

    allowed_origins = ["http://localhost:3000", "http://localhost:8081"]
    if settings.ALLOWED_ORIGINS:
        allowed_origins.extend(o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins if settings.ENV == "production" else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # simple liveness
    @app.get("/_/ping")
    def _ping():
        return {"ok": True}

    # Every error gets a request_id so client reports can be matched to logs.
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        req_id = str(uuid.uuid4())
        logger.warning("HTTPException %s %s %s", req_id, exc.status_code, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "http_error",
                "status_code": exc.status_code,
                "message": exc.detail,
                "request_id": req_id,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        req_id = str(uuid.uuid4())
        logger.warning("ValidationError %s %s", req_id, exc)
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "Invalid request payload",
                "details": exc.errors(),
                "request_id": req_id,
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        req_id = str(uuid.uuid4())
        logger.error("Unhandled exception %s %s", req_id, exc, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "type": exc.__class__.__name__,
                "message": str(exc),
                "request_id": req_id,
            },
        )

    from tracewell.interfaces.http.routers import api

    app.include_router(api)
    return app

app = create_app()
