from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from streamrecord.service import RESPONSES
from .routers import health, record
from .cron.capture import start_capture
from .cron.sweeper import start_sweeper


logger = logging.getLogger(__name__)


def create_app(background: bool | None = None) -> FastAPI:
    app = FastAPI(title="Stream Record", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(record.router, tags=["record"])  # /record
    app.include_router(health.router, prefix="/api", tags=["health"])

    if background is None:
        background = os.getenv("STREAMRECORD_BACKGROUND", "1") != "0"
    if background:
        # Auto LP capture on the stream's live edge
        start_capture()
        # Purge expired KV rows
        start_sweeper()

    # Chat bots display whatever comes back, so /record never returns JSON errors
    @app.exception_handler(Exception)
    async def on_error(request: Request, exc: Exception):
        logger.exception("unhandled error on %s", request.url.path)
        if request.url.path == "/record":
            return PlainTextResponse(RESPONSES["unknown_error"], headers={"Cache-Control": "no-store"})
        return JSONResponse({"ok": False, "error": {"code": "INTERNAL", "message": str(exc)}}, status_code=500, headers={"Cache-Control": "no-store"})

    @app.middleware("http")
    async def no_store_middleware(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        return response

    return app


app = create_app()
