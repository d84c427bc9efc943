from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api import router
from logging_config import configure_logging
from services.codec import DecodeError
from services.upload_server import build_default_upload_server
from settings import get_settings
from storage.base import StoreError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    server = None
    if get_settings().upload_server_enabled:
        server = build_default_upload_server()
        server.start()
    try:
        yield
    finally:
        if server is not None:
            server.stop()
            build_default_upload_server.cache_clear()


async def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error."},
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Tick Ingest",
        description="Receives sensor ticks over TCP and serves controller, sensor and tick queries.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(StoreError, _server_error)
    app.add_exception_handler(DecodeError, _server_error)
    app.include_router(router)
    return app

app = create_app()
