from __future__ import annotations
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api import router
from app.web import router as web_router
from datastore.documents import build_default_store
from logging_config import configure_logging
from services.farmers import build_default_registry
from services.harvests import build_default_harvest_log
from services.monitoring import build_default_monitor


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Loads and validates thresholds before the first request.
    build_default_monitor()
    try:
        yield
    finally:
        build_default_monitor.cache_clear()
        build_default_registry.cache_clear()
        build_default_harvest_log.cache_clear()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Farm Monitor",
        description="Sensor dashboard, condition advice and farm records backed by a mock document store.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
