"""Repair marketplace admin dashboard service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger

from .backends import StoreBundle, build_store_bundle
from .common.config import BaseConfig
from .deletion import kinds
from .deletion.routes import router as deletion_router

SERVICE_NAME = "Repair Marketplace Admin Dashboard"
SERVICE_VERSION = "v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler:
    - Startup: load configuration and build the store bundle
    - Shutdown: log completion
    """
    # -------- Startup --------
    if getattr(app.state, "config", None) is None:
        from .common.config import get_config

        app.state.config = get_config()
        logger.info("Loaded configuration via get_config()")

    config = cast(BaseConfig, app.state.config)

    if getattr(app.state, "bundle", None) is None:
        app.state.bundle = build_store_bundle(config, kinds.collections())

    bundle = cast(StoreBundle, app.state.bundle)
    if bundle.is_configured:
        logger.info(f"Store backends ready (backend={bundle.backend})")
    else:
        logger.warning(f"Store backends missing: {', '.join(bundle.missing())}")

    logger.info("Dashboard service initialized")

    try:
        yield  # ---- application runs here ----
    finally:
        # -------- Shutdown --------
        logger.info("Dashboard service shutdown complete")


app = FastAPI(
    title=SERVICE_NAME,
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.include_router(deletion_router)


@app.get("/", tags=["health"], summary="Health Check", operation_id="health_check")
async def health_check(request: Request) -> dict[str, Any]:
    bundle = cast(StoreBundle | None, getattr(request.app.state, "bundle", None))
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "backend": bundle.backend if bundle else None,
        "stores_configured": bool(bundle and bundle.is_configured),
    }


@app.exception_handler(HTTPException)
async def http_exception_handler(_request: Request, exc: HTTPException):
    """
    Preserve the default FastAPI HTTPException handling shape so callers
    can rely on the same error response structure.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )
