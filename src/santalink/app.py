"""Santalink — FastAPI application.

Secret Santa draw behind private claim links. The store backend is
chosen once at startup; handlers reach it through the draw service on
app.state, never through module globals.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from santalink.config import SantalinkConfig, load_config
from santalink.errors import (
    InvalidToken,
    SantalinkError,
    StaleAssignments,
    StoreUnavailable,
)
from santalink.registry import TokenRegistry
from santalink.routes import admin, claim
from santalink.service import SantaService
from santalink.store.factory import open_store

logger = logging.getLogger("santalink")
audit_logger = logging.getLogger("santalink.audit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: open the store and roster. Shutdown: release the store."""
    config: SantalinkConfig = app.state.config
    logger.info("Opening data directory %s", config.data_dir)
    store = open_store(config)
    registry = TokenRegistry(
        Path(config.data_dir),
        seed_path=Path(config.roster_seed) if config.roster_seed else None,
    )
    app.state.service = SantaService(
        registry,
        store,
        base_url=config.base_url,
        lock_timeout=config.store_timeout,
    )
    logger.info("Santalink ready (store: %s)", store.mode)
    yield
    store.close()
    logger.info("Santalink shut down")


def create_app(config: SantalinkConfig | None = None) -> FastAPI:
    """Application factory."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Santalink",
        description="Secret Santa draw with private claim links",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

    # ── Exception handlers ────────────────────────────────────

    @app.exception_handler(InvalidToken)
    async def invalid_token_handler(request: Request, exc: InvalidToken):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StaleAssignments)
    async def stale_handler(request: Request, exc: StaleAssignments):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def unavailable_handler(request: Request, exc: StoreUnavailable):
        logger.error("Store unavailable: %s", exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(SantalinkError)
    async def santalink_handler(request: Request, exc: SantalinkError):
        logger.error("%s: %s", type(exc).__name__, exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # ── Audit middleware ──────────────────────────────────────

    @app.middleware("http")
    async def audit_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        audit_logger.info(
            "%s %s %d %.3fs",
            request.method,
            _redact(request.url.path),
            response.status_code,
            elapsed,
        )
        return response

    # ── Routers ───────────────────────────────────────────────

    app.include_router(claim.router)
    app.include_router(admin.router)

    return app


def _redact(path: str) -> str:
    """Keep claim tokens out of the audit log."""
    if path.startswith("/api/whoami/"):
        return "/api/whoami/<token>"
    return path
