"""
Wardmap — FastAPI Application
=============================
Ward boundary service: PostGIS-backed storage, viewport-narrowed
boundary delivery for map clients and bulk GeoJSON import.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wardmap.config import get_settings
from wardmap.routers import wards

logger = logging.getLogger(__name__)
settings = get_settings()


# ── Lifespan (startup / shutdown) ─────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Verify DB connectivity and the PostGIS extension.
        - Create tables.
    Shutdown:
        - Dispose engine pool.
    """
    logger.info("%s starting up...", settings.app_name)

    from wardmap.models.database import engine as db_engine
    from wardmap.models.database import init_models, postgis_version

    version = await postgis_version()
    logger.info("PostGIS connected (version=%s)", version)

    # Ward is registered on Base.metadata through the router imports.
    await init_models()
    logger.info("Database schema verified / created.")

    yield

    await db_engine.dispose()
    logger.info("%s shut down.", settings.app_name)


# ── App factory ───────────────────────────────────────────────────
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Ward boundary service with viewport-aware delivery "
            "and PostGIS spatial indexing."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS for the mobile / web map clients (WARDMAP_CORS_ORIGINS).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(wards.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": settings.app_name}

    return app


# ── Module-level app instance (for `uvicorn wardmap.main:app`) ────
app = create_app()  # pragma: no cover
