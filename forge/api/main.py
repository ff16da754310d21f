"""
forge.api.main — FastAPI application entry point
==================================================

Run with::

    uvicorn forge.api.main:app --reload --port 8000
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from forge.api.deps import get_config, get_engine  # noqa: E402
from forge.api.routes.addons import router as addons_router  # noqa: E402
from forge.api.routes.mods import router as mods_router  # noqa: E402
from forge.api.routes.spt import router as spt_router  # noqa: E402
from forge.api.routes.versions import router as versions_router  # noqa: E402
from forge.config import ForgeConfig  # noqa: E402
from forge.database.engine import run_db  # noqa: E402
from forge.services.spt_service import (  # noqa: E402
    fetch_github_releases_async,
    sync_spt_versions_from_releases,
)

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from ``CORS_ALLOW_ORIGINS`` (comma-separated)."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]


async def _spt_sync_loop(cfg: ForgeConfig) -> None:
    """Mirror GitHub SPT releases every ``spt_sync_interval_minutes``."""
    engine = get_engine()
    token = os.getenv("GITHUB_TOKEN") or None
    transport = httpx.AsyncHTTPTransport(retries=1)
    async with httpx.AsyncClient(timeout=30, transport=transport) as client:
        while True:
            try:
                releases = await fetch_github_releases_async(
                    client, cfg.spt_releases_url, user_agent=cfg.user_agent, token=token,
                )
                inserted = await run_db(sync_spt_versions_from_releases, engine, releases)
                logger.info("SPT sync finished — %d new releases", inserted)
            except Exception:
                logger.exception("SPT sync failed; retrying next interval")
            await asyncio.sleep(cfg.spt_sync_interval_minutes * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine, start the SPT sync."""
    engine = get_engine()
    logger.info("Forge API started — engine ready (%s)", engine.url.database)

    sync_task: asyncio.Task | None = None
    try:
        cfg = get_config()
    except FileNotFoundError:
        logger.warning("No config.yaml found — SPT release sync disabled")
    else:
        if cfg.spt_sync_interval_minutes > 0:
            sync_task = asyncio.create_task(_spt_sync_loop(cfg))

    yield

    if sync_task is not None:
        sync_task.cancel()
        with suppress(asyncio.CancelledError):
            await sync_task
    logger.info("Forge API shutting down")


app = FastAPI(
    title="The Forge API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(mods_router, prefix="/api")
app.include_router(addons_router, prefix="/api")
app.include_router(spt_router, prefix="/api")
app.include_router(versions_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
