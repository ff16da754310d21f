"""
forge.api.__main__ — Entry point for ``python -m forge.api``
==============================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Serve :data:`forge.api.main.app` on ``api_port``.

Run with::

    python -m forge.api
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from forge.config import load_config
from forge.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("forge")


def main() -> None:
    """Bootstrap and run the Forge API."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config(os.getenv("FORGE_CONFIG", "config.yaml"))
    logger.info("Config loaded — Site: %s", cfg.site_name)

    # 3. Database (Alembic owns production schemas; this covers dev SQLite).
    init_db(create_db_engine())

    # 4. Serve (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Forge API on port %d…", cfg.api_port)
    uvicorn.run("forge.api.main:app", host="0.0.0.0", port=cfg.api_port, log_config=None)


if __name__ == "__main__":
    main()
