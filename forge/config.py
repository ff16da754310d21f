"""
forge.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for **non-secret** settings (site identity, API port,
SPT release sync).  Secrets (``DATABASE_URL``,
``GITHUB_TOKEN``) come from the environment / ``.env``.

Usage::

    from forge.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.site_name)         # "The Forge"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from forge.constants import GITHUB_SPT_RELEASES_URL


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ForgeConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    site_name: str
    site_url: str

    # API
    api_port: int

    # SPT release sync
    spt_releases_url: str = GITHUB_SPT_RELEASES_URL
    spt_sync_interval_minutes: int = 0  # 0 disables the background sync

    @property
    def user_agent(self) -> str:
        return f"{self.site_name} ({self.site_url})"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> ForgeConfig:
    """Read *path* and return a :class:`ForgeConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return ForgeConfig(
        site_name=raw["site_name"],
        site_url=raw["site_url"],
        api_port=int(raw["api_port"]),
        spt_releases_url=raw.get("spt_releases_url") or GITHUB_SPT_RELEASES_URL,
        spt_sync_interval_minutes=int(raw.get("spt_sync_interval_minutes", 0)),
    )
