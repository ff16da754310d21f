"""
The Forge — Mod Hosting Backend for SPT
=========================================
Stores mods, add-ons and their releases, orders every versioned record by
semantic version precedence, and resolves dependency and game-version
constraints between them.

Package layout::

    forge/
    ├── config.py          # YAML → typed Python config
    ├── errors.py          # Exception types shared across layers
    ├── constants.py       # Upstream URLs + slug helper
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models for mods, add-ons, SPT versions
    ├── engine/
    │   ├── version.py     # SemanticVersion + the precedence comparator
    │   ├── cleaning.py    # Version string normalisation for imports
    │   └── constraints.py # Composer-style constraint matching
    ├── services/
    │   ├── version_service.py     # Ordered listings, latest versions
    │   ├── dependency_service.py  # Dependency resolution + trees
    │   └── spt_service.py         # GitHub SPT release sync
    └── api/
        ├── __main__.py    # python -m forge.api
        ├── main.py        # FastAPI app
        └── routes/        # Read-only REST endpoints
"""

__version__ = "0.1.0"
