"""TOML configuration loader for pantrykit."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class DatabaseConfig:
    backend: str = "sqlite"
    path: str = "~/.config/pantrykit/pantry.db"


@dataclass
class OCRConfig:
    backend: str = "mock"
    min_confidence: float = 0.0
    default_confidence: float = 1.0


@dataclass
class PantrySettings:
    default_storage: str = "fridge"
    expiring_soon_days: int = 3


@dataclass
class RecipeSettings:
    max_time: int = 60
    min_servings: int = 1
    max_servings: int = 8


@dataclass
class PantryConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    pantry: PantrySettings = field(default_factory=PantrySettings)
    recipes: RecipeSettings = field(default_factory=RecipeSettings)


def load_config(path: str | Path | None = None) -> PantryConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database location can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    ocr = raw.get("ocr", {})
    pan = raw.get("pantry", {})
    rcp = raw.get("recipes", {})

    # Resolve database settings: environment variable → config file → default
    db_backend = os.environ.get("PANTRYKIT_DB_BACKEND", "") or dbs.get(
        "backend", "sqlite"
    )
    db_path = os.environ.get("PANTRYKIT_DB_PATH", "") or dbs.get(
        "path", "~/.config/pantrykit/pantry.db"
    )

    return PantryConfig(
        database=DatabaseConfig(backend=db_backend, path=db_path),
        ocr=OCRConfig(
            backend=ocr.get("backend", "mock"),
            min_confidence=ocr.get("min_confidence", 0.0),
            default_confidence=ocr.get("default_confidence", 1.0),
        ),
        pantry=PantrySettings(
            default_storage=pan.get("default_storage", "fridge"),
            expiring_soon_days=pan.get("expiring_soon_days", 3),
        ),
        recipes=RecipeSettings(
            max_time=rcp.get("max_time", 60),
            min_servings=rcp.get("min_servings", 1),
            max_servings=rcp.get("max_servings", 8),
        ),
    )
