"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

MARKER_BACKENDS = {"session", "database"}


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "Spendle"
    DB_FILENAME = "spendle.db"
    TESTING = False
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("SPENDLE_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("SPENDLE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("SPENDLE_DATABASE_URL", self._build_sqlite_url())
        self.MARKER_BACKEND = os.getenv("SPENDLE_MARKER_BACKEND", "session").strip().lower()
        if self.MARKER_BACKEND not in MARKER_BACKENDS:
            raise ValueError(
                f"SPENDLE_MARKER_BACKEND must be one of {sorted(MARKER_BACKENDS)}, "
                f"got {self.MARKER_BACKEND!r}"
            )
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("SPENDLE_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("SPENDLE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; keeps everything in DATA_DIR."""

    TESTING = True
    __test__ = False  # keep pytest from collecting this class
