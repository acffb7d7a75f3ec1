# src/course_planner/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing is read from the environment outside this module.
- Every value has a usable default, so a bare checkout runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "PLANNER"

STORAGE_BACKENDS = ("file", "sqlite", "memory")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Storage ----
    data_dir: Path
    storage_backend: str
    storage_path: Path
    storage_quota_bytes: int
    namespace: str
    write_debounce_ms: int

    # ---- Planner behavior ----
    undo_limit: int
    seed_on_first_run: bool
    purge_orphans_on_delete: bool
    backup_reminder_days: int

    @property
    def write_debounce_seconds(self) -> float:
        return max(0, self.write_debounce_ms) / 1000.0

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "planner").strip() or "planner"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/planner"))

        storage_backend = _env(_k("STORAGE_BACKEND"), "file").strip().lower()
        if storage_backend not in STORAGE_BACKENDS:
            storage_backend = "file"
        default_storage_path = data_dir / ("planner.sqlite3" if storage_backend == "sqlite" else "store")
        storage_path = _env_path(_k("STORAGE_PATH"), default_storage_path)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            storage_backend=storage_backend,
            storage_path=storage_path,
            storage_quota_bytes=max(0, _env_int(_k("STORAGE_QUOTA_BYTES"), 0)),
            namespace=_env(_k("NAMESPACE"), "planner").strip() or "planner",
            write_debounce_ms=max(0, _env_int(_k("WRITE_DEBOUNCE_MS"), 500)),
            undo_limit=max(1, _env_int(_k("UNDO_LIMIT"), 20)),
            seed_on_first_run=_env_bool(_k("SEED_ON_FIRST_RUN"), True),
            purge_orphans_on_delete=_env_bool(_k("PURGE_ORPHANS_ON_DELETE"), True),
            backup_reminder_days=max(1, _env_int(_k("BACKUP_REMINDER_DAYS"), 7)),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
