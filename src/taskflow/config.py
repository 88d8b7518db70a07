# src/taskflow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- The backend (mock / sqlite / api) is picked here, once, at process start.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKFLOW"

BACKENDS = ("mock", "sqlite", "api")

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
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

    # ---- Backend selection ----
    backend: str
    seed_fixtures: bool

    # ---- Remote API ----
    api_base_url: str
    api_project_id: str
    api_public_key: str
    api_timeout_seconds: float
    api_connect_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- View defaults ----
    default_sort: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="taskflow") or "taskflow"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        backend = _env(_k("BACKEND"), "mock").strip().lower()
        if backend not in BACKENDS:
            backend = "mock"
        seed_fixtures = _env_bool(_k("SEED_FIXTURES"), True)

        api_base_url = (_first_env(_k("API_BASE_URL"), default="") or "").strip()
        api_project_id = (_first_env(_k("API_PROJECT_ID"), default="") or "").strip()
        api_public_key = (_first_env(_k("API_PUBLIC_KEY"), default="") or "").strip()
        api_timeout_seconds = _env_float(_k("API_TIMEOUT_SECONDS"), 15.0)
        api_connect_timeout_seconds = _env_float(_k("API_CONNECT_TIMEOUT_SECONDS"), 5.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskflow"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "taskflow.sqlite3")

        default_sort = _env(_k("DEFAULT_SORT"), "dueDate").strip() or "dueDate"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            backend=backend,
            seed_fixtures=seed_fixtures,
            api_base_url=api_base_url,
            api_project_id=api_project_id,
            api_public_key=api_public_key,
            api_timeout_seconds=api_timeout_seconds,
            api_connect_timeout_seconds=api_connect_timeout_seconds,
            data_dir=data_dir,
            db_path=db_path,
            default_sort=default_sort,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
