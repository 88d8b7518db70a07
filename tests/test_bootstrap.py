# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskflow.cli.bootstrap import close_stores, create_initial_state
from taskflow.config import Settings
from taskflow.stores.api import ApiTaskStore
from taskflow.stores.memory import MemoryTaskStore
from taskflow.stores.sqlite import SqliteTaskStore


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("TASKFLOW_BACKEND", "SQLite")
    monkeypatch.setenv("TASKFLOW_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKFLOW_API_TIMEOUT_SECONDS", "not-a-number")
    monkeypatch.setenv("TASKFLOW_SEED_FIXTURES", "no")
    monkeypatch.delenv("TASKFLOW_DB_PATH", raising=False)

    s = Settings.from_env()

    assert s.backend == "sqlite"
    assert s.data_dir == tmp_path
    assert s.db_path == tmp_path / "taskflow.sqlite3"
    assert s.api_timeout_seconds == 15.0
    assert s.seed_fixtures is False


def test_unknown_backend_falls_back_to_mock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKFLOW_BACKEND", "postgres")

    assert Settings.from_env().backend == "mock"


def test_mock_backend_is_default(settings) -> None:
    state = create_initial_state(settings=settings)

    assert isinstance(state.task_store, MemoryTaskStore)
    assert state.view.sort_by == "dueDate"
    assert state.loaded is False


def test_sqlite_backend_creates_db_file(settings) -> None:
    settings.backend = "sqlite"
    settings.db_path = settings.data_dir / "nested" / "db.sqlite3"

    state = create_initial_state(settings=settings)

    assert isinstance(state.task_store, SqliteTaskStore)
    assert settings.db_path.exists()


def test_api_backend_requires_base_url(settings) -> None:
    settings.backend = "api"

    with pytest.raises(RuntimeError):
        create_initial_state(settings=settings)


@pytest.mark.asyncio
async def test_api_backend_stores_share_one_client(settings) -> None:
    settings.backend = "api"
    settings.api_base_url = "https://api.test"
    settings.default_sort = "priority"

    state = create_initial_state(settings=settings)

    assert isinstance(state.task_store, ApiTaskStore)
    assert state.view.sort_by == "priority"
    # Closing three stores over one client must not fail.
    await close_stores(state)
