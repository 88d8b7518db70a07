# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskflow.core.board import Board
from taskflow.core.state import AppState
from taskflow.stores.memory import create_memory_stores

from .fakes import RecordingNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Settings stand-in for AppState, bootstrap and the commands.

    Mutable, so a test can switch backend or paths before bootstrapping.
    """
    return SimpleNamespace(
        app_name="taskflow-test",
        log_level="INFO",
        backend="mock",
        seed_fixtures=False,
        api_base_url="",
        api_project_id="",
        api_public_key="",
        api_timeout_seconds=1.0,
        api_connect_timeout_seconds=1.0,
        # Paths (tmp per test run)
        data_dir=tmp_path,
        db_path=tmp_path / "taskflow.sqlite3",
        default_sort="dueDate",
    )


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """AppState wired with empty in-memory stores."""
    task_store, category_store, contact_store = create_memory_stores(seed=False)
    return AppState(
        settings=settings,
        task_store=task_store,
        category_store=category_store,
        contact_store=contact_store,
    )


@pytest.fixture()
def board(state: AppState, notifier: RecordingNotifier) -> Board:
    return Board(state, notifier)
