# src/taskflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the store backend (mock / sqlite / api) and wires it into AppState,
- closes stores on shutdown.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import CategoryStore, ContactStore, TaskStore
from ..core.state import AppState
from ..core.view import ViewState
from ..stores.api import create_api_stores
from ..stores.memory import create_memory_stores
from ..stores.sqlite import create_sqlite_stores

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_stores(settings) -> tuple[TaskStore, CategoryStore, ContactStore]:
    backend = str(getattr(settings, "backend", "mock") or "mock").lower()

    if backend == "sqlite":
        return create_sqlite_stores(settings.db_path)

    if backend == "api":
        # Raises RuntimeError with a readable message when the URL is missing.
        return create_api_stores(settings)

    return create_memory_stores(seed=bool(getattr(settings, "seed_fixtures", True)))


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store, category_store, contact_store = create_stores(settings)
    logger.info("Using %s backend", getattr(settings, "backend", "mock"))

    return AppState(
        settings=settings,
        task_store=task_store,
        category_store=category_store,
        contact_store=contact_store,
        view=ViewState(sort_by=str(getattr(settings, "default_sort", "dueDate"))),
    )


async def close_stores(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    for store in (state.task_store, state.category_store, state.contact_store):
        try:
            await store.close()
        except Exception:
            logger.debug("Store close failed: %r", store, exc_info=True)
