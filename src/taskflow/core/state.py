# src/taskflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from .models import Category, Contact, Task
from .ports import CategoryStore, ContactStore, TaskStore
from .view import ViewState


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    task_store: TaskStore
    category_store: CategoryStore
    contact_store: ContactStore

    # Local collections: only ever changed after a store confirms.
    tasks: list[Task] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    contacts: list[Contact] = field(default_factory=list)

    view: ViewState = field(default_factory=ViewState)
    contact_search: str = ""

    loaded: bool = False
    load_error: str | None = None
