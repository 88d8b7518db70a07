# src/taskflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The board depends on Protocols instead of concrete stores.
Mock, SQLite and remote API stores are interchangeable behind them and the
choice is made once in cli/bootstrap.py.

Store contract:
- list()            -> all records; FetchError on transport/server failure
- get(id)           -> record; NotFoundError if absent
- create(fields)    -> record with id assigned; ValidationError / TransportError
- update(id, patch) -> record; NotFoundError / ValidationError
- delete(id | ids)  -> True iff every requested record was removed; TransportError
"""

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from .models import Category, Contact, Task


class TaskStore(Protocol):
    async def list(self) -> list[Task]: ...
    async def get(self, task_id: Any) -> Task: ...
    async def create(self, fields: Mapping[str, Any]) -> Task: ...
    async def update(self, task_id: Any, patch: Mapping[str, Any]) -> Task: ...
    async def delete(self, task_id: Any) -> bool: ...
    async def close(self) -> None: ...


class CategoryStore(Protocol):
    async def list(self) -> list[Category]: ...
    async def get(self, category_id: Any) -> Category: ...
    async def create(self, fields: Mapping[str, Any]) -> Category: ...
    async def update(self, category_id: Any, patch: Mapping[str, Any]) -> Category: ...
    async def delete(self, category_id: Any) -> bool: ...
    async def close(self) -> None: ...


class ContactStore(Protocol):
    async def list(self) -> list[Contact]: ...
    async def get(self, contact_id: Any) -> Contact: ...
    async def create(self, fields: Mapping[str, Any]) -> Contact: ...
    async def update(self, contact_id: Any, patch: Mapping[str, Any]) -> Contact: ...
    async def delete(self, contact_ids: Any | Iterable[Any]) -> bool: ...
    async def close(self) -> None: ...


class Notifier(Protocol):
    """
    Transient user-facing notifications (the console prints them).

    Connectors decide how to show them; the board only says what happened.
    """

    def success(self, text: str) -> None: ...
    def info(self, text: str) -> None: ...
    def warning(self, text: str) -> None: ...
    def error(self, text: str) -> None: ...
