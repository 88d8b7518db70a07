# src/taskflow/stores/memory.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any, Generic, TypeVar

from ..core.errors import NotFoundError
from ..core.models import (
    Category,
    Contact,
    Task,
    enforce_completion,
    normalize_category_fields,
    normalize_contact_fields,
    normalize_task_fields,
    parse_datetime,
    task_patch_fields,
    utcnow,
)
from . import fixtures
from .common import as_id_list, contact_sort_key, ensure_unique_category_name

logger = logging.getLogger(__name__)

R = TypeVar("R", Task, Category, Contact)


class _Table(Generic[R]):
    """
    Records keyed by id with integer id allocation.

    Callers always get copies, so mutating a returned record never
    changes what the store holds.
    """

    def __init__(self, entity: str, records: Iterable[R]) -> None:
        self.entity = entity
        self.items: dict[int, R] = {r.id: r for r in records}
        self._next_id = max(self.items, default=0) + 1

    def allocate_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def require(self, record_id: Any) -> R:
        try:
            return self.items[int(record_id)]
        except (KeyError, TypeError, ValueError):
            raise NotFoundError(self.entity, record_id) from None

    def put(self, record: R) -> R:
        self.items[record.id] = record
        return replace(record)

    def values(self) -> list[R]:
        return [replace(r) for r in self.items.values()]

    def remove(self, ids: Iterable[Any]) -> bool:
        all_removed = True
        for raw in ids:
            try:
                del self.items[int(raw)]
            except (KeyError, TypeError, ValueError):
                all_removed = False
        return all_removed


def _task_from_seed(raw: Mapping[str, Any]) -> Task:
    data = dict(raw)
    task_id = int(data.pop("id"))
    created_at = parse_datetime(data.pop("created_at", None)) or utcnow()
    fields = enforce_completion(normalize_task_fields(data))
    return Task(id=task_id, created_at=created_at, **fields)


def _category_from_seed(raw: Mapping[str, Any]) -> Category:
    data = dict(raw)
    category_id = int(data.pop("id"))
    return Category(id=category_id, **normalize_category_fields(data))


def _contact_from_seed(raw: Mapping[str, Any]) -> Contact:
    data = dict(raw)
    contact_id = int(data.pop("id"))
    return Contact(id=contact_id, **normalize_contact_fields(data))


class MemoryTaskStore:
    """Mock task store: an in-memory table, optionally seeded from fixtures."""

    def __init__(self, seed: Iterable[Mapping[str, Any]] = ()) -> None:
        self._table: _Table[Task] = _Table("task", (_task_from_seed(r) for r in seed))

    async def list(self) -> list[Task]:
        return self._table.values()

    async def get(self, task_id: Any) -> Task:
        return replace(self._table.require(task_id))

    async def create(self, fields: Mapping[str, Any]) -> Task:
        clean = enforce_completion(normalize_task_fields(fields))
        task = Task(id=self._table.allocate_id(), created_at=utcnow(), **clean)
        logger.debug("Task created id=%s priority=%s", task.id, task.priority.value)
        return self._table.put(task)

    async def update(self, task_id: Any, patch: Mapping[str, Any]) -> Task:
        current = self._table.require(task_id)
        changes = task_patch_fields(current, patch)
        logger.debug("Task updated id=%s fields=%s", current.id, sorted(changes))
        return self._table.put(replace(current, **changes))

    async def delete(self, task_id: Any) -> bool:
        return self._table.remove(as_id_list(task_id))

    async def close(self) -> None:
        return


class MemoryCategoryStore:
    def __init__(self, seed: Iterable[Mapping[str, Any]] = ()) -> None:
        self._table: _Table[Category] = _Table(
            "category", (_category_from_seed(r) for r in seed)
        )

    async def list(self) -> list[Category]:
        return self._table.values()

    async def get(self, category_id: Any) -> Category:
        return replace(self._table.require(category_id))

    async def create(self, fields: Mapping[str, Any]) -> Category:
        clean = normalize_category_fields(fields)
        ensure_unique_category_name(self._table.items.values(), clean["name"])
        return self._table.put(Category(id=self._table.allocate_id(), **clean))

    async def update(self, category_id: Any, patch: Mapping[str, Any]) -> Category:
        current = self._table.require(category_id)
        changes = normalize_category_fields(patch, partial=True)
        if "name" in changes:
            ensure_unique_category_name(
                self._table.items.values(), changes["name"], exclude_id=current.id
            )
        return self._table.put(replace(current, **changes))

    async def delete(self, category_id: Any) -> bool:
        return self._table.remove(as_id_list(category_id))

    async def close(self) -> None:
        return


class MemoryContactStore:
    def __init__(self, seed: Iterable[Mapping[str, Any]] = ()) -> None:
        self._table: _Table[Contact] = _Table("contact", (_contact_from_seed(r) for r in seed))

    async def list(self) -> list[Contact]:
        return sorted(self._table.values(), key=contact_sort_key)

    async def get(self, contact_id: Any) -> Contact:
        return replace(self._table.require(contact_id))

    async def create(self, fields: Mapping[str, Any]) -> Contact:
        clean = normalize_contact_fields(fields)
        return self._table.put(Contact(id=self._table.allocate_id(), **clean))

    async def update(self, contact_id: Any, patch: Mapping[str, Any]) -> Contact:
        current = self._table.require(contact_id)
        changes = normalize_contact_fields(patch, partial=True)
        return self._table.put(replace(current, **changes))

    async def delete(self, contact_ids: Any | Iterable[Any]) -> bool:
        ids = as_id_list(contact_ids)
        removed = self._table.remove(ids)
        if not removed:
            logger.info("Contact delete: some ids were missing ids=%s", ids)
        return removed

    async def close(self) -> None:
        return


def create_memory_stores(
    *, seed: bool = True
) -> tuple[MemoryTaskStore, MemoryCategoryStore, MemoryContactStore]:
    """Mock backend, seeded from fixtures.py unless seed=False."""
    if not seed:
        return MemoryTaskStore(), MemoryCategoryStore(), MemoryContactStore()
    return (
        MemoryTaskStore(fixtures.TASKS),
        MemoryCategoryStore(fixtures.CATEGORIES),
        MemoryContactStore(fixtures.CONTACTS),
    )
