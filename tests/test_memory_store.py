# tests/test_memory_store.py

from __future__ import annotations

import pytest

from taskflow.core.errors import NotFoundError, ValidationError
from taskflow.core.models import Priority
from taskflow.stores import fixtures
from taskflow.stores.memory import (
    MemoryCategoryStore,
    MemoryContactStore,
    MemoryTaskStore,
    create_memory_stores,
)


@pytest.mark.asyncio
async def test_seeded_stores_expose_fixtures() -> None:
    tasks, categories, contacts = create_memory_stores(seed=True)

    assert len(await tasks.list()) == len(fixtures.TASKS)
    assert {c.name for c in await categories.list()} == {"Work", "Personal", "Shopping", "Health"}
    assert len(await contacts.list()) == len(fixtures.CONTACTS)

    # Seeded completed tasks still honor the completion invariant.
    for task in await tasks.list():
        assert task.completed == (task.completed_at is not None)


@pytest.mark.asyncio
async def test_task_create_update_delete() -> None:
    store = MemoryTaskStore()

    task = await store.create({"title": "Write report", "priority": "high", "category": "Work"})
    assert task.id == 1
    assert task.priority is Priority.HIGH
    assert task.completed is False
    assert task.completed_at is None

    done = await store.update(task.id, {"completed": True})
    assert done.completed is True
    assert done.completed_at is not None

    reopened = await store.update(task.id, {"completed": False})
    assert reopened.completed_at is None

    assert await store.delete(task.id) is True
    assert await store.list() == []


@pytest.mark.asyncio
async def test_task_ids_are_not_reused() -> None:
    store = MemoryTaskStore()
    first = await store.create({"title": "a"})
    await store.delete(first.id)

    second = await store.create({"title": "b"})

    assert second.id != first.id


@pytest.mark.asyncio
async def test_returned_tasks_are_copies() -> None:
    store = MemoryTaskStore()
    task = await store.create({"title": "original"})

    task.title = "mutated"

    assert (await store.get(task.id)).title == "original"


@pytest.mark.asyncio
async def test_task_missing_id_raises_not_found_and_delete_reports_false() -> None:
    store = MemoryTaskStore()

    with pytest.raises(NotFoundError):
        await store.get(99)
    with pytest.raises(NotFoundError):
        await store.update(99, {"title": "x"})
    assert await store.delete(99) is False


@pytest.mark.asyncio
async def test_task_create_validates() -> None:
    store = MemoryTaskStore()

    with pytest.raises(ValidationError):
        await store.create({"title": ""})
    assert await store.list() == []


@pytest.mark.asyncio
async def test_category_names_are_unique() -> None:
    store = MemoryCategoryStore()
    work = await store.create({"name": "Work"})
    home = await store.create({"name": "Home", "color": "#10B981", "icon": "Home"})

    with pytest.raises(ValidationError):
        await store.create({"name": "Work"})
    with pytest.raises(ValidationError):
        await store.update(home.id, {"name": "Work"})

    # Renaming to its own name is fine.
    assert (await store.update(work.id, {"name": "Work"})).name == "Work"
    assert work.color == "#3B82F6"


@pytest.mark.asyncio
async def test_contacts_are_listed_by_last_then_first_name() -> None:
    store = MemoryContactStore()
    await store.create({"first_name": "Zoe", "last_name": "adams", "email": "z@x.io"})
    await store.create({"first_name": "Bob", "last_name": "Young", "email": "b@x.io"})
    await store.create({"first_name": "Amy", "last_name": "Adams", "email": "a@x.io"})

    names = [c.full_name for c in await store.list()]

    assert names == ["Amy Adams", "Zoe adams", "Bob Young"]


@pytest.mark.asyncio
async def test_contact_bulk_delete_reports_partial_failure() -> None:
    store = MemoryContactStore()
    a = await store.create({"first_name": "A", "last_name": "A", "email": "a@x.io"})
    b = await store.create({"first_name": "B", "last_name": "B", "email": "b@x.io"})
    c = await store.create({"first_name": "C", "last_name": "C", "email": "c@x.io"})

    assert await store.delete([a.id, b.id]) is True
    assert await store.delete([c.id, 404]) is False
    assert await store.list() == []


@pytest.mark.asyncio
async def test_contact_delete_with_repeated_id_succeeds() -> None:
    store = MemoryContactStore()
    a = await store.create({"first_name": "A", "last_name": "A", "email": "a@x.io"})
    b = await store.create({"first_name": "B", "last_name": "B", "email": "b@x.io"})

    assert await store.delete([a.id, a.id, b.id]) is True
    assert await store.list() == []
