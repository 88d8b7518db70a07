# tests/test_board.py

from __future__ import annotations

from datetime import timedelta

import pytest

from taskflow.core.board import Board
from taskflow.core.errors import FetchError, TransportError
from taskflow.core.state import AppState
from taskflow.stores.memory import create_memory_stores

from .fakes import BASE_TIME, FailingStore, RecordingNotifier


async def _seed_contacts(board: Board, n: int) -> list:
    contacts = []
    for i in range(n):
        c = await board.create_contact(
            {"first_name": f"F{i}", "last_name": f"L{i}", "email": f"c{i}@x.io"}
        )
        contacts.append(c)
    board.notifier.notices.clear()
    return contacts


@pytest.mark.asyncio
async def test_load_all_fills_state(settings, notifier: RecordingNotifier) -> None:
    tasks, categories, contacts = create_memory_stores(seed=True)
    state = AppState(settings, tasks, categories, contacts)
    board = Board(state, notifier)

    assert await board.load_all() is True

    assert state.loaded is True
    assert state.load_error is None
    assert len(state.tasks) == 5
    assert len(state.categories) == 4
    assert len(state.contacts) == 3
    assert notifier.notices == []


@pytest.mark.asyncio
async def test_load_failure_replaces_nothing(board: Board, notifier: RecordingNotifier) -> None:
    await board.create_task({"title": "kept"})
    board.state.category_store = FailingStore(FetchError("Failed to fetch category records"))
    before = list(board.state.tasks)

    assert await board.load_all() is False

    assert board.state.tasks == before
    assert board.state.loaded is False
    assert board.state.load_error == "Failed to fetch category records"
    assert notifier.texts("error") == ["Failed to load data"]


@pytest.mark.asyncio
async def test_load_reraises_unexpected_errors(board: Board) -> None:
    board.state.contact_store = FailingStore(RuntimeError("bug"))

    with pytest.raises(RuntimeError):
        await board.load_all()


@pytest.mark.asyncio
async def test_create_task_appends_and_notifies(board: Board, notifier: RecordingNotifier) -> None:
    task = await board.create_task({"title": "Write tests", "priority": "high"})

    assert task is not None
    assert board.state.tasks == [task]
    assert notifier.texts("success") == ["Task created successfully!"]


@pytest.mark.asyncio
async def test_create_task_invalid_never_reaches_store(board: Board, notifier: RecordingNotifier) -> None:
    failing = FailingStore(TransportError("unused"))
    board.state.task_store = failing

    assert await board.create_task({"title": "  "}) is None

    assert failing.calls == []
    assert board.state.tasks == []
    assert notifier.texts("error")[0].startswith("Invalid task:")


@pytest.mark.asyncio
async def test_create_task_store_failure_leaves_state(board: Board, notifier: RecordingNotifier) -> None:
    board.state.task_store = FailingStore(TransportError("timeout"))

    assert await board.create_task({"title": "x"}) is None

    assert board.state.tasks == []
    assert notifier.texts("error") == ["Failed to create task"]


@pytest.mark.asyncio
async def test_update_task_replaces_in_place(board: Board) -> None:
    a = await board.create_task({"title": "a"})
    b = await board.create_task({"title": "b"})

    updated = await board.update_task(a.id, {"title": "a2"})

    assert updated is not None
    assert [t.title for t in board.state.tasks] == ["a2", "b"]
    assert board.state.tasks[1] == b


@pytest.mark.asyncio
async def test_update_missing_task_fails(board: Board, notifier: RecordingNotifier) -> None:
    assert await board.update_task(99, {"title": "x"}) is None
    assert notifier.texts("error") == ["Failed to update task"]


@pytest.mark.asyncio
async def test_toggle_complete_round_trip(board: Board, notifier: RecordingNotifier) -> None:
    task = await board.create_task({"title": "toggle me"})
    now = BASE_TIME + timedelta(days=3)

    done = await board.toggle_complete(task.id, now=now)
    assert done is not None
    assert done.completed is True
    assert done.completed_at == now

    undone = await board.toggle_complete(task.id)
    assert undone is not None
    assert undone.completed is False
    assert undone.completed_at is None

    assert "Task completed!" in notifier.texts("success")
    assert notifier.texts("info") == ["Task marked as incomplete"]
    assert board.task_view().stats.completed_count == 0


@pytest.mark.asyncio
async def test_toggle_failure_keeps_local_task(board: Board, notifier: RecordingNotifier) -> None:
    task = await board.create_task({"title": "x"})
    board.state.task_store = FailingStore(TransportError("down"))

    assert await board.toggle_complete(task.id) is None

    assert board.state.tasks == [task]
    assert notifier.texts("error") == ["Failed to update task"]


@pytest.mark.asyncio
async def test_toggle_unknown_task(board: Board, notifier: RecordingNotifier) -> None:
    assert await board.toggle_complete(5) is None
    assert notifier.texts("error") == ["No such task: 5"]


@pytest.mark.asyncio
async def test_delete_task(board: Board, notifier: RecordingNotifier) -> None:
    a = await board.create_task({"title": "a"})
    b = await board.create_task({"title": "b"})

    assert await board.delete_task(a.id) is True
    assert board.state.tasks == [b]

    # Unknown id: the store reports False, which is a failure.
    assert await board.delete_task(a.id) is False
    assert notifier.texts("error") == ["Failed to delete task"]


@pytest.mark.asyncio
async def test_ids_from_the_command_line_match_stored_ids(board: Board) -> None:
    task = await board.create_task({"title": "a"})

    assert board.find_task(str(task.id)) is task


@pytest.mark.asyncio
async def test_category_crud_and_tasks_keep_deleted_category(board: Board) -> None:
    work = await board.create_category({"name": "Work"})
    task = await board.create_task({"title": "report", "category": "Work"})

    renamed = await board.update_category(work.id, {"color": "#000000"})
    assert renamed is not None and renamed.color == "#000000"

    assert await board.delete_category(work.id) is True
    assert board.state.categories == []
    assert board.find_task(task.id).category == "Work"


@pytest.mark.asyncio
async def test_duplicate_category_is_reported(board: Board, notifier: RecordingNotifier) -> None:
    await board.create_category({"name": "Work"})

    assert await board.create_category({"name": "Work"}) is None
    assert len(board.state.categories) == 1
    assert notifier.texts("error")[0].startswith("Failed to create category")


@pytest.mark.asyncio
async def test_contact_requires_fields(board: Board, notifier: RecordingNotifier) -> None:
    assert await board.create_contact({"first_name": "Ann"}) is None
    assert notifier.texts("error") == ["Please fill in all required fields"]

    (c,) = await _seed_contacts(board, 1)
    assert await board.update_contact(c.id, {"email": ""}) is None
    assert notifier.texts("error") == ["Please fill in all required fields"]


@pytest.mark.asyncio
async def test_contact_search(board: Board) -> None:
    await _seed_contacts(board, 3)
    board.state.contact_search = "f1"

    assert [c.first_name for c in board.visible_contacts()] == ["F1"]


@pytest.mark.asyncio
async def test_bulk_delete_all_succeed(board: Board, notifier: RecordingNotifier) -> None:
    a, b, c = await _seed_contacts(board, 3)

    assert await board.delete_contacts([a.id, b.id]) is True

    assert board.state.contacts == [c]
    assert notifier.texts("success") == ["2 contacts deleted successfully"]


@pytest.mark.asyncio
async def test_bulk_delete_partial_reconciles_with_store(board: Board, notifier: RecordingNotifier) -> None:
    a, b, c = await _seed_contacts(board, 3)

    assert await board.delete_contacts([a.id, 404]) is False

    assert [x.id for x in board.state.contacts] == [b.id, c.id]
    assert notifier.texts("warning") == ["Deleted 1 of 2 contacts"]


@pytest.mark.asyncio
async def test_bulk_delete_error_leaves_list(board: Board, notifier: RecordingNotifier) -> None:
    contacts = await _seed_contacts(board, 2)
    board.state.contact_store = FailingStore(TransportError("down"))

    assert await board.delete_contacts([c.id for c in contacts]) is False

    assert board.state.contacts == contacts
    assert len(notifier.texts("error")) == 1


@pytest.mark.asyncio
async def test_set_view_changes_derived_tasks(board: Board) -> None:
    await board.create_task({"title": "open"})
    done = await board.create_task({"title": "closed"})
    await board.toggle_complete(done.id)

    board.set_view(filter_status="completed")
    view = board.task_view()

    assert [t.title for t in view.tasks] == ["closed"]
    assert view.stats.total_count == 2
    assert view.stats.completion_percentage == 50


@pytest.mark.asyncio
async def test_bulk_delete_with_repeated_id_is_full_success(board: Board, notifier: RecordingNotifier) -> None:
    a, b, c = await _seed_contacts(board, 3)

    assert await board.delete_contacts([a.id, a.id, b.id]) is True

    assert board.state.contacts == [c]
    assert notifier.texts("success") == ["2 contacts deleted successfully"]
    assert notifier.texts("warning") == []
