# tests/fakes.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from taskflow.core.models import Priority, Task


@dataclass(slots=True)
class Notice:
    level: str
    text: str


@dataclass(slots=True)
class RecordingNotifier:
    """
    Notifier that records everything for assertions.
    """

    notices: list[Notice] = field(default_factory=list)

    def success(self, text: str) -> None:
        self.notices.append(Notice("success", text))

    def info(self, text: str) -> None:
        self.notices.append(Notice("info", text))

    def warning(self, text: str) -> None:
        self.notices.append(Notice("warning", text))

    def error(self, text: str) -> None:
        self.notices.append(Notice("error", text))

    def texts(self, level: str | None = None) -> list[str]:
        return [n.text for n in self.notices if level is None or n.level == level]


class FailingStore:
    """
    Store whose every operation raises the given error.

    Records calls so tests can check the store was actually hit.
    """

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls: list[str] = []

    async def list(self) -> list[Any]:
        self.calls.append("list")
        raise self.error

    async def get(self, record_id: Any) -> Any:
        self.calls.append("get")
        raise self.error

    async def create(self, fields: Mapping[str, Any]) -> Any:
        self.calls.append("create")
        raise self.error

    async def update(self, record_id: Any, patch: Mapping[str, Any]) -> Any:
        self.calls.append("update")
        raise self.error

    async def delete(self, record_id: Any) -> bool:
        self.calls.append("delete")
        raise self.error

    async def close(self) -> None:
        return


BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def make_task(
    task_id: int,
    title: str = "task",
    *,
    description: str = "",
    category: str | None = None,
    priority: str = "medium",
    due_date: datetime | None = None,
    completed: bool = False,
    created_at: datetime | None = None,
) -> Task:
    return Task(
        id=task_id,
        title=title,
        description=description,
        category=category,
        priority=Priority(priority),
        due_date=due_date,
        completed=completed,
        created_at=created_at or BASE_TIME,
        completed_at=BASE_TIME if completed else None,
    )
