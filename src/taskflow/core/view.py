# src/taskflow/core/view.py

"""
Derived task view.

Pure functions that turn the full task collection plus the current ViewState
into what the user sees:

    filter (category AND search AND status) -> stable sort -> aggregates

Aggregates are computed over the full collection, never the filtered subset.
Nothing here raises: every input combination produces a result.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from .models import (
    ALL_CATEGORIES,
    Category,
    Contact,
    DueStatus,
    FilterStatus,
    SortBy,
    Task,
)

_NO_DUE = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class ViewState:
    """
    UI filter/sort/search state.

    Plain strings on purpose: values come from user input and an unknown
    sort_by must pass through unsorted rather than fail.
    """

    selected_category: str = ALL_CATEGORIES
    search_term: str = ""
    filter_status: str = FilterStatus.ALL.value
    sort_by: str = SortBy.DUE_DATE.value

    def with_changes(self, **changes: Any) -> ViewState:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViewState:
        default = cls()
        return cls(
            selected_category=str(data.get("selected_category") or default.selected_category),
            search_term=str(data.get("search_term") or ""),
            filter_status=str(data.get("filter_status") or default.filter_status),
            sort_by=str(data.get("sort_by") or default.sort_by),
        )


@dataclass(frozen=True, slots=True)
class TaskStats:
    completed_count: int
    total_count: int
    completion_percentage: int
    category_counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DerivedView:
    tasks: list[Task]
    stats: TaskStats


# ---- filtering ----


def matches_category(task: Task, selected_category: str) -> bool:
    return selected_category == ALL_CATEGORIES or task.category == selected_category


def matches_search(task: Task, search_term: str) -> bool:
    if not search_term:
        return True
    needle = search_term.lower()
    return needle in task.title.lower() or needle in (task.description or "").lower()


def matches_status(task: Task, filter_status: str) -> bool:
    if filter_status == FilterStatus.ACTIVE:
        return not task.completed
    if filter_status == FilterStatus.COMPLETED:
        return task.completed
    return True


def filter_tasks(tasks: Iterable[Task], state: ViewState) -> list[Task]:
    return [
        t
        for t in tasks
        if matches_category(t, state.selected_category)
        and matches_search(t, state.search_term)
        and matches_status(t, state.filter_status)
    ]


# ---- sorting ----


def sort_tasks(tasks: Iterable[Task], sort_by: str) -> list[Task]:
    """Stable sort; unknown sort_by keeps the input order."""
    items = list(tasks)
    if sort_by == SortBy.DUE_DATE:
        items.sort(key=lambda t: (t.due_date is None, t.due_date or _NO_DUE))
    elif sort_by == SortBy.PRIORITY:
        items.sort(key=lambda t: t.priority.weight, reverse=True)
    elif sort_by == SortBy.CREATED:
        items.sort(key=lambda t: t.created_at, reverse=True)
    return items


# ---- aggregates ----


def completion_percentage(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half-up, not banker's rounding: 12.5 -> 13.
    return int(math.floor(completed / total * 100 + 0.5))


def category_counts(tasks: Sequence[Task], categories: Iterable[Category]) -> dict[str, int]:
    return {c.name: sum(1 for t in tasks if t.category == c.name) for c in categories}


def compute_stats(tasks: Sequence[Task], categories: Iterable[Category] = ()) -> TaskStats:
    done = sum(1 for t in tasks if t.completed)
    total = len(tasks)
    return TaskStats(
        completed_count=done,
        total_count=total,
        completion_percentage=completion_percentage(done, total),
        category_counts=category_counts(tasks, categories),
    )


def derive_view(
    tasks: Sequence[Task],
    state: ViewState,
    categories: Iterable[Category] = (),
) -> DerivedView:
    visible = sort_tasks(filter_tasks(tasks, state), state.sort_by)
    return DerivedView(tasks=visible, stats=compute_stats(tasks, categories))


# ---- display helpers ----


def due_date_status(due_date: datetime | None, now: datetime | None = None) -> DueStatus:
    """
    Classify a due date relative to now.

    "today" is decided on the calendar day in now's timezone
    (the local timezone when now is omitted).
    """
    if due_date is None:
        return DueStatus.NONE
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    if due_date.tzinfo is None:
        due_date = due_date.replace(tzinfo=UTC)

    if due_date.astimezone(now.tzinfo).date() == now.date():
        return DueStatus.TODAY
    if due_date < now:
        return DueStatus.OVERDUE
    return DueStatus.UPCOMING


def filter_contacts(contacts: Iterable[Contact], search_term: str) -> list[Contact]:
    """Case-insensitive match on full name, email or phone."""
    needle = (search_term or "").lower()
    return [
        c
        for c in contacts
        if needle in c.full_name.lower()
        or needle in c.email.lower()
        or (bool(c.phone) and needle in c.phone.lower())
    ]
