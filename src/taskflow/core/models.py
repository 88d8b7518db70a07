# src/taskflow/core/models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any

from .errors import ValidationError

ALL_CATEGORIES = "all"

DEFAULT_CATEGORY_COLOR = "#3B82F6"
DEFAULT_CATEGORY_ICON = "Circle"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority:
        """Lenient parse for stored/backend values; unknown -> medium."""
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


_PRIORITY_WEIGHTS = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class FilterStatus(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class SortBy(StrEnum):
    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    CREATED = "created"


class DueStatus(StrEnum):
    TODAY = "today"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"
    NONE = "none"


@dataclass(slots=True)
class Task:
    id: Any
    title: str
    created_at: datetime

    description: str = ""
    category: str | None = None
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None

    completed: bool = False
    completed_at: datetime | None = None

    assigned_contact: Any | None = None


@dataclass(slots=True)
class Category:
    id: Any
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    icon: str = DEFAULT_CATEGORY_ICON


@dataclass(slots=True)
class Contact:
    id: Any
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    address: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ---- datetime helpers ----


def utcnow() -> datetime:
    return datetime.now(UTC)


def parse_datetime(raw: Any) -> datetime | None:
    """
    Accept datetime / date / ISO-8601 string ("Z" suffix allowed) / empty.

    Naive values are read as UTC so every stored timestamp is aware.
    A bare date means midnight UTC of that day.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        dt = raw
    elif isinstance(raw, date):
        dt = datetime(raw.year, raw.month, raw.day)
    elif isinstance(raw, str):
        s = raw.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError as e:
            raise ValidationError(f"invalid date: {raw!r}") from e
    else:
        raise ValidationError(f"invalid date: {raw!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def format_datetime(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


# ---- field normalization / validation ----

TASK_FIELDS = frozenset(
    {
        "title",
        "description",
        "category",
        "priority",
        "due_date",
        "completed",
        "completed_at",
        "assigned_contact",
    }
)
CATEGORY_FIELDS = frozenset({"name", "color", "icon"})
CONTACT_FIELDS = frozenset({"first_name", "last_name", "email", "phone", "address"})


def _reject_unknown(fields: Mapping[str, Any], allowed: frozenset[str], entity: str) -> None:
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValidationError(
            f"unknown {entity} field(s): {', '.join(unknown)}", field=unknown[0]
        )


def _required_text(fields: Mapping[str, Any], name: str) -> str:
    value = str(fields.get(name) or "").strip()
    if not value:
        raise ValidationError(f"{name} is required", field=name)
    return value


def normalize_task_fields(fields: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """
    Validate and coerce task fields.

    partial=False: create payload, title required, defaults filled in.
    partial=True: update patch, only the given keys are returned.
    """
    _reject_unknown(fields, TASK_FIELDS, "task")
    out: dict[str, Any] = {}

    if not partial or "title" in fields:
        out["title"] = _required_text(fields, "title")
    if not partial or "description" in fields:
        out["description"] = str(fields.get("description") or "").strip()
    if not partial or "category" in fields:
        cat = str(fields.get("category") or "").strip()
        out["category"] = cat or None
    if not partial or "priority" in fields:
        raw = fields.get("priority") or Priority.MEDIUM.value
        try:
            out["priority"] = Priority(str(raw).strip().lower())
        except ValueError as e:
            raise ValidationError(f"invalid priority: {raw!r}", field="priority") from e
    if not partial or "due_date" in fields:
        out["due_date"] = parse_datetime(fields.get("due_date"))
    if not partial or "completed" in fields:
        out["completed"] = bool(fields.get("completed", False))
    if "completed_at" in fields:
        out["completed_at"] = parse_datetime(fields.get("completed_at"))
    if not partial or "assigned_contact" in fields:
        out["assigned_contact"] = fields.get("assigned_contact") or None

    return out


def enforce_completion(fields: dict[str, Any], *, now: datetime | None = None) -> dict[str, Any]:
    """
    Keep completed_at in step with completed.

    completed=True without a timestamp gets stamped with now;
    completed=False always clears completed_at.
    """
    if "completed" not in fields:
        return fields
    if fields["completed"]:
        if fields.get("completed_at") is None:
            fields["completed_at"] = now or utcnow()
    else:
        fields["completed_at"] = None
    return fields


def task_patch_fields(
    current: Task, patch: Mapping[str, Any], *, now: datetime | None = None
) -> dict[str, Any]:
    """Normalize an update patch against the stored task, keeping completion consistent."""
    fields = normalize_task_fields(patch, partial=True)
    if "completed" not in fields:
        if "completed_at" in fields:
            fields["completed"] = current.completed
        else:
            return fields
    if fields["completed"] and fields.get("completed_at") is None and current.completed:
        # Re-saving a completed task must not move its completion time.
        fields["completed_at"] = current.completed_at
    return enforce_completion(fields, now=now)


def completion_patch(task: Task, *, now: datetime | None = None) -> dict[str, Any]:
    """Two-field patch that flips a task's completion state."""
    if task.completed:
        return {"completed": False, "completed_at": None}
    return {"completed": True, "completed_at": now or utcnow()}


def normalize_category_fields(fields: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    _reject_unknown(fields, CATEGORY_FIELDS, "category")
    out: dict[str, Any] = {}
    if not partial or "name" in fields:
        out["name"] = _required_text(fields, "name")
    if not partial or "color" in fields:
        out["color"] = str(fields.get("color") or DEFAULT_CATEGORY_COLOR).strip()
    if not partial or "icon" in fields:
        out["icon"] = str(fields.get("icon") or DEFAULT_CATEGORY_ICON).strip()
    return out


def normalize_contact_fields(fields: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    _reject_unknown(fields, CONTACT_FIELDS, "contact")
    out: dict[str, Any] = {}
    for name in ("first_name", "last_name", "email"):
        if not partial or name in fields:
            out[name] = _required_text(fields, name)
    for name in ("phone", "address"):
        if not partial or name in fields:
            out[name] = str(fields.get(name) or "").strip()
    return out
