# src/taskflow/stores/common.py

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..core.errors import ValidationError
from ..core.models import Category, Contact


def as_id_list(ids: Any | Iterable[Any]) -> list[Any]:
    """delete() accepts one id or a collection of ids; repeats are dropped, order kept."""
    if not isinstance(ids, (list, tuple, set, frozenset)):
        return [ids]
    seen: set[str] = set()
    out: list[Any] = []
    for i in ids:
        if str(i) not in seen:
            seen.add(str(i))
            out.append(i)
    return out


def contact_sort_key(contact: Contact) -> tuple[str, str]:
    return (contact.last_name.lower(), contact.first_name.lower())


def ensure_unique_category_name(
    existing: Iterable[Category], name: str, *, exclude_id: Any = None
) -> None:
    for cat in existing:
        if cat.id != exclude_id and cat.name == name:
            raise ValidationError(f"category already exists: {name}", field="name")
