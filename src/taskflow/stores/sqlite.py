# src/taskflow/stores/sqlite.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar

from ..core.errors import FetchError, NotFoundError, TransportError
from ..core.models import (
    Category,
    Contact,
    Priority,
    Task,
    enforce_completion,
    format_datetime,
    normalize_category_fields,
    normalize_contact_fields,
    normalize_task_fields,
    parse_datetime,
    task_patch_fields,
    utcnow,
)
from .common import as_id_list, ensure_unique_category_name

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TABLE_COLUMNS: dict[str, dict[str, str]] = {
    "tasks": {
        "title": "TEXT NOT NULL DEFAULT ''",
        "description": "TEXT NOT NULL DEFAULT ''",
        "category": "TEXT",
        "priority": "TEXT NOT NULL DEFAULT 'medium'",
        "due_date": "TEXT",
        "completed": "INTEGER NOT NULL DEFAULT 0",
        "created_at": "TEXT NOT NULL DEFAULT ''",
        "completed_at": "TEXT",
        "assigned_contact": "INTEGER",
    },
    "categories": {
        "name": "TEXT NOT NULL DEFAULT ''",
        "color": "TEXT NOT NULL DEFAULT '#3B82F6'",
        "icon": "TEXT NOT NULL DEFAULT 'Circle'",
    },
    "contacts": {
        "first_name": "TEXT NOT NULL DEFAULT ''",
        "last_name": "TEXT NOT NULL DEFAULT ''",
        "email": "TEXT NOT NULL DEFAULT ''",
        "phone": "TEXT NOT NULL DEFAULT ''",
        "address": "TEXT NOT NULL DEFAULT ''",
    },
}


class SqliteDatabase:
    """
    One SQLite file holding tasks, categories and contacts.

    The schema is migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each call opens its own SQLite connection, so the stores can push
      blocking work to worker threads with asyncio.to_thread
    """

    def __init__(self, db_path: str | Path = "taskflow.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info(
            "SqliteDatabase ready db=%s tasks=%s categories=%s contacts=%s",
            self._db_path,
            self.count("tasks"),
            self.count("categories"),
            self.count("contacts"),
        )

    @property
    def path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self.connect()
        try:
            cur = conn.cursor()
            for table, columns in _TABLE_COLUMNS.items():
                decls = ",\n".join(f"{name} {decl}" for name, decl in columns.items())
                cur.execute(
                    f"CREATE TABLE IF NOT EXISTS {table} (\n"
                    f"id INTEGER PRIMARY KEY AUTOINCREMENT,\n{decls}\n)"
                )

                cur.execute(f"PRAGMA table_info({table})")
                existing = {row["name"] for row in cur.fetchall()}
                for name, decl in columns.items():
                    if name in existing:
                        continue
                    cur.execute(f"ALTER TABLE {table} ADD COLUMN {name} {decl}")
                    logger.info("SqliteDatabase migration: added column %s.%s", table, name)

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_category ON tasks(category)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_contacts_name ON contacts(last_name, first_name)"
            )
            conn.commit()
        finally:
            conn.close()

    def count(self, table: str) -> int:
        conn = self.connect()
        try:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            return int(n)
        finally:
            conn.close()


class _SqliteTable:
    """Shared plumbing: async wrappers and generic row operations for one table."""

    table: str = ""
    entity: str = ""

    def __init__(self, db: SqliteDatabase) -> None:
        self._db = db

    async def _run(self, fn: Callable[..., T], *args: Any, fetch: bool = False) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            logger.exception("SQLite %s operation failed table=%s", fn.__name__, self.table)
            if fetch:
                raise FetchError(f"Failed to fetch {self.entity} records") from e
            raise TransportError(f"Storage error on {self.entity}: {e}") from e

    def _select_all(self, order_by: str = "id") -> list[sqlite3.Row]:
        conn = self._db.connect()
        try:
            return conn.execute(f"SELECT * FROM {self.table} ORDER BY {order_by}").fetchall()
        finally:
            conn.close()

    def _select_one(self, record_id: Any) -> sqlite3.Row:
        try:
            rid = int(record_id)
        except (TypeError, ValueError):
            raise NotFoundError(self.entity, record_id) from None
        conn = self._db.connect()
        try:
            row = conn.execute(f"SELECT * FROM {self.table} WHERE id = ?", (rid,)).fetchone()
        finally:
            conn.close()
        if row is None:
            raise NotFoundError(self.entity, record_id)
        return row

    def _insert(self, values: Mapping[str, Any]) -> int:
        cols = list(values)
        placeholders = ", ".join("?" for _ in cols)
        conn = self._db.connect()
        try:
            cur = conn.execute(
                f"INSERT INTO {self.table} ({', '.join(cols)}) VALUES ({placeholders})",
                [values[c] for c in cols],
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise sqlite3.DatabaseError(f"SQLite did not return lastrowid for {self.table} insert")
            return int(rowid)
        finally:
            conn.close()

    def _update_row(self, record_id: int, values: Mapping[str, Any]) -> None:
        if not values:
            return
        assignments = ", ".join(f"{c} = ?" for c in values)
        conn = self._db.connect()
        try:
            conn.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = ?",
                [*values.values(), int(record_id)],
            )
            conn.commit()
        finally:
            conn.close()

    def _delete_rows(self, ids: list[Any]) -> bool:
        clean: list[int] = []
        for raw in ids:
            with contextlib.suppress(TypeError, ValueError):
                clean.append(int(raw))
        if not clean:
            return False
        placeholders = ",".join("?" for _ in clean)
        conn = self._db.connect()
        try:
            cur = conn.execute(f"DELETE FROM {self.table} WHERE id IN ({placeholders})", clean)
            conn.commit()
            removed = cur.rowcount
        finally:
            conn.close()
        logger.debug("Deleted %s/%s rows from %s", removed, len(ids), self.table)
        return removed == len(ids)

    async def delete(self, ids: Any | Iterable[Any]) -> bool:
        return await self._run(self._delete_rows, as_id_list(ids))

    async def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return


class SqliteTaskStore(_SqliteTable):
    table = "tasks"
    entity = "task"

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            category=row["category"] or None,
            priority=Priority.from_raw(row["priority"]),
            due_date=parse_datetime(row["due_date"]),
            completed=bool(row["completed"]),
            created_at=parse_datetime(row["created_at"]) or utcnow(),
            completed_at=parse_datetime(row["completed_at"]),
            assigned_contact=row["assigned_contact"],
        )

    @staticmethod
    def _to_columns(fields: Mapping[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in fields.items():
            if key == "priority":
                out[key] = Priority(value).value
            elif key in ("due_date", "completed_at", "created_at"):
                out[key] = format_datetime(value)
            elif key == "completed":
                out[key] = 1 if value else 0
            else:
                out[key] = value
        return out

    def _list_sync(self) -> list[Task]:
        return [self._row_to_task(r) for r in self._select_all()]

    def _get_sync(self, task_id: Any) -> Task:
        return self._row_to_task(self._select_one(task_id))

    def _create_sync(self, fields: Mapping[str, Any]) -> Task:
        clean = enforce_completion(normalize_task_fields(fields))
        clean["created_at"] = utcnow()
        task_id = self._insert(self._to_columns(clean))
        logger.debug("Task added id=%s priority=%s", task_id, clean["priority"].value)
        return self._get_sync(task_id)

    def _update_sync(self, task_id: Any, patch: Mapping[str, Any]) -> Task:
        current = self._get_sync(task_id)
        changes = task_patch_fields(current, patch)
        self._update_row(current.id, self._to_columns(changes))
        return replace(current, **changes)

    async def list(self) -> list[Task]:
        return await self._run(self._list_sync, fetch=True)

    async def get(self, task_id: Any) -> Task:
        return await self._run(self._get_sync, task_id)

    async def create(self, fields: Mapping[str, Any]) -> Task:
        return await self._run(self._create_sync, fields)

    async def update(self, task_id: Any, patch: Mapping[str, Any]) -> Task:
        return await self._run(self._update_sync, task_id, patch)


class SqliteCategoryStore(_SqliteTable):
    table = "categories"
    entity = "category"

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            color=str(row["color"]),
            icon=str(row["icon"]),
        )

    def _list_sync(self) -> list[Category]:
        return [self._row_to_category(r) for r in self._select_all()]

    def _get_sync(self, category_id: Any) -> Category:
        return self._row_to_category(self._select_one(category_id))

    def _create_sync(self, fields: Mapping[str, Any]) -> Category:
        clean = normalize_category_fields(fields)
        ensure_unique_category_name(self._list_sync(), clean["name"])
        return self._get_sync(self._insert(clean))

    def _update_sync(self, category_id: Any, patch: Mapping[str, Any]) -> Category:
        current = self._get_sync(category_id)
        changes = normalize_category_fields(patch, partial=True)
        if "name" in changes:
            ensure_unique_category_name(self._list_sync(), changes["name"], exclude_id=current.id)
        self._update_row(current.id, changes)
        return replace(current, **changes)

    async def list(self) -> list[Category]:
        return await self._run(self._list_sync, fetch=True)

    async def get(self, category_id: Any) -> Category:
        return await self._run(self._get_sync, category_id)

    async def create(self, fields: Mapping[str, Any]) -> Category:
        return await self._run(self._create_sync, fields)

    async def update(self, category_id: Any, patch: Mapping[str, Any]) -> Category:
        return await self._run(self._update_sync, category_id, patch)


class SqliteContactStore(_SqliteTable):
    table = "contacts"
    entity = "contact"

    @staticmethod
    def _row_to_contact(row: sqlite3.Row) -> Contact:
        return Contact(
            id=int(row["id"]),
            first_name=str(row["first_name"] or ""),
            last_name=str(row["last_name"] or ""),
            email=str(row["email"] or ""),
            phone=str(row["phone"] or ""),
            address=str(row["address"] or ""),
        )

    def _list_sync(self) -> list[Contact]:
        rows = self._select_all(order_by="last_name COLLATE NOCASE, first_name COLLATE NOCASE")
        return [self._row_to_contact(r) for r in rows]

    def _get_sync(self, contact_id: Any) -> Contact:
        return self._row_to_contact(self._select_one(contact_id))

    def _create_sync(self, fields: Mapping[str, Any]) -> Contact:
        return self._get_sync(self._insert(normalize_contact_fields(fields)))

    def _update_sync(self, contact_id: Any, patch: Mapping[str, Any]) -> Contact:
        current = self._get_sync(contact_id)
        changes = normalize_contact_fields(patch, partial=True)
        self._update_row(current.id, changes)
        return replace(current, **changes)

    async def list(self) -> list[Contact]:
        return await self._run(self._list_sync, fetch=True)

    async def get(self, contact_id: Any) -> Contact:
        return await self._run(self._get_sync, contact_id)

    async def create(self, fields: Mapping[str, Any]) -> Contact:
        return await self._run(self._create_sync, fields)

    async def update(self, contact_id: Any, patch: Mapping[str, Any]) -> Contact:
        return await self._run(self._update_sync, contact_id, patch)


def create_sqlite_stores(
    db_path: str | Path,
) -> tuple[SqliteTaskStore, SqliteCategoryStore, SqliteContactStore]:
    db = SqliteDatabase(db_path)
    return SqliteTaskStore(db), SqliteCategoryStore(db), SqliteContactStore(db)
