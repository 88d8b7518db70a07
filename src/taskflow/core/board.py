# src/taskflow/core/board.py

"""
Board: CRUD orchestration over the stores.

Every action follows the same shape:
- call the store,
- on success splice the confirmed record into the local collection
  (append on create, replace-by-id on update, remove-by-id on delete),
- on StoreError leave local state untouched and notify the user.

Nothing is updated optimistically. Unexpected exceptions propagate to the
connector, which logs them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, TypeVar

from .errors import StoreError, ValidationError
from .models import (
    Category,
    Contact,
    Task,
    completion_patch,
    normalize_contact_fields,
    normalize_task_fields,
)
from .ports import Notifier
from .state import AppState
from .view import DerivedView, derive_view, filter_contacts

logger = logging.getLogger(__name__)

R = TypeVar("R", Task, Category, Contact)


def _same_id(a: Any, b: Any) -> bool:
    return a == b or str(a) == str(b)


def _replace_by_id(items: list[R], record: R) -> list[R]:
    return [record if _same_id(r.id, record.id) else r for r in items]


def _remove_ids(items: list[R], ids: Iterable[Any]) -> list[R]:
    drop = {str(i) for i in ids}
    return [r for r in items if str(r.id) not in drop]


class Board:
    def __init__(self, state: AppState, notifier: Notifier) -> None:
        self.state = state
        self.notifier = notifier

    # ---- loading ----

    async def load_all(self) -> bool:
        """
        Fetch tasks, categories and contacts concurrently.

        All three must succeed; otherwise nothing is replaced and
        state.load_error is set so views can offer a retry.
        """
        st = self.state
        results = await asyncio.gather(
            st.task_store.list(),
            st.category_store.list(),
            st.contact_store.list(),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        for err in errors:
            if not isinstance(err, StoreError):
                raise err
        if errors:
            st.load_error = str(errors[0]) or "Failed to load data"
            logger.warning("Initial load failed: %s", st.load_error)
            self.notifier.error("Failed to load data")
            return False

        tasks, categories, contacts = results
        st.tasks = list(tasks)
        st.categories = list(categories)
        st.contacts = list(contacts)
        st.loaded = True
        st.load_error = None
        logger.info(
            "Loaded tasks=%d categories=%d contacts=%d",
            len(st.tasks),
            len(st.categories),
            len(st.contacts),
        )
        return True

    # ---- views ----

    def task_view(self) -> DerivedView:
        return derive_view(self.state.tasks, self.state.view, self.state.categories)

    def set_view(self, **changes: Any) -> None:
        self.state.view = self.state.view.with_changes(**changes)
        logger.debug("View state -> %s", self.state.view.to_dict())

    def visible_contacts(self) -> list[Contact]:
        return filter_contacts(self.state.contacts, self.state.contact_search)

    def find_task(self, task_id: Any) -> Task | None:
        for t in self.state.tasks:
            if _same_id(t.id, task_id):
                return t
        return None

    # ---- tasks ----

    async def create_task(self, fields: Mapping[str, Any]) -> Task | None:
        try:
            normalize_task_fields(fields)
        except ValidationError as e:
            self.notifier.error(f"Invalid task: {e}")
            return None

        try:
            task = await self.state.task_store.create(fields)
        except StoreError as e:
            logger.warning("create_task failed: %s", e)
            self.notifier.error("Failed to create task")
            return None

        self.state.tasks = [*self.state.tasks, task]
        self.notifier.success("Task created successfully!")
        return task

    async def update_task(self, task_id: Any, patch: Mapping[str, Any]) -> Task | None:
        try:
            task = await self.state.task_store.update(task_id, patch)
        except StoreError as e:
            logger.warning("update_task failed id=%s: %s", task_id, e)
            self.notifier.error("Failed to update task")
            return None

        self.state.tasks = _replace_by_id(self.state.tasks, task)
        self.notifier.success("Task updated successfully!")
        return task

    async def toggle_complete(self, task_id: Any, *, now: datetime | None = None) -> Task | None:
        current = self.find_task(task_id)
        if current is None:
            self.notifier.error(f"No such task: {task_id}")
            return None

        try:
            task = await self.state.task_store.update(current.id, completion_patch(current, now=now))
        except StoreError as e:
            logger.warning("toggle_complete failed id=%s: %s", task_id, e)
            self.notifier.error("Failed to update task")
            return None

        self.state.tasks = _replace_by_id(self.state.tasks, task)
        if task.completed:
            self.notifier.success("Task completed!")
        else:
            self.notifier.info("Task marked as incomplete")
        return task

    async def delete_task(self, task_id: Any) -> bool:
        try:
            removed = await self.state.task_store.delete(task_id)
        except StoreError as e:
            logger.warning("delete_task failed id=%s: %s", task_id, e)
            self.notifier.error("Failed to delete task")
            return False

        if not removed:
            self.notifier.error("Failed to delete task")
            return False

        self.state.tasks = _remove_ids(self.state.tasks, [task_id])
        self.notifier.success("Task deleted successfully!")
        return True

    # ---- categories ----

    async def create_category(self, fields: Mapping[str, Any]) -> Category | None:
        try:
            category = await self.state.category_store.create(fields)
        except StoreError as e:
            logger.warning("create_category failed: %s", e)
            self.notifier.error(f"Failed to create category: {e}")
            return None

        self.state.categories = [*self.state.categories, category]
        self.notifier.success("Category created successfully")
        return category

    async def update_category(self, category_id: Any, patch: Mapping[str, Any]) -> Category | None:
        try:
            category = await self.state.category_store.update(category_id, patch)
        except StoreError as e:
            logger.warning("update_category failed id=%s: %s", category_id, e)
            self.notifier.error(f"Failed to update category: {e}")
            return None

        self.state.categories = _replace_by_id(self.state.categories, category)
        self.notifier.success("Category updated successfully")
        return category

    async def delete_category(self, category_id: Any) -> bool:
        # Tasks keep their category name; nothing cascades.
        try:
            removed = await self.state.category_store.delete(category_id)
        except StoreError as e:
            logger.warning("delete_category failed id=%s: %s", category_id, e)
            self.notifier.error(f"Failed to delete category: {e}")
            return False

        if not removed:
            self.notifier.error("Failed to delete category")
            return False

        self.state.categories = _remove_ids(self.state.categories, [category_id])
        self.notifier.success("Category deleted successfully")
        return True

    # ---- contacts ----

    async def create_contact(self, fields: Mapping[str, Any]) -> Contact | None:
        try:
            normalize_contact_fields(fields)
        except ValidationError:
            self.notifier.error("Please fill in all required fields")
            return None

        try:
            contact = await self.state.contact_store.create(fields)
        except StoreError as e:
            logger.warning("create_contact failed: %s", e)
            self.notifier.error(f"Failed to create contact: {e}")
            return None

        self.state.contacts = [*self.state.contacts, contact]
        self.notifier.success("Contact created successfully")
        return contact

    async def update_contact(self, contact_id: Any, patch: Mapping[str, Any]) -> Contact | None:
        try:
            normalize_contact_fields(patch, partial=True)
        except ValidationError:
            self.notifier.error("Please fill in all required fields")
            return None

        try:
            contact = await self.state.contact_store.update(contact_id, patch)
        except StoreError as e:
            logger.warning("update_contact failed id=%s: %s", contact_id, e)
            self.notifier.error(f"Failed to update contact: {e}")
            return None

        self.state.contacts = _replace_by_id(self.state.contacts, contact)
        self.notifier.success("Contact updated successfully")
        return contact

    async def delete_contact(self, contact_id: Any) -> bool:
        try:
            removed = await self.state.contact_store.delete(contact_id)
        except StoreError as e:
            logger.warning("delete_contact failed id=%s: %s", contact_id, e)
            self.notifier.error(f"Failed to delete contact: {e}")
            return False

        if not removed:
            self.notifier.error("Failed to delete contact")
            return False

        self.state.contacts = _remove_ids(self.state.contacts, [contact_id])
        self.notifier.success("Contact deleted successfully")
        return True

    async def delete_contacts(self, contact_ids: Iterable[Any]) -> bool:
        """
        Bulk delete.

        True from the store -> drop every id locally.
        False (partial) -> re-read contacts from the store so the local list
        matches what was actually removed.
        Exception -> local list untouched.
        """
        ids = list({str(i): i for i in contact_ids}.values())
        if not ids:
            return False

        try:
            all_removed = await self.state.contact_store.delete(ids)
        except StoreError as e:
            logger.warning("delete_contacts failed ids=%s: %s", ids, e)
            self.notifier.error(f"Failed to delete contacts: {e}")
            return False

        if all_removed:
            self.state.contacts = _remove_ids(self.state.contacts, ids)
            self.notifier.success(f"{len(ids)} contacts deleted successfully")
            return True

        before = len(self.state.contacts)
        try:
            self.state.contacts = await self.state.contact_store.list()
        except StoreError as e:
            logger.warning("Contact reload after partial delete failed: %s", e)
            self.notifier.error(f"Some contacts could not be deleted; reload failed: {e}")
            return False

        gone = max(0, before - len(self.state.contacts))
        self.notifier.warning(f"Deleted {gone} of {len(ids)} contacts")
        return False
