# src/taskflow/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from ..core.board import Board
from ..core.errors import ValidationError
from ..core.models import ALL_CATEGORIES, DueStatus, FilterStatus, SortBy, Task, parse_datetime
from ..core.view import due_date_status

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler = Callable[..., CommandResult]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        board: Board,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            # Unbalanced quotes: fall back to plain whitespace splitting.
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        result = handler(board, args, emit) if nparams >= 3 else handler(board, args)
        if inspect.isawaitable(result):
            result = await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----

_TASK_KEYS = {
    "title": "title",
    "description": "description",
    "desc": "description",
    "category": "category",
    "cat": "category",
    "priority": "priority",
    "prio": "priority",
    "due": "due_date",
    "due_date": "due_date",
    "contact": "assigned_contact",
    "assigned_contact": "assigned_contact",
}

_CONTACT_KEYS = {
    "first": "first_name",
    "first_name": "first_name",
    "last": "last_name",
    "last_name": "last_name",
    "email": "email",
    "phone": "phone",
    "address": "address",
}

_CATEGORY_KEYS = {"name": "name", "color": "color", "icon": "icon"}

_CLEAR = {"", "none", "null", "-"}


def _record_id(raw: str) -> Any:
    return int(raw) if raw.isdigit() else raw


def _key_values(args: list[str], keys: dict[str, str]) -> dict[str, Any]:
    """Parse field=value tokens; unknown keys raise ValidationError."""
    out: dict[str, Any] = {}
    for token in args:
        key, sep, value = token.partition("=")
        if not sep:
            raise ValidationError(f"expected field=value, got {token!r}")
        field = keys.get(key.strip().lower())
        if field is None:
            raise ValidationError(f"unknown field: {key}", field=key)
        out[field] = None if value.strip().lower() in _CLEAR else value
    if "assigned_contact" in out and out["assigned_contact"] is not None:
        out["assigned_contact"] = _record_id(str(out["assigned_contact"]))
    return out


def parse_task_args(args: list[str]) -> dict[str, Any]:
    """
    /add grammar:
      plain words  -> title
      #name        -> category
      !priority    -> priority
      @YYYY-MM-DD  -> due date
      key=value    -> any task field (description="...", contact=2, ...)
    """
    title: list[str] = []
    plain: list[str] = []
    fields: dict[str, Any] = {}
    for token in args:
        if "=" in token and token.split("=", 1)[0].lower() in _TASK_KEYS:
            plain.append(token)
        elif token.startswith("#") and len(token) > 1:
            fields["category"] = token[1:]
        elif token.startswith("!") and len(token) > 1:
            fields["priority"] = token[1:]
        elif token.startswith("@") and len(token) > 1:
            fields["due_date"] = token[1:]
        else:
            title.append(token)
    fields.update(_key_values(plain, _TASK_KEYS))
    if title:
        fields.setdefault("title", " ".join(title))
    return fields


# ---- rendering ----

_DUE_MARKS = {
    DueStatus.TODAY: " [today]",
    DueStatus.OVERDUE: " [overdue]",
    DueStatus.UPCOMING: "",
    DueStatus.NONE: "",
}


def render_task(task: Task, now: datetime | None = None) -> str:
    box = "[x]" if task.completed else "[ ]"
    meta = [task.priority.value]
    if task.category:
        meta.append(task.category)
    line = f"{box} #{task.id} {task.title} ({', '.join(meta)})"
    if task.due_date is not None:
        local_due = task.due_date.astimezone()
        line += f" due {local_due:%Y-%m-%d %H:%M}"
        if not task.completed:
            line += _DUE_MARKS[due_date_status(task.due_date, now)]
    if task.description:
        line += f"\n      {task.description}"
    return line


def _load_error_reply(board: Board) -> str | None:
    err = board.state.load_error
    if err is not None:
        return f"Failed to load data: {err}\nUse /reload to retry."
    return None


# ---- commands ----


def cmd_help(board: Board, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(board: Board, args: list[str]) -> str:
    st = board.state
    view = st.view
    backend = getattr(st.settings, "backend", "?")
    loaded = "failed" if st.load_error else ("yes" if st.loaded else "no")
    return (
        "Status:\n"
        f"  Backend: {backend}\n"
        f"  Loaded: {loaded}\n"
        f"  Tasks: {len(st.tasks)}  Categories: {len(st.categories)}  Contacts: {len(st.contacts)}\n"
        f"  View: category={view.selected_category} status={view.filter_status} "
        f"sort={view.sort_by} search={view.search_term!r}"
    )


async def cmd_reload(board: Board, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("Loading tasks, categories and contacts...")
    ok = await board.load_all()
    if not ok:
        return _load_error_reply(board) or "Failed to load data."
    return cmd_status(board, [])


def cmd_tasks(board: Board, args: list[str]) -> str:
    blocked = _load_error_reply(board)
    if blocked:
        return blocked

    derived = board.task_view()
    stats = derived.stats
    header = (
        f"Tasks {len(derived.tasks)}/{stats.total_count} shown, "
        f"{stats.completed_count} completed ({stats.completion_percentage}%)"
    )
    if not derived.tasks:
        return header + "\n  No tasks match the current filters."
    now = datetime.now().astimezone()
    return "\n".join([header, *(f"  {render_task(t, now)}" for t in derived.tasks)])


def cmd_stats(board: Board, args: list[str]) -> str:
    blocked = _load_error_reply(board)
    if blocked:
        return blocked

    stats = board.task_view().stats
    lines = [
        f"Progress: {stats.completed_count}/{stats.total_count} completed "
        f"({stats.completion_percentage}%)"
    ]
    for name, count in stats.category_counts.items():
        lines.append(f"  {name}: {count}")
    return "\n".join(lines)


async def cmd_add(board: Board, args: list[str]) -> str:
    if not args:
        return "Usage: /add <title> [#category] [!low|medium|high] [@YYYY-MM-DD] [description=...]"
    try:
        fields = parse_task_args(args)
    except ValidationError as e:
        return f"Invalid input: {e}"
    task = await board.create_task(fields)
    return render_task(task) if task else ""


async def cmd_edit(board: Board, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /edit <id> field=value ... (title, description, category, priority, due, contact)"
    try:
        patch = _key_values(args[1:], _TASK_KEYS)
        if patch.get("due_date") is not None:
            patch["due_date"] = parse_datetime(patch["due_date"])
    except ValidationError as e:
        return f"Invalid input: {e}"
    task = await board.update_task(_record_id(args[0]), patch)
    return render_task(task) if task else ""


async def cmd_done(board: Board, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = await board.toggle_complete(_record_id(args[0]))
    return render_task(task) if task else ""


async def cmd_rm(board: Board, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    await board.delete_task(_record_id(args[0]))
    return ""


def cmd_filter(board: Board, args: list[str]) -> str:
    allowed = [s.value for s in FilterStatus]
    if not args or args[0].lower() not in allowed:
        return f"Usage: /filter {'|'.join(allowed)}"
    board.set_view(filter_status=args[0].lower())
    return cmd_tasks(board, [])


def cmd_category(board: Board, args: list[str]) -> str:
    if not args:
        return f"Current category: {board.state.view.selected_category}. Usage: /category <name|all>"
    name = " ".join(args)
    board.set_view(selected_category=ALL_CATEGORIES if name.lower() == ALL_CATEGORIES else name)
    return cmd_tasks(board, [])


def cmd_search(board: Board, args: list[str]) -> str:
    board.set_view(search_term=" ".join(args))
    return cmd_tasks(board, [])


def cmd_sort(board: Board, args: list[str]) -> str:
    allowed = {s.value.lower(): s.value for s in SortBy}
    if not args or args[0].lower() not in allowed:
        return f"Usage: /sort {'|'.join(allowed.values())}"
    board.set_view(sort_by=allowed[args[0].lower()])
    return cmd_tasks(board, [])


def cmd_categories(board: Board, args: list[str]) -> str:
    blocked = _load_error_reply(board)
    if blocked:
        return blocked
    if not board.state.categories:
        return "No categories."
    counts = board.task_view().stats.category_counts
    lines = ["Categories:"]
    for c in board.state.categories:
        lines.append(f"  #{c.id} {c.name} ({counts.get(c.name, 0)} tasks) {c.color} {c.icon}")
    return "\n".join(lines)


async def cmd_category_add(board: Board, args: list[str]) -> str:
    if not args:
        return "Usage: /category-add <name> [color] [icon]"
    fields: dict[str, Any] = {"name": args[0]}
    if len(args) > 1:
        fields["color"] = args[1]
    if len(args) > 2:
        fields["icon"] = args[2]
    category = await board.create_category(fields)
    return f"#{category.id} {category.name}" if category else ""


async def cmd_category_edit(board: Board, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /category-edit <id> field=value ... (name, color, icon)"
    try:
        patch = _key_values(args[1:], _CATEGORY_KEYS)
    except ValidationError as e:
        return f"Invalid input: {e}"
    category = await board.update_category(_record_id(args[0]), patch)
    return f"#{category.id} {category.name}" if category else ""


async def cmd_category_rm(board: Board, args: list[str]) -> str:
    if not args:
        return "Usage: /category-rm <id>"
    await board.delete_category(_record_id(args[0]))
    return ""


def cmd_contacts(board: Board, args: list[str]) -> str:
    blocked = _load_error_reply(board)
    if blocked:
        return blocked
    board.state.contact_search = " ".join(args)
    contacts = board.visible_contacts()
    if not contacts:
        return "No contacts found."
    lines = [f"Contacts ({len(contacts)}/{len(board.state.contacts)}):"]
    for c in contacts:
        extra = f" {c.phone}" if c.phone else ""
        lines.append(f"  #{c.id} {c.full_name} <{c.email}>{extra}")
    return "\n".join(lines)


async def cmd_contact_add(board: Board, args: list[str]) -> str:
    positional = [a for a in args if "=" not in a]
    try:
        fields = _key_values([a for a in args if "=" in a], _CONTACT_KEYS)
    except ValidationError as e:
        return f"Invalid input: {e}"
    for key, value in zip(("first_name", "last_name", "email", "phone"), positional):
        fields.setdefault(key, value)
    contact = await board.create_contact(fields)
    return f"#{contact.id} {contact.full_name} <{contact.email}>" if contact else ""


async def cmd_contact_edit(board: Board, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /contact-edit <id> field=value ... (first, last, email, phone, address)"
    try:
        patch = _key_values(args[1:], _CONTACT_KEYS)
    except ValidationError as e:
        return f"Invalid input: {e}"
    contact = await board.update_contact(_record_id(args[0]), patch)
    return f"#{contact.id} {contact.full_name} <{contact.email}>" if contact else ""


async def cmd_contact_rm(board: Board, args: list[str]) -> str:
    if not args:
        return "Usage: /contact-rm <id> [id ...]"
    ids = [_record_id(a) for a in args]
    if len(ids) == 1:
        await board.delete_contact(ids[0])
    else:
        await board.delete_contacts(ids)
    return ""


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show backend, counts and current view settings.")
registry.register("reload", cmd_reload, help_text="Reload tasks, categories and contacts.")
registry.register("tasks", cmd_tasks, help_text="List tasks with the current filters.", aliases=["ls"])
registry.register("stats", cmd_stats, help_text="Completion progress and per-category counts.")
registry.register(
    "add", cmd_add, help_text="Add a task: /add <title> [#category] [!priority] [@YYYY-MM-DD]."
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> field=value ...")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.")
registry.register("filter", cmd_filter, help_text="Status filter: /filter all | active | completed.")
registry.register("category", cmd_category, help_text="Category filter: /category <name|all>.")
registry.register("search", cmd_search, help_text="Search title/description: /search [term].")
registry.register("sort", cmd_sort, help_text="Sort: /sort dueDate | priority | created.")
registry.register("categories", cmd_categories, help_text="List categories with task counts.")
registry.register("category-add", cmd_category_add, help_text="Add a category: /category-add <name> [color] [icon].")
registry.register("category-edit", cmd_category_edit, help_text="Edit a category: /category-edit <id> field=value ...")
registry.register("category-rm", cmd_category_rm, help_text="Delete a category: /category-rm <id>.")
registry.register("contacts", cmd_contacts, help_text="List/search contacts: /contacts [term].")
registry.register(
    "contact-add", cmd_contact_add, help_text="Add a contact: /contact-add <first> <last> <email> [phone]."
)
registry.register("contact-edit", cmd_contact_edit, help_text="Edit a contact: /contact-edit <id> field=value ...")
registry.register("contact-rm", cmd_contact_rm, help_text="Delete contacts: /contact-rm <id> [id ...].")
