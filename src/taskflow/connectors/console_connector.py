# src/taskflow/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.board import Board

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """Notifier port for the console: one timestamped line per notification."""

    def success(self, text: str) -> None:
        _print_ts(f"[OK] {text}")

    def info(self, text: str) -> None:
        _print_ts(f"[INFO] {text}")

    def warning(self, text: str) -> None:
        _print_ts(f"[WARN] {text}")

    def error(self, text: str) -> None:
        _print_ts(f"[ERROR] {text}")


async def run_console_loop(board: Board) -> None:
    app_name = str(getattr(board.state.settings, "app_name", "taskflow"))
    logger.info("Console connector started.")
    _print_ts(f"[{app_name}] Use /help for commands. Use /exit to quit.\n")

    if not board.state.loaded:
        if await board.load_all():
            _print_ts(
                f"Loaded {len(board.state.tasks)} tasks, {len(board.state.categories)} categories, "
                f"{len(board.state.contacts)} contacts."
            )
        else:
            _print_ts(f"Failed to load data: {board.state.load_error}. Use /reload to retry.")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            _print_ts("Not a command. Use /add <title> to add a task or /help for commands.")
            continue

        try:
            reply = await command_registry.handle(board, user_input, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply:
            print(reply, flush=True)

    logger.info("Console connector finished.")
