# src/taskflow/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (store backend chosen from settings),
then runs the console REPL on an asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import close_stores, create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..core.board import Board
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(state: AppState) -> None:
    board = Board(state, ConsoleNotifier())
    try:
        await run_console_loop(board)
    finally:
        await close_stores(state)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (backend=%s)...", settings.app_name, settings.backend)

    try:
        state = create_initial_state(settings=settings)
    except RuntimeError as e:
        logger.error("%s", e)
        raise SystemExit(2) from e

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")

    logger.info("Bye.")


if __name__ == "__main__":
    main()
