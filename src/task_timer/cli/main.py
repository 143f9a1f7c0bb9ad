# src/task_timer/cli/main.py

"""
CLI entrypoint.

Initializes logging, opens the task database, then runs the console REPL.
"""

from __future__ import annotations

import logging
import sys

from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.task_store import StorageError
from .bootstrap import create_initial_state

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    console_level = getattr(logging, settings.log_level, logging.INFO)
    setup_logging(
        log_dir=settings.log_dir,
        console_level=console_level,
        console=settings.console_log,
    )

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except StorageError as e:
        logger.error("Cannot open task database: %s", e)
        print(f"Cannot open task database: {e}", file=sys.stderr)
        return 1

    try:
        run_console_loop(state)
    finally:
        state.task_store.close()
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
