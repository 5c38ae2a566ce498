"""
log_setup.py - Console logging for Timekeeper

Storage and settings problems are logged, not shown in dialogs, so the
console is where they end up. Rich renders them readably.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: int = logging.INFO) -> None:
    """Route all loggers through a single Rich handler on stderr."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
