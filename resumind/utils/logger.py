# resumind/utils/logger.py
# ============================================================
# Console Logging Setup
# ============================================================
# Every module gets its logger from here. Output goes through
# Rich so stage transitions, timings and failures are readable
# while a pipeline runs in the terminal.
#
# Usage:
#   from resumind.utils.logger import get_logger
#   logger = get_logger(__name__)
#   logger.info("Rendering page 1 at 4.0x")
# ============================================================

import logging
from typing import Optional

from rich.logging import RichHandler

from config.settings import settings


def _resolve_level(level: Optional[str]) -> int:
    """Map a level name ("debug", "INFO", ...) to a logging constant."""
    name = (level or settings.log_level).upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Create and return a pre-configured logger with Rich formatting.

    Args:
        name: Logger name, typically __name__ from the calling module.
        level: Optional level override. Defaults to settings.log_level.

    Returns:
        A logging.Logger with a single Rich console handler attached.

    Example:
        >>> logger = get_logger("resumind.render.loader")
        >>> logger.info("Engine loaded in 0.4s")
        [10:30:45] INFO     resumind.render.loader — Engine loaded in 0.4s
    """
    logger = logging.getLogger(name)

    # get_logger may run many times per module name; attach the handler once
    if not logger.handlers:
        resolved = _resolve_level(level)
        logger.setLevel(resolved)

        handler = RichHandler(
            level=resolved,
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
            markup=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s — %(message)s"))
        logger.addHandler(handler)

        # Rich already prints it; the root logger would print it twice
        logger.propagate = False

    return logger
