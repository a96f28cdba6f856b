"""
Logging sink for the ``hostfacts`` logger hierarchy.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, by the application, never on import.
"""

from __future__ import annotations

import logging
from typing import Union

from rich.logging import RichHandler

from hostfacts.core.utils import err_console

LOGGER_NAME = "hostfacts"


def setup_logging(level: Union[int, str] = logging.WARNING) -> logging.Logger:
    """Route ``hostfacts.*`` records to stderr through Rich; idempotent."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
