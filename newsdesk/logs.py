"""Logging configuration for the command line."""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: Union[str, int] = "INFO", console: Optional[Console] = None) -> None:
    """Route the root logger through rich at the given level."""
    if isinstance(level, str):
        level = level.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(handler)

    # Request lines from httpx are noise at INFO
    logging.getLogger("httpx").setLevel(max(logging.WARNING, root_logger.level))
