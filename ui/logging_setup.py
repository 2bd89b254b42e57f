"""Centralized logging configuration for the command-line tool."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from .dashboard import console


def configure_logging(verbose: bool = False) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    handler = RichHandler(console=console, show_path=verbose, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter(fmt="%(name)s - %(message)s", datefmt="[%X]"))

    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)

    root_logger.addHandler(handler)
    # aiohttp is chatty at debug level.
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
