"""Logging setup shared by the CLI and the HTTP server."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False) -> None:
    """Route the package's log records through a Rich handler on stderr.

    Args:
        verbose: Log at DEBUG instead of INFO.
    """
    handler = RichHandler(
        # ASCII-safe output on Windows consoles
        console=Console(stderr=True, legacy_windows=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
