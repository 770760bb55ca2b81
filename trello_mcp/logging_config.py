"""Logging configuration for the MCP server.

stdout carries the MCP JSON-RPC stream, so logs go to stderr (and optionally
a file) only.
"""

import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_log_level() -> int:
    """Get log level from LOG_LEVEL environment variable.

    Defaults to WARNING if not set.
    """
    level_name = os.getenv("LOG_LEVEL", "WARNING").upper()
    return getattr(logging, level_name, logging.WARNING)


def configure_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """
    Configure logging for the server.

    Args:
        verbose: If True, override LOG_LEVEL to DEBUG
        log_file: Optional path of a file that receives the same records
    """
    level = logging.DEBUG if verbose else get_log_level()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=DEFAULT_FORMAT,
        handlers=handlers,
        force=True,  # Allow reconfiguration
    )

    # Suppress noisy third-party loggers (httpx logs request URLs, which carry credentials)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
