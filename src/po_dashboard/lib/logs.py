"""
Logging for the PO Dashboard client.

Every module logs through a child of the "po_dashboard" logger:

    LOG = logs.logger(__file__)   # -> "po_dashboard.api_client"

Only the package logger gets a handler, so the CLI's --verbose flag (and
the LOG_LEVEL environment variable) changes every module's output at once
and nothing leaks into the host application's root logger configuration.
"""

import logging
import os
from pathlib import Path

PACKAGE_LOGGER = "po_dashboard"

# Default log level from environment or INFO
_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _package_logger() -> logging.Logger:
    log = logging.getLogger(PACKAGE_LOGGER)
    if not log.handlers:
        log.setLevel(getattr(logging, _LOG_LEVEL, logging.INFO))
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        log.addHandler(handler)
    return log


def logger(name: str) -> logging.Logger:
    """
    Return the client logger for a module.

    Args:
        name: A module's __file__, or a bare name such as "cli".

    Returns:
        A logger under the "po_dashboard" namespace.
    """
    if "/" in name or "\\" in name:
        name = Path(name).stem
    _package_logger()
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def set_level(level: str | int) -> None:
    """Change the level of every client logger, e.g. set_level("DEBUG")."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _package_logger().setLevel(level)
