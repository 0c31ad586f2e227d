"""Logging configuration for markdown_ld.

Modules log through ``logging.getLogger(__name__)``. The engine itself only
logs at DEBUG (degraded regions, unresolved targets); the CLI and API call
configure_logging() once at startup.

The level comes from, in order: the ``level`` argument, the MDLD_LOG_LEVEL
environment variable, then ``default`` (the CLI passes ``[log] level``).
"""

import logging
import os
import sys

PACKAGE_LOGGER = "markdown_ld"


def configure_logging(level: str | None = None, default: str = "WARNING") -> None:
    """Attach one stderr handler to the package logger.

    Subsequent calls only adjust the level.
    """
    root_logger = logging.getLogger(PACKAGE_LOGGER)

    level_name = (level or os.environ.get("MDLD_LOG_LEVEL", default)).upper()
    resolved = getattr(logging, level_name, logging.WARNING)

    if root_logger.handlers:
        root_logger.setLevel(resolved)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s")
    )

    root_logger.setLevel(resolved)
    root_logger.addHandler(handler)

    # Prevent propagation to root logger (avoids duplicate messages)
    root_logger.propagate = False
