"""Logging setup utilities for termcam.

Configures logging for the entire application based on the logging
configuration settings. While the live renderer owns the terminal, the
console handler is left out so log lines do not tear the picture.
"""

from __future__ import annotations

import logging
import sys

from termcam.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None, console: bool = True) -> None:
    """Configure logging for the termcam application.

    Sets up the 'termcam' logger with the specified level, format, and
    optional file handler.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
        console: Whether to attach a stderr handler.
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger("termcam")
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    root_logger.info("Logging initialized at %s level", config.level)
