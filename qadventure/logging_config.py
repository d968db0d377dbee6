"""Logging configuration for Quantum Adventure."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Optional[str] = None,
    name: str = "qadventure",
) -> logging.Logger:
    """
    Set up console logging for the engine.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        name: Logger name, the package logger by default

    Returns:
        Configured logger instance
    """
    if level is None:
        level = "INFO"

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid stacking handlers when called once per session
    if not any(getattr(h, "_qadventure", False) for h in logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler._qadventure = True
        logger.addHandler(console_handler)

    for handler in logger.handlers:
        handler.setLevel(getattr(logging, level.upper(), logging.INFO))

    return logger
