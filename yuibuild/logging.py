"""Logger hierarchy shared by the resolver, builders, orchestrator and service."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import debug_mode

_ROOT = "yuibuild"
_CONSOLE_FORMAT = "[yuibuild] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the logger for a component, e.g. ``builders.shifter``."""
    return logging.getLogger(f"{_ROOT}.{component}" if component else _ROOT)


def configure_logging(
    *, verbose: bool | None = None, log_file: Path | None = None
) -> logging.Logger:
    """Attach console and optional file handlers to the ``yuibuild`` logger.

    When ``verbose`` is not given, debug output follows ``YUIBUILD_DEBUG``, the
    same switch that stops shifter from running silent.
    """
    if verbose is None:
        verbose = debug_mode()
    level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False

    # a long running service may be configured more than once
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    handlers[0].setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(file_handler)
    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
