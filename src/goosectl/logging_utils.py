"""
goosectl.logging_utils - logger initialisation for the CLI

    logger = init_logger(level="DEBUG", rich=True)
    log = get_logger("goosectl.workspace")

• Rich console handler when stderr is a TTY, plain StreamHandler otherwise.
• Handlers write to stderr; stdout is reserved for command output
  (``current-version --format json`` must stay parseable).
• Repeated calls reuse the cached logger instead of stacking handlers.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "goosectl"
HANDLER_NAME = "goosectl-console"

_LOGGER_CACHE: Dict[str, logging.Logger] = {}


def _is_tty(stream: Any) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


def _fmt_plain() -> logging.Formatter:
    # level | name | message
    return logging.Formatter(fmt="%(levelname)s | %(name)s | %(message)s")


def _level(level: str) -> int:
    return getattr(logging, str(level).upper(), logging.INFO)


def init_logger(
    *,
    level: str = "WARNING",
    rich: bool = True,
    name: str = ROOT_LOGGER,
    stream: Optional[Any] = None,
) -> logging.Logger:
    """
    Configure the ``goosectl`` logger (or ``name``) once and return it.

    A second call only updates the level, so the CLI callback can run
    several times in one process (tests) without duplicating output.
    """
    if name in _LOGGER_CACHE:
        logger = _LOGGER_CACHE[name]
        logger.setLevel(_level(level))
        for handler in owned_handlers(logger):
            handler.setLevel(_level(level))
        return logger

    stream = stream if stream is not None else sys.stderr
    logger = logging.getLogger(name)
    logger.setLevel(_level(level))
    logger.propagate = False

    if rich and _is_tty(stream):
        console = Console(file=stream, highlight=False)
        handler: logging.Handler = RichHandler(
            console=console, show_time=False, show_level=True, show_path=False, markup=False
        )
    else:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(_fmt_plain())
    handler.set_name(HANDLER_NAME)
    handler.setLevel(_level(level))
    logger.addHandler(handler)

    _LOGGER_CACHE[name] = logger
    return logger


def owned_handlers(logger: logging.Logger) -> List[logging.Handler]:
    """Handlers installed by ``init_logger``; others (e.g. pytest capture) are left alone."""
    return [h for h in logger.handlers if h.get_name() == HANDLER_NAME]


def get_logger(name: str) -> logging.Logger:
    """
    Return a child of the ``goosectl`` logger. Children propagate to it, so
    they pick up whatever ``init_logger`` installed.
    """
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def reset_logging(name: str = ROOT_LOGGER) -> None:
    """Drop cached handlers for ``name`` (used by tests)."""
    logger = _LOGGER_CACHE.pop(name, None)
    if logger is None:
        return
    for handler in owned_handlers(logger):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["ROOT_LOGGER", "HANDLER_NAME", "init_logger", "owned_handlers", "get_logger", "reset_logging"]
