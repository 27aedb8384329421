"""loguru setup shared by the library, the pipeline entry point and the CLI."""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator

from loguru import logger

from ..config.settings import Settings, get_settings

_DEFAULT_EXTRA = {"run_id": "-", "step": "-"}

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <7}</level> "
    "<magenta>[{extra[step]}]</magenta> {message} <dim>{extra}</dim>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[run_id]} | {extra[step]} | {message} | {extra}"


def configure_logging(
    settings: Settings | None = None,
    level: str = "INFO",
    *,
    log_to_file: bool = True,
) -> None:
    """Replace loguru sinks with a stderr sink and, optionally, the rotating log file."""

    logger.remove()
    logger.configure(extra=dict(_DEFAULT_EXTRA))
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, backtrace=False, diagnose=False)
    if not log_to_file:
        return

    log_path = (settings or get_settings()).log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_path,
        level=level,
        format=_FILE_FORMAT,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
    )


def get_logger(**context: Any):
    """Return the shared logger bound to ``context``."""

    return logger.bind(**context)


@contextmanager
def logging_context(**context: Any) -> Iterator[Any]:
    with logger.contextualize(**context):
        yield logger


@contextmanager
def log_timing(step: str, **context: Any) -> Iterator[None]:
    """Log how long the wrapped block took, even when it raises."""

    started = time.perf_counter()
    try:
        yield
    finally:
        logger.bind(**context).debug(
            "Step finished", step=step, seconds=round(time.perf_counter() - started, 4)
        )


__all__ = ["configure_logging", "get_logger", "logging_context", "log_timing"]
