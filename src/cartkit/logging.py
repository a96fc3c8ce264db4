"""Logging utilities for cartkit.

cartkit logs through loguru and stays silent until the caller opts in with
`enable_logging()`. A custom FIT level sits between INFO and WARNING and
marks the pipeline steps a student usually wants to follow: fitting a tree,
splitting data, evaluating and tuning.

Note:
    Importing this module removes loguru's default stderr handler (ID 0) so
    that `enable_logging()` does not produce duplicate lines. If another
    library already removed handler 0 the removal is skipped.
"""

from __future__ import annotations

import contextlib
import sys
import threading
import warnings
from typing import TYPE_CHECKING, ClassVar, Final, Literal

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

with contextlib.suppress(ValueError):
    logger.remove(0)

FIT_LEVEL: Final[str] = "FIT"
FIT_LEVEL_NUMBER: Final[int] = 25  # Between INFO (20) and WARNING (30)


def _register_fit_level() -> None:
    """Register the FIT level with loguru, warning if it exists with another number."""
    try:
        existing_level = logger.level(FIT_LEVEL)
    except ValueError:
        logger.level(FIT_LEVEL, no=FIT_LEVEL_NUMBER, icon="🌳")
    else:
        # loguru refuses to renumber an existing level
        if existing_level.no != FIT_LEVEL_NUMBER:
            msg = f"FIT level already registered with numeric value {existing_level.no}, expected {FIT_LEVEL_NUMBER}"
            warnings.warn(msg, stacklevel=2)


_register_fit_level()

type LogLevel = Literal[
    "TRACE",
    "DEBUG",
    "INFO",
    "FIT",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

type LogFormat = Literal["short", "full"]

_SHORT_FORMAT: Final[str] = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
    "<cyan>{function}</cyan> - "
    "<level>{message}</level> {extra}"
)
_FULL_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> {extra}"
)


class LoggingHandle:
    """Owns one loguru handler added by `enable_logging()`.

    Call `disable()` or use the handle as a context manager to remove the
    handler. Package logging is switched off again once no handle is active.

    Examples:
        >>> with enable_logging(level="DEBUG"):  # doctest: +SKIP
        ...     build_tree(dataset)
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        """Initialize the logging handle.

        Args:
            handler_id (int): The loguru handler ID returned by `logger.add()`.
        """
        self.handler_id: int | None = handler_id
        with LoggingHandle._lock:
            LoggingHandle._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove this handle's handler; disable cartkit logging if it was the last one."""
        with LoggingHandle._lock:
            if self.handler_id is None:
                return
            LoggingHandle._active_ids.discard(self.handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(self.handler_id)
            self.handler_id = None
            if not LoggingHandle._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        """Enter context manager.

        Returns:
            LoggingHandle: This handle instance.
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and disable this handle."""
        self.disable()


def enable_logging(
    *,
    level: LogLevel = FIT_LEVEL,
    log_format: LogFormat = "short",
) -> LoggingHandle:
    """Send cartkit log records to stderr.

    Args:
        level (LogLevel): Minimum level to display. The default "FIT" shows
            one line per pipeline step; "DEBUG" additionally shows every split
            the tree builder makes.
        log_format (LogFormat): "short" shows time, level and function;
            "full" adds the module and line number.

    Returns:
        LoggingHandle: Independent handle for the new handler.

    Examples:
        >>> with enable_logging(log_format="full"):  # doctest: +SKIP
        ...     evaluate(tree, test_set)
    """
    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(
        sys.stderr,
        level=level,
        filter=_is_cartkit_record,
        format=_SHORT_FORMAT if log_format == "short" else _FULL_FORMAT,
    )
    return LoggingHandle(handler_id)


def _is_cartkit_record(record: Record) -> bool:
    """Pass only records emitted from inside the cartkit package.

    Args:
        record (Record): The loguru record to filter.

    Returns:
        bool: True if the record originates from cartkit.
    """
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
