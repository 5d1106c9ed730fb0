"""
Logging for ledgerwork.

Every record passing through the package handler carries two context values:
the caller's correlation id and the id of the unit of work currently being
committed or rolled back (``-`` outside of one).
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from types import TracebackType
from typing import Iterator, Optional, Type

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(correlation_id)s | uow=%(unit_of_work_id)s | %(name)s | %(message)s"
NO_UNIT_OF_WORK = "-"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_unit_of_work_id: ContextVar[str] = ContextVar("unit_of_work_id", default=NO_UNIT_OF_WORK)


class UnitOfWorkContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.unit_of_work_id = current_unit_of_work_id()
        return True


def configure_logging(level: int = logging.INFO) -> None:
    logger = logging.getLogger("ledgerwork")
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(UnitOfWorkContextFilter())
    logger.addHandler(handler)
    logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"ledgerwork.{name}")


def set_correlation_id(value: Optional[str] = None) -> str:
    token = value or str(uuid.uuid4())
    _correlation_id.set(token)
    return token


def get_correlation_id() -> str:
    cid = _correlation_id.get()
    if cid is None:
        cid = set_correlation_id()
    return cid


def new_unit_of_work_id() -> str:
    return uuid.uuid4().hex[:12]


def current_unit_of_work_id() -> str:
    return _unit_of_work_id.get()


@contextmanager
def bind_unit_of_work(unit_of_work_id: str) -> Iterator[str]:
    """Tag log records emitted inside the block with ``unit_of_work_id``."""
    token = _unit_of_work_id.set(unit_of_work_id)
    try:
        yield unit_of_work_id
    finally:
        _unit_of_work_id.reset(token)


class CallTimer:
    """
    Logs how long a commit or rollback took, at DEBUG below ``threshold_ms``
    and at WARNING from it on. Exceptions are never suppressed.
    """

    def __init__(
        self,
        name: str,
        logger: logging.Logger,
        *,
        changes: int | None = None,
        threshold_ms: float = 100,
    ) -> None:
        self.name = name
        self.logger = logger
        self.changes = changes
        self.threshold_ms = threshold_ms
        self.elapsed_ms: float | None = None
        self._start = 0.0

    def __enter__(self) -> "CallTimer":
        self._start = time.monotonic()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.elapsed_ms = (time.monotonic() - self._start) * 1000
        level = logging.WARNING if self.elapsed_ms >= self.threshold_ms else logging.DEBUG
        self.logger.log(
            level,
            "%s took %.2fms",
            self.name,
            self.elapsed_ms,
            extra={
                "changes": self.changes,
                "elapsed_ms": self.elapsed_ms,
                "failed": exc_type is not None,
                "unit_of_work_id": current_unit_of_work_id(),
            },
        )


def time_call(
    name: str, logger: logging.Logger, *, changes: int | None = None, threshold_ms: float = 100
) -> CallTimer:
    return CallTimer(name, logger, changes=changes, threshold_ms=threshold_ms)
