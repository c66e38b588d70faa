"""Correlation ids that tie log lines to one request or one sweep pass."""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_current_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def new_correlation_id(prefix: str = "req") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def current_correlation_id() -> Optional[str]:
    return _current_id.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None, prefix: str = "req") -> Iterator[str]:
    """Bind ``correlation_id`` (or a fresh one) until the block exits."""

    bound = correlation_id or new_correlation_id(prefix)
    token = _current_id.set(bound)
    try:
        yield bound
    finally:
        _current_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = current_correlation_id() or "-"
        return True
