# backend/tutorbook/core/logging_setup.py
"""
Logging configuration and per-request correlation ids.

Every log line carries ``[request_id]``; records emitted outside a request
show ``-``.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
NO_REQUEST = "-"

_request_id: ContextVar[Optional[str]] = ContextVar("tutorbook_request_id", default=None)


def bind_request_id(request_id: str) -> Token[Optional[str]]:
    return _request_id.set(request_id)


def unbind_request_id(token: Token[Optional[str]]) -> None:
    _request_id.reset(token)


def current_request_id() -> Optional[str]:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` so the shared format never fails."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = current_request_id() or NO_REQUEST
        return True


def install_request_id_filter(logger: Optional[logging.Logger] = None) -> None:
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(existing, RequestIdFilter) for existing in handler.filters):
            handler.addFilter(RequestIdFilter())


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    install_request_id_filter()
