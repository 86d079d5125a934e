# backend/tests/unit/core/test_logging_setup.py
import logging

from tutorbook.core.logging_setup import (
    NO_REQUEST,
    RequestIdFilter,
    bind_request_id,
    current_request_id,
    install_request_id_filter,
    unbind_request_id,
)
from tutorbook.core.ulid_helper import generate_ulid, is_valid_ulid


def _record():
    return logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)


def test_request_id_is_scoped_to_token():
    token = bind_request_id("req-123")
    try:
        assert current_request_id() == "req-123"
    finally:
        unbind_request_id(token)
    assert current_request_id() is None


def test_filter_stamps_records():
    record = _record()
    token = bind_request_id("req-456")
    try:
        assert RequestIdFilter().filter(record)
    finally:
        unbind_request_id(token)
    assert record.request_id == "req-456"


def test_filter_outside_request():
    record = _record()
    RequestIdFilter().filter(record)
    assert record.request_id == NO_REQUEST


def test_filter_is_installed_once():
    logger = logging.getLogger("tutorbook.tests.logging_setup")
    handler = logging.NullHandler()
    logger.addHandler(handler)
    try:
        install_request_id_filter(logger)
        install_request_id_filter(logger)
        assert sum(isinstance(f, RequestIdFilter) for f in handler.filters) == 1
    finally:
        logger.removeHandler(handler)


def test_ulid_validation():
    assert is_valid_ulid(generate_ulid())
    assert not is_valid_ulid("not-a-ulid")
    assert not is_valid_ulid("U" * 26)
    assert not is_valid_ulid(None)
