# backend/tutorbook/api/dependencies/auth.py
"""
Acting-user dependency.

Authentication happens upstream; the gateway forwards the authenticated
user's ULID in the ``X-User-Id`` header.
"""

import logging
from typing import Optional

from fastapi import Header

from ...core.exceptions import UnauthorizedException
from ...core.ulid_helper import is_valid_ulid

logger = logging.getLogger(__name__)


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Return the acting user's id or raise 401."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedException(
            "Authentication required", code="NOT_AUTHENTICATED"
        ).to_http_exception()
    if not is_valid_ulid(user_id):
        logger.info("Rejected malformed X-User-Id header")
        raise UnauthorizedException(
            "Invalid user identifier", code="INVALID_USER_ID"
        ).to_http_exception()
    return user_id
