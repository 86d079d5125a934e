# backend/tutorbook/services/payment_handoff_service.py
"""
Payment handoff tokens.

Carries an in-flight payment (client secret, PaymentIntent id, amount, slot,
points) from the booking page to the payment page as a signed, short-lived
JWT. A token is cleared once the payment reaches a terminal outcome; cleared
token ids are remembered until their natural expiry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import logging
import threading
import time
from typing import Any, Dict, Optional, cast

import jwt
import ulid

from ..core.config import settings
from ..core.exceptions import ValidationException

logger = logging.getLogger(__name__)

HANDOFF_ALGORITHM = "HS256"
HANDOFF_TOKEN_TYPE = "payment_handoff"


@dataclass(frozen=True)
class PaymentHandoff:
    client_secret: str
    payment_intent_id: str
    amount: Decimal
    points_to_use: int
    slot: Dict[str, Any]
    student_id: str
    token_id: str = ""
    expires_at: int = 0


class RevokedHandoffStore:
    """Process-wide set of cleared token ids, each kept until its expiry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._revoked: Dict[str, float] = {}

    def revoke(self, token_id: str, expires_at: float) -> None:
        with self._lock:
            self._purge_locked(time.time())
            self._revoked[token_id] = expires_at

    def is_revoked(self, token_id: str) -> bool:
        with self._lock:
            self._purge_locked(time.time())
            return token_id in self._revoked

    def clear(self) -> None:
        with self._lock:
            self._revoked.clear()

    def _purge_locked(self, now: float) -> None:
        expired = [jti for jti, exp in self._revoked.items() if exp < now]
        for jti in expired:
            del self._revoked[jti]


revoked_handoffs = RevokedHandoffStore()


def _invalid(message: str, code: str = "INVALID_HANDOFF") -> ValidationException:
    return ValidationException(message, code=code)


class PaymentHandoffService:
    def __init__(self, store: Optional[RevokedHandoffStore] = None):
        self.store = store or revoked_handoffs
        self.secret = settings.handoff_secret_key.get_secret_value()
        self.issuer = settings.handoff_token_issuer
        self.ttl = timedelta(seconds=settings.handoff_token_ttl_seconds)

    def issue(self, handoff: PaymentHandoff) -> str:
        """Sign ``handoff`` into a token valid for the configured lifetime."""
        now = datetime.now(timezone.utc)
        claims = {
            "typ": HANDOFF_TOKEN_TYPE,
            "sub": handoff.student_id,
            "iss": self.issuer,
            "iat": now,
            "exp": now + self.ttl,
            "jti": str(ulid.ULID()),
            "client_secret": handoff.client_secret,
            "payment_intent_id": handoff.payment_intent_id,
            "amount": str(handoff.amount),
            "points_to_use": int(handoff.points_to_use),
            "slot": handoff.slot,
        }
        token = cast(str, jwt.encode(claims, self.secret, algorithm=HANDOFF_ALGORITHM))
        logger.debug("Issued payment handoff %s for %s", claims["jti"], handoff.payment_intent_id)
        return token

    def _decode(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[HANDOFF_ALGORITHM],
                issuer=self.issuer,
                options={"require": ["exp", "jti", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise _invalid("Payment session expired", code="HANDOFF_EXPIRED") from exc
        except jwt.InvalidTokenError as exc:
            raise _invalid("Invalid payment session") from exc
        if payload.get("typ") != HANDOFF_TOKEN_TYPE:
            raise _invalid("Invalid payment session")
        return cast(Dict[str, Any], payload)

    def read(self, token: str, student_id: Optional[str] = None) -> PaymentHandoff:
        """
        Verify and decode a handoff token.

        Raises:
            ValidationException: If the token is expired, tampered with, cleared,
                or belongs to another student
        """
        payload = self._decode(token)
        if self.store.is_revoked(payload["jti"]):
            raise _invalid("Payment session already completed", code="HANDOFF_CLEARED")
        if student_id is not None and payload["sub"] != student_id:
            raise _invalid("Payment session belongs to another user")
        return PaymentHandoff(
            client_secret=payload["client_secret"],
            payment_intent_id=payload["payment_intent_id"],
            amount=Decimal(payload["amount"]),
            points_to_use=int(payload.get("points_to_use", 0)),
            slot=dict(payload.get("slot") or {}),
            student_id=payload["sub"],
            token_id=payload["jti"],
            expires_at=int(payload["exp"]),
        )

    def clear(self, token: str) -> None:
        """Invalidate a token. Clearing an expired or already-cleared token is a no-op."""
        try:
            payload = self._decode(token)
        except ValidationException as exc:
            if exc.code == "HANDOFF_EXPIRED":
                return
            raise
        self.store.revoke(payload["jti"], float(payload["exp"]))
        logger.debug("Cleared payment handoff %s", payload["jti"])
