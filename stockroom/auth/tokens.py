"""
Stateless session tokens.

Tokens are itsdangerous URL-safe timed signatures over a small claims dict:

    <payload>.<timestamp>.<signature>

Integrity comes from an HMAC keyed by the server secret; expiry comes from
the signing timestamp checked against SESSION_MAX_AGE on verification.
Nothing is persisted, so tokens cannot be revoked before they expire.
"""

from __future__ import annotations

import hashlib
import time
from datetime import timedelta
from typing import Any, Callable, Dict, Mapping, Optional

from itsdangerous import BadData, SignatureExpired, TimestampSigner, URLSafeTimedSerializer

from stockroom.utils.logger import get_logger

logger = get_logger(__name__)

SESSION_MAX_AGE = timedelta(days=7)
TOKEN_SALT = "stockroom-session"

Clock = Callable[[], float]


class _ClockedTimestampSigner(TimestampSigner):
    """TimestampSigner that reads time from an injectable clock."""

    def __init__(self, *args: Any, clock: Clock = time.time, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._clock = clock

    def get_timestamp(self) -> int:
        return int(self._clock())


class SessionTokens:
    """Signs and verifies session tokens with a server-held secret."""

    def __init__(
        self,
        secret: str,
        max_age: timedelta = SESSION_MAX_AGE,
        clock: Clock = time.time,
    ):
        if not secret:
            raise ValueError("A signing secret is required")
        self.max_age = max_age
        # A 48-byte SHA-384 digest encodes to 64 base64 chars with no padding
        # bits, so every character of the signature segment is significant.
        self._serializer = URLSafeTimedSerializer(
            secret_key=secret,
            salt=TOKEN_SALT,
            signer=_ClockedTimestampSigner,
            signer_kwargs={"clock": clock, "digest_method": hashlib.sha384},
        )

    @property
    def max_age_seconds(self) -> int:
        return int(self.max_age.total_seconds())

    def sign(self, claims: Mapping[str, Any]) -> str:
        """Return a signed token embedding `claims` and the signing time."""
        if not claims.get("id"):
            raise ValueError("Session claims must include the user id")
        return self._serializer.dumps(dict(claims))

    def verify(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Return the embedded claims, or None if the token is unusable.

        Bad signatures, wrong secrets, malformed input and expiry all
        collapse into None; the caller treats them as unauthenticated.
        """
        if not token or not isinstance(token, str):
            return None
        try:
            data = self._serializer.loads(token, max_age=self.max_age_seconds)
        except SignatureExpired:
            logger.info("Session token rejected", reason="expired")
            return None
        except BadData:
            logger.info("Session token rejected", reason="bad_signature")
            return None
        if not isinstance(data, dict) or not data.get("id"):
            logger.info("Session token rejected", reason="bad_payload")
            return None
        return data
