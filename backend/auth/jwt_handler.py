import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from backend.core.errors import InvalidToken
from backend.database import utc_now
from backend.models.user import Role

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
REQUIRED_CLAIMS = ("user_id", "email", "role", "iat", "exp")


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    email: str
    role: Role
    issued_at: datetime
    expires_at: datetime
    subject: str


def strip_bearer(header: str) -> str:
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):]
    return header


class TokenSigner:
    """Issues and verifies HMAC-signed access tokens.

    Expiry is checked against ``clock`` rather than the wall clock so tests can
    move time forward without sleeping.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must not be empty.")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl
        self._clock = clock

    def issue(self, user) -> tuple[str, datetime]:
        # exp is whole seconds; keep the returned expiry in step with it.
        now = self._clock().replace(microsecond=0)
        expires_at = now + self._ttl
        payload = {
            "user_id": user.id,
            "email": user.email,
            "role": Role(user.role).value,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "sub": user.id,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return token, expires_at

    def verify(self, token: str) -> AccessClaims:
        try:
            # Expiry is enforced below against the injected clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": list(REQUIRED_CLAIMS)},
            )
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc

        try:
            role = Role(payload["role"])
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError) as exc:
            raise InvalidToken() from exc

        if self._clock() >= expires_at:
            raise InvalidToken("token has expired")

        return AccessClaims(
            user_id=str(payload["user_id"]),
            email=str(payload["email"]),
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
            subject=str(payload.get("sub") or payload["user_id"]),
        )
