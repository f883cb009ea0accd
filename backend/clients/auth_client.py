import logging
from dataclasses import dataclass

import httpx

from backend.core.errors import InvalidToken, UpstreamServiceError
from backend.models.user import Role

logger = logging.getLogger(__name__)

VALIDATE_PATH = "/api/v1/auth/validate"


@dataclass(frozen=True)
class UserInfo:
    id: str
    email: str
    role: Role


class AuthServiceClient:
    """Validates bearer tokens against the auth service."""

    def __init__(self, base_url: str, timeout: float = 10, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def validate_token(self, token: str) -> UserInfo:
        try:
            response = self._client.post(VALIDATE_PATH, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as exc:
            logger.error('Auth service unreachable: %s', exc)
            raise UpstreamServiceError("auth service unavailable") from exc

        if response.status_code >= 500:
            raise UpstreamServiceError(f"auth service returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamServiceError("auth service returned an invalid response") from exc

        if not response.is_success or not body.get("success"):
            raise InvalidToken(body.get("error") or "token validation failed")

        data = body.get("data") or {}
        try:
            return UserInfo(id=str(data["user_id"]), email=str(data["email"]), role=Role(data["role"]))
        except (KeyError, ValueError) as exc:
            raise InvalidToken("token validation returned incomplete claims") from exc
