import logging
import secrets
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.orm import Session

from backend.core.errors import InvalidRefreshToken
from backend.core.validation import new_id
from backend.database import utc_now
from backend.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)


def new_refresh_token() -> str:
    return secrets.token_urlsafe(32)


class RefreshTokenStore:
    """Persistence for refresh tokens. Callers own the transaction."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now) -> None:
        self.db = db
        self._clock = clock

    def _now_epoch(self) -> int:
        return int(self._clock().timestamp())

    def store(self, user_id: str, token: str, expires_at: datetime) -> RefreshToken:
        row = RefreshToken(
            id=new_id(),
            user_id=user_id,
            token=token,
            expires_at=int(expires_at.timestamp()),
        )
        self.db.add(row)
        self.db.flush()
        return row

    def get(self, token: str) -> str:
        row = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.expires_at > self._now_epoch())
            .first()
        )
        if row is None:
            raise InvalidRefreshToken()
        return row.user_id

    def delete(self, token: str) -> int:
        return (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == token)
            .delete(synchronize_session=False)
        )

    def delete_all_for_user(self, user_id: str) -> int:
        return (
            self.db.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def sweep_expired(self) -> int:
        removed = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.expires_at <= self._now_epoch())
            .delete(synchronize_session=False)
        )
        if removed:
            logger.info('Removed %s expired refresh tokens', removed)
        return removed
