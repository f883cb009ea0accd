"""Account lifecycle: registration, login, refresh rotation, logout, password change.

Access tokens are stateless and stay valid until they expire; logout and password
changes only remove refresh tokens.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import passwords
from backend.auth.jwt_handler import AccessClaims, TokenSigner, strip_bearer
from backend.auth.refresh_tokens import RefreshTokenStore, new_refresh_token
from backend.core.errors import (
    DuplicateEmail,
    IncorrectPassword,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidToken,
    UserNotFound,
    ValidationError,
)
from backend.core.validation import is_blank, is_valid_email, is_valid_password, new_id, sanitize
from backend.database import utc_now
from backend.models.user import Role, User

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    token: str
    refresh_token: str
    user: User
    expires_at: datetime


def normalize_email(email: str) -> str:
    return sanitize(email).lower()


def parse_role(value) -> Role:
    try:
        return Role(sanitize(getattr(value, 'value', value)).lower())
    except ValueError as exc:
        raise ValidationError('invalid role') from exc


class AuthService:
    def __init__(
        self,
        db: Session,
        signer: TokenSigner,
        refresh_tokens: RefreshTokenStore | None = None,
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utc_now,
        bcrypt_rounds: int | None = None,
    ) -> None:
        self.db = db
        self.signer = signer
        self.refresh_tokens = refresh_tokens or RefreshTokenStore(db, clock=clock)
        self.refresh_ttl = refresh_ttl
        self.clock = clock
        self.bcrypt_rounds = bcrypt_rounds

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def get_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise UserNotFound()
        return user

    def register(self, email: str, password: str, name: str, role) -> User:
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValidationError('invalid email format')
        if not is_valid_password(password):
            raise ValidationError('password must be at least 6 characters long')
        parsed_role = parse_role(role)
        if is_blank(name):
            raise ValidationError('name is required')

        if self._find_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(
            id=new_id(),
            email=email,
            password_hash=passwords.hash_password(password, rounds=self.bcrypt_rounds),
            role=parsed_role,
            name=sanitize(name),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            self.db.rollback()
            raise DuplicateEmail() from exc
        except SQLAlchemyError:
            self.db.rollback()
            raise

        logger.info('Registered user %s with role %s', user.id, user.role.value)
        return user

    def _issue_pair(self, user: User) -> LoginResult:
        token, expires_at = self.signer.issue(user)
        refresh_token = new_refresh_token()
        self.refresh_tokens.store(user.id, refresh_token, self.clock() + self.refresh_ttl)
        self._commit()
        return LoginResult(token=token, refresh_token=refresh_token, user=user, expires_at=expires_at)

    def login(self, email: str, password: str) -> LoginResult:
        user = self._find_by_email(normalize_email(email))
        if user is None:
            passwords.burn_verify(password or '')
            logger.warning('Login failed: unknown account')
            raise InvalidCredentials()
        if not passwords.verify_password(user.password_hash, password or ''):
            logger.warning('Login failed for user %s', user.id)
            raise InvalidCredentials()

        result = self._issue_pair(user)
        logger.info('User %s logged in', user.id)
        return result

    def refresh(self, refresh_token: str) -> LoginResult:
        try:
            user_id = self.refresh_tokens.get(refresh_token)
        except InvalidRefreshToken:
            logger.warning('Refresh rejected: unknown or expired token')
            raise

        user = self.db.get(User, user_id)
        if user is None:
            raise UserNotFound()

        # The presented token must be gone before a replacement exists; when two
        # requests race on the same token only one delete removes a row.
        deleted = self.refresh_tokens.delete(refresh_token)
        self._commit()
        if not deleted:
            logger.warning('Refresh rejected: token already used')
            raise InvalidRefreshToken()

        result = self._issue_pair(user)
        logger.info('Rotated refresh token for user %s', user.id)
        return result

    def logout(self, user_id: str) -> None:
        removed = self.refresh_tokens.delete_all_for_user(user_id)
        self._commit()
        logger.info('User %s logged out (%s refresh tokens removed)', user_id, removed)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        if not passwords.verify_password(user.password_hash, current_password or ''):
            logger.warning('Password change rejected for user %s', user.id)
            raise IncorrectPassword()
        if not is_valid_password(new_password):
            raise ValidationError('new password must be at least 6 characters long')

        user.password_hash = passwords.hash_password(new_password, rounds=self.bcrypt_rounds)
        user.updated_at = self.clock()
        self._commit()
        logger.info('Password changed for user %s', user.id)

    def validate_token(self, token_or_header: str) -> AccessClaims:
        try:
            return self.signer.verify(strip_bearer(sanitize(token_or_header)))
        except InvalidToken as exc:
            logger.warning('Token rejected: %s', exc.detail)
            raise

    def sweep_expired_refresh_tokens(self) -> int:
        removed = self.refresh_tokens.sweep_expired()
        self._commit()
        return removed
