from collections.abc import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.auth.jwt_handler import AccessClaims, TokenSigner
from backend.auth.refresh_tokens import RefreshTokenStore
from backend.auth.service import AuthService
from backend.clients.auth_client import AuthServiceClient, UserInfo
from backend.core.errors import Forbidden, InvalidToken
from backend.database import get_db
from backend.models.user import Role

security = HTTPBearer(auto_error=False)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or not credentials.credentials:
        raise InvalidToken("authorization header required")
    return credentials.credentials


# Auth service: tokens are verified locally with the signer on app.state.

def get_token_signer(request: Request) -> TokenSigner:
    return request.app.state.token_signer


def get_auth_service(
    request: Request,
    db: Session = Depends(get_db),
    signer: TokenSigner = Depends(get_token_signer),
) -> AuthService:
    state = request.app.state
    return AuthService(
        db,
        signer,
        refresh_tokens=RefreshTokenStore(db, clock=state.clock),
        refresh_ttl=state.refresh_ttl,
        clock=state.clock,
        bcrypt_rounds=state.bcrypt_rounds,
    )


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    signer: TokenSigner = Depends(get_token_signer),
) -> AccessClaims:
    return signer.verify(_bearer_token(credentials))


# Job and candidate services: tokens are checked by calling the auth service.

def get_auth_client(request: Request) -> AuthServiceClient:
    return request.app.state.auth_client


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_client: AuthServiceClient = Depends(get_auth_client),
) -> UserInfo:
    return auth_client.validate_token(_bearer_token(credentials))


def require_role(role: Role) -> Callable[..., UserInfo]:
    def dependency(current_user: UserInfo = Depends(get_current_user)) -> UserInfo:
        if current_user.role is not role:
            raise Forbidden(f"{role.value} role required")
        return current_user

    return dependency


require_admin = require_role(Role.ADMIN)
require_candidate = require_role(Role.CANDIDATE)
