from datetime import datetime

from fastapi import APIRouter, Depends, Header, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

from backend.auth.dependencies import get_auth_service, get_current_claims
from backend.auth.jwt_handler import AccessClaims
from backend.auth.service import AuthService, LoginResult
from backend.core.responses import error_body, success
from backend.core.validation import MIN_PASSWORD_LENGTH, is_valid_email
from backend.models.user import Role

router = APIRouter(tags=['auth'])


def _require_text(value: str, field_name: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{field_name} is required.')
    return normalized


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str
    role: Role

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not is_valid_email(normalized):
            raise ValueError('Invalid email format.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long.')
        return value

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _require_text(value, 'Name')

    @field_validator('role', mode='before')
    @classmethod
    def normalize_role(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _require_text(value, 'Email').lower()

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value


class RefreshRequest(BaseModel):
    refresh_token: str

    @field_validator('refresh_token')
    @classmethod
    def validate_refresh_token(cls, value: str) -> str:
        return _require_text(value, 'Refresh token')


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator('current_password')
    @classmethod
    def validate_current_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Current password is required.')
        return value

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'New password must be at least {MIN_PASSWORD_LENGTH} characters long.')
        return value


class UserSummary(BaseModel):
    id: str
    email: str
    name: str
    role: Role

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    token: str
    refresh_token: str
    user: UserSummary
    expires_at: datetime


class TokenClaimsResponse(BaseModel):
    user_id: str
    email: str
    role: Role


def _session_payload(result: LoginResult) -> dict:
    return LoginResponse(
        token=result.token,
        refresh_token=result.refresh_token,
        user=UserSummary.model_validate(result.user),
        expires_at=result.expires_at,
    ).model_dump(mode='json')


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: AuthService = Depends(get_auth_service)) -> dict:
    user = service.register(payload.email, payload.password, payload.name, payload.role)
    return success('User registered successfully', UserSummary.model_validate(user).model_dump(mode='json'))


@router.post('/login')
def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)) -> dict:
    result = service.login(payload.email, payload.password)
    return success('Login successful', _session_payload(result))


@router.post('/refresh')
def refresh(payload: RefreshRequest, service: AuthService = Depends(get_auth_service)) -> dict:
    result = service.refresh(payload.refresh_token)
    return success('Token refreshed successfully', _session_payload(result))


@router.post('/validate')
def validate(
    authorization: str | None = Header(default=None),
    service: AuthService = Depends(get_auth_service),
):
    if authorization is None or not authorization.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body('Authorization header required'),
        )

    claims = service.validate_token(authorization)
    data = TokenClaimsResponse(user_id=claims.user_id, email=claims.email, role=claims.role)
    return success('Token is valid', data.model_dump(mode='json'))


@router.post('/logout')
def logout(
    claims: AccessClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    service.logout(claims.user_id)
    return success('Logout successful')


@router.get('/profile')
def profile(
    claims: AccessClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    user = service.get_user(claims.user_id)
    return success('Profile retrieved successfully', UserSummary.model_validate(user).model_dump(mode='json'))


@router.put('/change-password')
def change_password(
    payload: ChangePasswordRequest,
    claims: AccessClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    service.change_password(claims.user_id, payload.current_password, payload.new_password)
    return success('Password changed successfully')
