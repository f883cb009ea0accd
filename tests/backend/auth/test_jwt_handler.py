from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from backend.auth.jwt_handler import TokenSigner, strip_bearer
from backend.core.errors import InvalidToken
from backend.models.user import Role


def _user(role: Role = Role.CANDIDATE) -> SimpleNamespace:
    return SimpleNamespace(id='6f1c2a52-7f6e-4c1e-9d7e-1d2f3a4b5c6d', email='ana@example.com', role=role)


def test_issue_embeds_identity_claims(signer: TokenSigner, clock) -> None:
    token, expires_at = signer.issue(_user(Role.ADMIN))

    claims = signer.verify(token)

    assert claims.user_id == '6f1c2a52-7f6e-4c1e-9d7e-1d2f3a4b5c6d'
    assert claims.subject == claims.user_id
    assert claims.email == 'ana@example.com'
    assert claims.role is Role.ADMIN
    assert claims.issued_at == clock.now
    assert expires_at == clock.now + timedelta(hours=24)
    assert claims.expires_at == expires_at


def test_issue_reports_expiry_matching_exp_claim(signer: TokenSigner, clock) -> None:
    clock.advance(microseconds=750000)

    token, expires_at = signer.issue(_user())
    payload = jwt.decode(token, options={'verify_signature': False})

    assert expires_at.microsecond == 0
    assert int(expires_at.timestamp()) == payload['exp']
    clock.now = expires_at - timedelta(microseconds=1)
    assert signer.verify(token).expires_at == expires_at


def test_verify_accepts_token_one_second_before_expiry(signer: TokenSigner, clock) -> None:
    token, _ = signer.issue(_user())

    clock.advance(hours=24, seconds=-1)

    assert signer.verify(token).email == 'ana@example.com'


def test_verify_rejects_token_one_second_after_expiry(signer: TokenSigner, clock) -> None:
    token, _ = signer.issue(_user())

    clock.advance(hours=24, seconds=1)

    with pytest.raises(InvalidToken):
        signer.verify(token)


def test_verify_rejects_token_signed_with_other_secret(signer: TokenSigner, clock) -> None:
    other = TokenSigner('another-secret-value-0123456789abcdef', clock=clock)
    token, _ = other.issue(_user())

    with pytest.raises(InvalidToken):
        signer.verify(token)


@pytest.mark.parametrize('token', ['', 'garbage', 'a.b.c'])
def test_verify_rejects_malformed_tokens(signer: TokenSigner, token: str) -> None:
    with pytest.raises(InvalidToken):
        signer.verify(token)


def test_verify_rejects_token_missing_role_claim(signer: TokenSigner, clock) -> None:
    now = int(clock.now.timestamp())
    token = jwt.encode(
        {'user_id': 'u1', 'email': 'ana@example.com', 'iat': now, 'exp': now + 60},
        'test-signing-secret-0123456789abcdef',
        algorithm='HS256',
    )

    with pytest.raises(InvalidToken):
        signer.verify(token)


def test_verify_rejects_unknown_role(signer: TokenSigner, clock) -> None:
    now = int(clock.now.timestamp())
    token = jwt.encode(
        {'user_id': 'u1', 'email': 'ana@example.com', 'role': 'superuser', 'iat': now, 'exp': now + 60},
        'test-signing-secret-0123456789abcdef',
        algorithm='HS256',
    )

    with pytest.raises(InvalidToken):
        signer.verify(token)


def test_token_signer_requires_secret() -> None:
    with pytest.raises(ValueError):
        TokenSigner('')


@pytest.mark.parametrize(
    ('header', 'expected'),
    [
        ('Bearer abc.def', 'abc.def'),
        ('abc.def', 'abc.def'),
        ('bearer abc.def', 'bearer abc.def'),
    ],
)
def test_strip_bearer(header: str, expected: str) -> None:
    assert strip_bearer(header) == expected
