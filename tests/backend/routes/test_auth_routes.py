from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from backend.main import create_auth_app
from backend.routes.auth_routes import LoginRequest, RegisterRequest


@pytest.fixture
def client(session_factory, signer, clock) -> TestClient:
    app = create_auth_app(session_factory=session_factory, token_signer=signer, clock=clock, bcrypt_rounds=4)
    return TestClient(app)


def _register(client: TestClient, email: str = 'ana@example.com', password: str = 'secret1', role: str = 'candidate'):
    return client.post(
        '/api/v1/auth/register',
        json={'email': email, 'password': password, 'name': 'Ana', 'role': role},
    )


def _login(client: TestClient, email: str = 'ana@example.com', password: str = 'secret1'):
    return client.post('/api/v1/auth/login', json={'email': email, 'password': password})


def _bearer(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


def test_register_request_normalizes_email_and_role() -> None:
    request = RegisterRequest(email=' ANA@Example.COM ', password='secret1', name=' Ana ', role=' Admin ')

    assert request.email == 'ana@example.com'
    assert request.name == 'Ana'
    assert request.role.value == 'admin'


@pytest.mark.parametrize(
    'payload',
    [
        {'email': 'bad', 'password': 'secret1', 'name': 'Ana', 'role': 'candidate'},
        {'email': 'ana@example.com', 'password': '123', 'name': 'Ana', 'role': 'candidate'},
        {'email': 'ana@example.com', 'password': 'secret1', 'name': 'Ana', 'role': 'owner'},
        {'email': 'ana@example.com', 'password': 'secret1', 'name': ' ', 'role': 'candidate'},
    ],
)
def test_register_request_rejects_invalid_fields(payload: dict) -> None:
    with pytest.raises(ValidationError):
        RegisterRequest(**payload)


def test_login_request_requires_password() -> None:
    with pytest.raises(ValidationError):
        LoginRequest(email='ana@example.com', password='')


def test_health_reports_auth_service(client: TestClient) -> None:
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'ok', 'service': 'auth-service'}


def test_register_and_login_flow(client: TestClient, clock) -> None:
    registered = _register(client)

    assert registered.status_code == 201
    body = registered.json()
    assert body['success'] is True
    assert body['data']['email'] == 'ana@example.com'
    assert body['data']['role'] == 'candidate'
    assert 'password' not in body['data'] and 'password_hash' not in body['data']

    logged_in = _login(client)

    assert logged_in.status_code == 200
    data = logged_in.json()['data']
    assert set(data) == {'token', 'refresh_token', 'user', 'expires_at'}
    assert datetime.fromisoformat(data['expires_at'].replace('Z', '+00:00')) == clock.now + timedelta(hours=24)
    assert data['user']['id'] == body['data']['id']

    validated = client.post('/api/v1/auth/validate', headers=_bearer(data['token']))

    assert validated.status_code == 200
    assert validated.json()['data'] == {
        'user_id': body['data']['id'],
        'email': 'ana@example.com',
        'role': 'candidate',
    }


def test_register_with_short_password_is_rejected_before_side_effects(client: TestClient) -> None:
    response = _register(client, password='12345')

    assert response.status_code == 400
    assert response.json()['success'] is False
    assert response.json()['message'] == 'Validation failed'
    assert _login(client, password='12345').status_code == 401


def test_register_duplicate_email_returns_conflict(client: TestClient) -> None:
    _register(client)

    response = _register(client, password='another1')

    assert response.status_code == 409
    assert response.json()['error'] == 'user with this email already exists'


def test_login_failures_share_one_response(client: TestClient) -> None:
    _register(client)

    unknown = _login(client, email='nobody@example.com')
    wrong = _login(client, password='wrong-password')

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_refresh_rotates_tokens(client: TestClient) -> None:
    _register(client)
    session = _login(client).json()['data']

    first = client.post('/api/v1/auth/refresh', json={'refresh_token': session['refresh_token']})
    replay = client.post('/api/v1/auth/refresh', json={'refresh_token': session['refresh_token']})

    assert first.status_code == 200
    assert first.json()['data']['refresh_token'] != session['refresh_token']
    assert replay.status_code == 401
    assert replay.json()['message'] == 'Token refresh failed'


def test_validate_without_header_returns_400(client: TestClient) -> None:
    response = client.post('/api/v1/auth/validate')

    assert response.status_code == 400
    assert response.json() == {'success': False, 'message': 'Authorization header required'}


def test_validate_with_bad_token_returns_401(client: TestClient) -> None:
    response = client.post('/api/v1/auth/validate', headers=_bearer('not-a-token'))

    assert response.status_code == 401
    assert response.json()['message'] == 'Invalid token'


def test_validate_rejects_expired_token(client: TestClient, clock) -> None:
    _register(client)
    token = _login(client).json()['data']['token']

    clock.advance(hours=24, seconds=1)

    assert client.post('/api/v1/auth/validate', headers=_bearer(token)).status_code == 401


def test_profile_requires_bearer_token(client: TestClient) -> None:
    assert client.get('/api/v1/auth/profile').status_code == 401


def test_profile_returns_current_user(client: TestClient) -> None:
    _register(client)
    token = _login(client).json()['data']['token']

    response = client.get('/api/v1/auth/profile', headers=_bearer(token))

    assert response.status_code == 200
    assert response.json()['data']['name'] == 'Ana'


def test_logout_invalidates_refresh_token(client: TestClient) -> None:
    _register(client)
    session = _login(client).json()['data']

    response = client.post('/api/v1/auth/logout', headers=_bearer(session['token']))

    assert response.status_code == 200
    refresh = client.post('/api/v1/auth/refresh', json={'refresh_token': session['refresh_token']})
    assert refresh.status_code == 401


def test_change_password_flow(client: TestClient) -> None:
    _register(client)
    token = _login(client).json()['data']['token']

    wrong = client.put(
        '/api/v1/auth/change-password',
        headers=_bearer(token),
        json={'current_password': 'nope-nope', 'new_password': 'new-secret'},
    )
    changed = client.put(
        '/api/v1/auth/change-password',
        headers=_bearer(token),
        json={'current_password': 'secret1', 'new_password': 'new-secret'},
    )

    assert wrong.status_code == 400
    assert wrong.json()['error'] == 'current password is incorrect'
    assert changed.status_code == 200
    assert _login(client).status_code == 401
    assert _login(client, password='new-secret').status_code == 200
