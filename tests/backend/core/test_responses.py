import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError

from backend.core.errors import Forbidden, NotFound, register_error_handlers
from backend.core.responses import build_pagination, calculate_offset, error_body, pagination_params, success


@pytest.mark.parametrize(
    ('page', 'limit', 'expected'),
    [
        (None, None, (1, 10)),
        (0, 0, (1, 10)),
        (3, 100, (3, 100)),
        (2, 101, (2, 10)),
        (-1, 25, (1, 25)),
    ],
)
def test_pagination_params(page, limit, expected) -> None:
    assert pagination_params(page, limit) == expected


def test_build_pagination_rounds_pages_up() -> None:
    pagination = build_pagination(page=2, limit=10, total=21)

    assert pagination.total_pages == 3
    assert calculate_offset(2, 10) == 10


def test_envelopes() -> None:
    assert success('Done') == {'success': True, 'message': 'Done'}
    assert success('Done', {'id': 1}) == {'success': True, 'message': 'Done', 'data': {'id': 1}}
    assert error_body('Failed', 'reason') == {'success': False, 'message': 'Failed', 'error': 'reason'}


class _Payload(BaseModel):
    name: str


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_error_handlers(app)

    @app.get('/forbidden')
    def forbidden():
        raise Forbidden('admin role required')

    @app.get('/missing')
    def missing():
        raise NotFound('job not found')

    @app.get('/database')
    def database():
        raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    @app.post('/payload')
    def payload(body: _Payload):
        return success('ok')

    return TestClient(app)


def test_service_errors_use_error_envelope(client: TestClient) -> None:
    forbidden = client.get('/forbidden')
    missing = client.get('/missing')

    assert forbidden.status_code == 403
    assert forbidden.json() == {'success': False, 'message': 'Forbidden', 'error': 'admin role required'}
    assert missing.status_code == 404
    assert missing.json() == {'success': False, 'message': 'Resource not found', 'error': 'job not found'}


def test_database_errors_map_to_503(client: TestClient) -> None:
    response = client.get('/database')

    assert response.status_code == 503
    assert response.json()['message'] == 'Database unavailable'


def test_request_validation_errors_map_to_400(client: TestClient) -> None:
    response = client.post('/payload', json={})

    assert response.status_code == 400
    assert response.json()['message'] == 'Validation failed'
    assert 'name' in response.json()['error']
