import os

import httpx
import pytest

from backend.clients.auth_client import AuthServiceClient
from backend.clients.file_storage import LocalFileStorage, safe_filename
from backend.clients.job_client import JobServiceClient
from backend.core.errors import InvalidToken, NotFound, UpstreamServiceError
from backend.models.user import Role


def _auth_client(handler) -> AuthServiceClient:
    return AuthServiceClient('http://auth.local', transport=httpx.MockTransport(handler))


def _job_client(handler) -> JobServiceClient:
    return JobServiceClient('http://jobs.local', transport=httpx.MockTransport(handler))


def test_validate_token_maps_envelope_to_user_info() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['url'] = str(request.url)
        seen['authorization'] = request.headers['Authorization']
        return httpx.Response(
            200,
            json={'success': True, 'message': 'Token is valid', 'data': {'user_id': 'u1', 'email': 'a@b.co', 'role': 'admin'}},
        )

    user = _auth_client(handler).validate_token('abc')

    assert seen == {'url': 'http://auth.local/api/v1/auth/validate', 'authorization': 'Bearer abc'}
    assert user.id == 'u1'
    assert user.role is Role.ADMIN


def test_validate_token_rejects_unauthorized_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={'success': False, 'message': 'Invalid token', 'error': 'invalid token'})

    with pytest.raises(InvalidToken):
        _auth_client(handler).validate_token('abc')


def test_validate_token_rejects_unknown_role() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={'success': True, 'data': {'user_id': 'u1', 'email': 'a@b.co', 'role': 'root'}})

    with pytest.raises(InvalidToken):
        _auth_client(handler).validate_token('abc')


def test_validate_token_reports_unreachable_service() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    with pytest.raises(UpstreamServiceError):
        _auth_client(handler).validate_token('abc')


def test_is_job_open_reads_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        status = 'open' if request.url.path.endswith('/job-1') else 'closed'
        return httpx.Response(200, json={'success': True, 'data': {'id': 'job-1', 'title': 'Dev', 'status': status}})

    client = _job_client(handler)

    assert client.is_job_open('job-1') is True
    assert client.is_job_open('job-2') is False


def test_get_job_maps_404_to_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={'success': False, 'message': 'Resource not found', 'error': 'job not found'})

    with pytest.raises(NotFound):
        _job_client(handler).get_job('job-1')


@pytest.mark.parametrize('status_code', [500, 503])
def test_get_job_maps_server_errors_to_upstream_error(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={'success': False, 'message': 'Database unavailable'})

    with pytest.raises(UpstreamServiceError):
        _job_client(handler).get_job('job-1')


def test_local_file_storage_round_trip(tmp_path) -> None:
    storage = LocalFileStorage(str(tmp_path))

    path = storage.save('cand-1', '../../etc/my cv.pdf', b'content')

    assert os.path.dirname(path) == os.path.join(str(tmp_path), 'cand-1')
    assert path.endswith('_my_cv.pdf')
    storage.delete(path)
    storage.delete(path)
    assert not os.path.exists(path)


@pytest.mark.parametrize(
    ('filename', 'expected'),
    [
        ('resume.pdf', 'resume.pdf'),
        ('C:\\Users\\ana\\cv final.docx', 'cv_final.docx'),
        ('', 'resume'),
        ('...', 'resume'),
    ],
)
def test_safe_filename(filename: str, expected: str) -> None:
    assert safe_filename(filename) == expected


def test_same_second_uploads_do_not_overwrite(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr('backend.clients.file_storage.time.time', lambda: 1700000000.5)
    storage = LocalFileStorage(str(tmp_path))

    first = storage.save('cand-1', 'cv.pdf', b'FIRST')
    second = storage.save('cand-1', 'cv.pdf', b'SECOND')
    storage.delete(second)

    assert first != second
    assert os.path.basename(first) == '1700000000_cv.pdf'
    assert os.path.basename(second) == '1700000000_1_cv.pdf'
    with open(first, 'rb') as handle:
        assert handle.read() == b'FIRST'
