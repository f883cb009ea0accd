import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('UPLOAD_DIR', './test-uploads')

from backend.auth.jwt_handler import TokenSigner  # noqa: E402
from backend.clients.auth_client import UserInfo  # noqa: E402
from backend.core.errors import InvalidToken  # noqa: E402
from backend.database import Base, create_db_engine, create_session_factory, init_schema  # noqa: E402

TEST_SECRET = 'test-signing-secret-0123456789abcdef'


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeAuthClient:
    """Maps bearer tokens to users without calling the auth service."""

    def __init__(self, users: dict[str, UserInfo] | None = None) -> None:
        self.users = dict(users or {})
        self.closed = False

    def validate_token(self, token: str) -> UserInfo:
        if token not in self.users:
            raise InvalidToken('token validation failed')
        return self.users[token]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def signer(clock: FakeClock) -> TokenSigner:
    return TokenSigner(TEST_SECRET, ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def engine():
    engine = create_db_engine('sqlite://')
    init_schema(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    # Separate connections per session; needed when worker threads share the database.
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_schema(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
