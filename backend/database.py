import logging
from collections.abc import Iterator
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    connect_args: dict = {}
    engine_kwargs: dict = {'echo': echo}

    if database_url.startswith('sqlite'):
        connect_args['check_same_thread'] = False
        if ':memory:' in database_url or database_url in {'sqlite://', 'sqlite:///'}:
            # One shared connection so every session sees the same in-memory schema.
            engine_kwargs['poolclass'] = StaticPool

    return create_engine(database_url, connect_args=connect_args, **engine_kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_schema(engine: Engine) -> None:
    # Model modules register their tables on Base when imported.
    from backend.models import candidate, job, refresh_token, user  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info('Database schema ready (%s tables)', len(Base.metadata.tables))


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
