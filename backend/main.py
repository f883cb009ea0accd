import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from backend.auth.jwt_handler import TokenSigner
from backend.candidates.resume_queue import ResumeProcessingQueue
from backend.clients.ai_client import MockAIClient
from backend.clients.auth_client import AuthServiceClient
from backend.clients.file_storage import LocalFileStorage
from backend.clients.job_client import JobServiceClient
from backend.core import config
from backend.core.errors import register_error_handlers
from backend.database import create_db_engine, create_session_factory, init_schema, utc_now
from backend.routes import auth_routes, candidate_routes, job_routes, skill_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

logger = logging.getLogger(__name__)


def _build_app(service_name: str, session_factory: sessionmaker | None, database_url: str | None) -> FastAPI:
    config.validate_runtime_config()
    if session_factory is None:
        session_factory = create_session_factory(create_db_engine(database_url or config.DATABASE_URL, echo=config.SQL_ECHO))

    app = FastAPI(title=service_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    register_error_handlers(app)
    app.state.session_factory = session_factory

    @app.on_event('startup')
    def initialize_database() -> None:
        try:
            init_schema(session_factory.kw['bind'])
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')

    @app.get('/health')
    def health() -> dict:
        return {'status': 'ok', 'service': service_name}

    return app


def create_auth_app(
    database_url: str | None = None,
    session_factory: sessionmaker | None = None,
    token_signer: TokenSigner | None = None,
    clock: Callable[[], datetime] = utc_now,
    bcrypt_rounds: int | None = None,
) -> FastAPI:
    app = _build_app('auth-service', session_factory, database_url)
    app.state.clock = clock
    app.state.token_signer = token_signer or TokenSigner(
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
        ttl=timedelta(hours=config.ACCESS_TOKEN_TTL_HOURS),
        clock=clock,
    )
    app.state.refresh_ttl = timedelta(days=config.REFRESH_TOKEN_TTL_DAYS)
    app.state.bcrypt_rounds = bcrypt_rounds or config.BCRYPT_ROUNDS

    app.include_router(auth_routes.router, prefix='/api/v1/auth')
    return app


def create_job_app(
    database_url: str | None = None,
    session_factory: sessionmaker | None = None,
    auth_client: AuthServiceClient | None = None,
) -> FastAPI:
    app = _build_app('job-service', session_factory, database_url)
    app.state.auth_client = auth_client or AuthServiceClient(
        config.AUTH_SERVICE_URL,
        timeout=config.SERVICE_HTTP_TIMEOUT_SECONDS,
    )

    @app.on_event('shutdown')
    def close_clients() -> None:
        app.state.auth_client.close()

    app.include_router(job_routes.router, prefix='/api/v1/jobs')
    app.include_router(skill_routes.router, prefix='/api/v1/skills')
    return app


def create_candidate_app(
    database_url: str | None = None,
    session_factory: sessionmaker | None = None,
    auth_client: AuthServiceClient | None = None,
    job_client: JobServiceClient | None = None,
    file_storage: LocalFileStorage | None = None,
    resume_queue: ResumeProcessingQueue | None = None,
    max_resume_bytes: int | None = None,
) -> FastAPI:
    app = _build_app('candidate-service', session_factory, database_url)
    state = app.state
    state.auth_client = auth_client or AuthServiceClient(
        config.AUTH_SERVICE_URL,
        timeout=config.SERVICE_HTTP_TIMEOUT_SECONDS,
    )
    state.job_client = job_client or JobServiceClient(
        config.JOB_SERVICE_URL,
        timeout=config.SERVICE_HTTP_TIMEOUT_SECONDS,
    )
    state.file_storage = file_storage or LocalFileStorage(config.UPLOAD_DIR)
    state.resume_queue = resume_queue or ResumeProcessingQueue(
        state.session_factory,
        MockAIClient(),
        workers=config.RESUME_WORKERS,
    )
    state.max_resume_bytes = max_resume_bytes or config.MAX_RESUME_BYTES

    @app.on_event('shutdown')
    def release_resources() -> None:
        state.resume_queue.shutdown()
        state.auth_client.close()
        state.job_client.close()

    app.include_router(candidate_routes.router, prefix='/api/v1/candidates')
    return app


auth_app = create_auth_app()
job_app = create_job_app()
candidate_app = create_candidate_app()
