import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None or not value.strip():
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./recruitment.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_TTL_HOURS = _get_int(os.getenv("ACCESS_TOKEN_TTL_HOURS"), 24)
REFRESH_TOKEN_TTL_DAYS = _get_int(os.getenv("REFRESH_TOKEN_TTL_DAYS"), 7)
BCRYPT_ROUNDS = _get_int(os.getenv("BCRYPT_ROUNDS"), 12)

AUTH_SERVICE_URL = os.getenv("AUTH_SERVICE_URL", "http://localhost:8083")
JOB_SERVICE_URL = os.getenv("JOB_SERVICE_URL", "http://localhost:8081")
SERVICE_HTTP_TIMEOUT_SECONDS = _get_int(os.getenv("SERVICE_HTTP_TIMEOUT_SECONDS"), 10)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
MAX_RESUME_BYTES = _get_int(os.getenv("MAX_RESUME_BYTES"), 5 * 1024 * 1024)
RESUME_WORKERS = _get_int(os.getenv("RESUME_WORKERS"), 2)

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["*"])


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
