import re
import uuid

from backend.core.errors import ValidationError

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ''))


def is_valid_password(password: str) -> bool:
    return len(password or '') >= MIN_PASSWORD_LENGTH


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def sanitize(value: str | None) -> str:
    return (value or '').strip()


def parse_uuid(value: str) -> str | None:
    """Return the canonical string form of ``value`` or None if it is not a UUID."""
    try:
        return str(uuid.UUID(value))
    except (TypeError, ValueError, AttributeError):
        return None


def new_id() -> str:
    return str(uuid.uuid4())


def require_uuid(value: str, label: str = 'ID') -> str:
    parsed = parse_uuid(value)
    if parsed is None:
        raise ValidationError(f'invalid {label}')
    return parsed
