import bcrypt

from backend.core import config

# Hash used when the email is unknown so login takes the same time either way.
_DUMMY_HASH = bcrypt.hashpw(b"timing-equalization", bcrypt.gensalt(rounds=4)).decode("utf-8")


def hash_password(plain: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(hashed: str, plain: str) -> bool:
    """Return True if ``plain`` matches ``hashed``; malformed hashes never match."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def burn_verify(plain: str) -> None:
    verify_password(_DUMMY_HASH, plain)
