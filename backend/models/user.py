"""User model definitions."""

import enum

from sqlalchemy import Column, DateTime, Enum, String

from backend.database import Base, utc_now


class Role(str, enum.Enum):
    ADMIN = 'admin'
    CANDIDATE = 'candidate'


def enum_column(enum_type: type[enum.Enum], **kwargs) -> Column:
    """Store an enum by its value in a plain VARCHAR column."""
    return Column(
        Enum(
            enum_type,
            values_callable=lambda members: [member.value for member in members],
            native_enum=False,
            validate_strings=True,
            length=32,
        ),
        **kwargs,
    )


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = enum_column(Role, nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
