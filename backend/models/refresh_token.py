"""Refresh token model definitions."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String

from backend.database import Base, utc_now


class RefreshToken(Base):
    """Opaque session continuation token; one row per active session."""
    __tablename__ = "refresh_tokens"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    token = Column(String(255), unique=True, index=True, nullable=False)
    expires_at = Column(BigInteger, nullable=False)  # epoch seconds
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
