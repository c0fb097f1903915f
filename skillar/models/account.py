from sqlalchemy import Column, String, DateTime
from datetime import datetime, timezone
from ..database import Base


class Account(Base):
    """Login credentials. Owned by the identity service, separate from the profile."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    revoked_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
