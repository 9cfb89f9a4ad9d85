"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror these definitions.

Key concepts:
- UUID primary keys via the portable Uuid type (native on PostgreSQL)
- Account is the aggregate root for every credential: refresh token and
  the two ephemeral token (hash, expiry) pairs live on the row itself
- Only hashes of ephemeral tokens are stored, never the client value
"""

import enum
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

DEFAULT_AVATAR_URL = "https://via.placeholder.com/200x200.png"
DEFAULT_COVER_IMAGE_URL = "https://via.placeholder.com/1500x500"


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


# ══════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════


class Account(Base):
    """A registered user and every credential attached to them.

    Learn: Username and email are stored normalized (trimmed, lowercase),
    so the unique constraints are effectively case-insensitive.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    username: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=10),
        nullable=False,
        default=UserRole.USER,
    )
    is_email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    avatar_url: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_AVATAR_URL)
    avatar_provider_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Single active refresh token; replaced on every rotation, cleared on logout
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # SHA-256 hex digests of the client-facing tokens
    email_verification_token: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    email_verification_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    forgot_password_token: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    forgot_password_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Profile(Base):
    """Public profile, one per account.

    Created in the same transaction as its account and deleted with it.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    bio: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    dob: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    location: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    website: Mapped[str] = mapped_column(Text, nullable=False, default="")
    country_code: Mapped[str] = mapped_column(String(8), nullable=False, default="")
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    social_links: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    interests: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    cover_image_url: Mapped[str] = mapped_column(
        Text, nullable=False, default=DEFAULT_COVER_IMAGE_URL
    )
    cover_image_provider_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Social graph
# ══════════════════════════════════════════════════════════════


class Follow(Base):
    """Directed follow edge: follower_id follows followee_id."""

    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "followee_id", name="uq_follows_pair"),
        Index("idx_follows_followee", "followee_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=new_uuid)
    follower_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    followee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
