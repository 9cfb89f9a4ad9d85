"""Pydantic schemas for accounts and credentials.

Learn: Separate request schemas (input) from read schemas (output).
Read schemas never expose the password hash, the refresh token or the
ephemeral token hashes. Usernames and emails are normalized (trimmed,
lowercased) during validation, so uniqueness is case-insensitive.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from socialnet.db.models import UserRole
from socialnet.schemas.common import CamelModel

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
USERNAME_PATTERN = r"^[a-z0-9_.-]+$"


def normalize(value: str) -> str:
    return value.strip().lower()


# ─── Requests ────────────────────────────────────────────


class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=20, pattern=USERNAME_PATTERN)
    full_name: str = Field(..., min_length=4, max_length=50)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)

    @field_validator("username", mode="before")
    @classmethod
    def _normalize_username(cls, v):
        return normalize(v) if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return normalize(v) if isinstance(v, str) else v


class LoginRequest(CamelModel):
    identifier: str = Field(..., min_length=1, description="Email or username")
    password: str = Field(..., min_length=1)

    @field_validator("identifier", mode="before")
    @classmethod
    def _normalize_identifier(cls, v):
        return normalize(v) if isinstance(v, str) else v


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return normalize(v) if isinstance(v, str) else v


class ResetPasswordRequest(CamelModel):
    new_password: str = Field(..., min_length=6)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class AssignRoleRequest(CamelModel):
    role: UserRole


# ─── Responses ───────────────────────────────────────────


class StoredImage(CamelModel):
    url: str
    provider_id: Optional[str] = None


class AccountRead(CamelModel):
    id: uuid.UUID
    username: str
    full_name: str
    email: str
    role: UserRole
    is_email_verified: bool
    avatar: StoredImage
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_account(cls, account) -> "AccountRead":
        return cls(
            id=account.id,
            username=account.username,
            full_name=account.full_name,
            email=account.email,
            role=account.role,
            is_email_verified=account.is_email_verified,
            avatar=StoredImage(url=account.avatar_url, provider_id=account.avatar_provider_id),
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class AccountSummary(CamelModel):
    """Public subset of an account, used in follower lists."""
    id: uuid.UUID
    username: str
    full_name: str
    avatar_url: str
    is_following: bool = False


class TokenPairRead(CamelModel):
    access_token: str
    refresh_token: str


class LoginRead(TokenPairRead):
    user: AccountRead
