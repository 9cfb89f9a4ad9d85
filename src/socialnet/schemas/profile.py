"""Pydantic schemas for profiles and the follow graph."""

import uuid
from datetime import date
from typing import Optional

from pydantic import Field, field_validator

from socialnet.schemas.account import AccountSummary, StoredImage
from socialnet.schemas.common import CamelModel

URL_PATTERN = r"^https?://.+"


class SocialLinks(CamelModel):
    facebook: Optional[str] = Field(None, pattern=URL_PATTERN)
    twitter: Optional[str] = Field(None, pattern=URL_PATTERN)
    linkedin: Optional[str] = Field(None, pattern=URL_PATTERN)
    github: Optional[str] = Field(None, pattern=URL_PATTERN)


class ProfileUpdate(CamelModel):
    """Partial profile update — only the fields sent are changed."""
    bio: Optional[str] = Field(None, min_length=10, max_length=100)
    dob: Optional[date] = None
    location: Optional[str] = Field(None, min_length=3, max_length=50)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    country_code: Optional[str] = Field(None, max_length=8)
    phone_number: Optional[str] = Field(None, min_length=10, max_length=10, pattern=r"^\d+$")
    social_links: Optional[SocialLinks] = None
    interests: Optional[list[str]] = None

    # dob is the only column that may be cleared; the rest are NOT NULL
    @field_validator(
        "bio", "location", "website", "country_code", "phone_number", "social_links", "interests",
        mode="before",
    )
    @classmethod
    def _reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class ProfileAccount(CamelModel):
    """Account fields shown on a profile page."""
    full_name: str
    avatar: StoredImage
    username: str
    email: str
    is_email_verified: bool


class ProfileView(CamelModel):
    """The aggregated profile: profile + account + follow counts + viewer relation."""
    id: uuid.UUID
    owner: uuid.UUID
    bio: str
    dob: Optional[date] = None
    location: str
    website: str
    country_code: str
    phone_number: str
    social_links: dict
    interests: list[str]
    cover_image: StoredImage
    account: ProfileAccount
    following_count: int
    followers_count: int
    is_following: bool = False


class CoverImageRead(CamelModel):
    cover_image: StoredImage


class FollowToggleRead(CamelModel):
    following: bool


class FollowList(CamelModel):
    accounts: list[AccountSummary]
    total: int
    page: int
    limit: int
    has_next_page: bool
