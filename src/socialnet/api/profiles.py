"""Profiles API — the aggregated profile page and profile edits.

Learn: GET /social-media/profile/u/{username} is public but
personalized: get_current_account_optional resolves the viewer when a
valid token is present, so isFollowing can be computed, and silently
falls back to anonymous otherwise.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.api.uploads import read_image
from socialnet.auth.dependencies import (
    get_current_account,
    get_current_account_optional,
    get_storage,
)
from socialnet.config import Settings, get_settings
from socialnet.db.engine import get_db
from socialnet.db.models import Account
from socialnet.schemas.common import ApiResponse, ok
from socialnet.schemas.profile import CoverImageRead, ProfileUpdate, ProfileView
from socialnet.services.profile_service import ProfileService
from socialnet.storage import ObjectStorage

router = APIRouter(prefix="/social-media/profile")


def get_profile_service(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> ProfileService:
    return ProfileService(db, storage)


@router.get("", response_model=ApiResponse[ProfileView])
async def get_my_profile(
    account: Account = Depends(get_current_account),
    svc: ProfileService = Depends(get_profile_service),
):
    profile = await svc.get_profile(account.id, account.id)
    return ok(profile, "User profile fetched successfully")


@router.patch("", response_model=ApiResponse[ProfileView])
async def update_my_profile(
    body: ProfileUpdate,
    account: Account = Depends(get_current_account),
    svc: ProfileService = Depends(get_profile_service),
):
    profile = await svc.update_profile(account.id, body)
    return ok(profile, "User profile updated successfully")


@router.get("/u/{username}", response_model=ApiResponse[ProfileView])
async def get_profile_by_username(
    username: str,
    viewer: Optional[Account] = Depends(get_current_account_optional),
    svc: ProfileService = Depends(get_profile_service),
):
    profile = await svc.get_profile_by_username(username, viewer.id if viewer else None)
    return ok(profile, "User profile fetched successfully")


@router.patch("/cover-image", response_model=ApiResponse[CoverImageRead])
async def update_cover_image(
    cover_image: UploadFile = File(..., alias="coverImage"),
    account: Account = Depends(get_current_account),
    settings: Settings = Depends(get_settings),
    svc: ProfileService = Depends(get_profile_service),
):
    data = await read_image(cover_image, settings)
    stored = await svc.update_cover_image(
        account.id, data, cover_image.filename or "cover", cover_image.content_type
    )
    return ok(CoverImageRead(cover_image=stored), "Cover image updated successfully")
