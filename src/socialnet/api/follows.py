"""Follows API — follow/unfollow toggle and paginated follower lists."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.auth.dependencies import get_current_account, get_current_account_optional
from socialnet.db.engine import get_db
from socialnet.db.models import Account
from socialnet.schemas.common import ApiResponse, ok
from socialnet.schemas.profile import FollowList, FollowToggleRead
from socialnet.services.follow_service import FollowService

router = APIRouter(prefix="/social-media/follow")


def get_follow_service(db: AsyncSession = Depends(get_db)) -> FollowService:
    return FollowService(db)


@router.post("/{account_id}", response_model=ApiResponse[FollowToggleRead])
async def follow_unfollow(
    account_id: uuid.UUID,
    account: Account = Depends(get_current_account),
    svc: FollowService = Depends(get_follow_service),
):
    """Follow the account, or unfollow it if already following."""
    following = await svc.toggle_follow(account.id, account_id)
    message = "Followed successfully" if following else "Un-followed successfully"
    return ok(FollowToggleRead(following=following), message)


@router.get("/list/followers/{username}", response_model=ApiResponse[FollowList])
async def list_followers(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    viewer: Optional[Account] = Depends(get_current_account_optional),
    svc: FollowService = Depends(get_follow_service),
):
    result = await svc.list_followers(username, page, limit, viewer.id if viewer else None)
    return ok(result, "Followers list fetched successfully")


@router.get("/list/following/{username}", response_model=ApiResponse[FollowList])
async def list_following(
    username: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    viewer: Optional[Account] = Depends(get_current_account_optional),
    svc: FollowService = Depends(get_follow_service),
):
    result = await svc.list_following(username, page, limit, viewer.id if viewer else None)
    return ok(result, "Following list fetched successfully")
