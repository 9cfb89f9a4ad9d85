"""Follow service — directed follow edges between accounts."""

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, exists, func, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from socialnet.db.models import Account, Follow
from socialnet.errors import NotFoundError, ValidationError
from socialnet.schemas.account import AccountSummary
from socialnet.schemas.profile import FollowList

logger = structlog.get_logger()


class FollowService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def toggle_follow(self, follower_id: uuid.UUID, followee_id: uuid.UUID) -> bool:
        """Follow `followee_id`, or unfollow if already following.

        Returns True when the follower now follows the followee.
        """
        if follower_id == followee_id:
            raise ValidationError("You cannot follow yourself")
        if not await self.db.get(Account, followee_id):
            raise NotFoundError("User does not exist")

        result = await self.db.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id, Follow.followee_id == followee_id
            )
        )
        if result.rowcount:
            await self.db.commit()
            logger.info("follow.removed", follower=str(follower_id), followee=str(followee_id))
            return False

        self.db.add(Follow(follower_id=follower_id, followee_id=followee_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # a concurrent request created the same edge
            await self.db.rollback()
        logger.info("follow.created", follower=str(follower_id), followee=str(followee_id))
        return True

    async def list_followers(
        self, username: str, page: int = 1, limit: int = 10, viewer_id: Optional[uuid.UUID] = None
    ) -> FollowList:
        """Accounts that follow `username`."""
        return await self._list(username, page, limit, viewer_id, followers=True)

    async def list_following(
        self, username: str, page: int = 1, limit: int = 10, viewer_id: Optional[uuid.UUID] = None
    ) -> FollowList:
        """Accounts that `username` follows."""
        return await self._list(username, page, limit, viewer_id, followers=False)

    async def _list(
        self,
        username: str,
        page: int,
        limit: int,
        viewer_id: Optional[uuid.UUID],
        followers: bool,
    ) -> FollowList:
        result = await self.db.execute(
            select(Account.id).where(Account.username == username.strip().lower())
        )
        account_id = result.scalar_one_or_none()
        if account_id is None:
            raise NotFoundError("User doesn't exist")

        if followers:
            match, other = Follow.followee_id, Follow.follower_id
        else:
            match, other = Follow.follower_id, Follow.followee_id

        total = (
            await self.db.execute(select(func.count(Follow.id)).where(match == account_id))
        ).scalar_one()

        if viewer_id is not None:
            viewer_edge = aliased(Follow)
            is_following = (
                exists()
                .where(viewer_edge.follower_id == viewer_id, viewer_edge.followee_id == Account.id)
                .label("is_following")
            )
        else:
            is_following = literal(False).label("is_following")

        q = (
            select(Account, is_following)
            .join(Follow, other == Account.id)
            .where(match == account_id)
            .order_by(Follow.created_at.desc(), Follow.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        rows = (await self.db.execute(q)).all()

        return FollowList(
            accounts=[
                AccountSummary(
                    id=a.id,
                    username=a.username,
                    full_name=a.full_name,
                    avatar_url=a.avatar_url,
                    is_following=bool(flag),
                )
                for a, flag in rows
            ],
            total=total,
            page=page,
            limit=limit,
            has_next_page=page * limit < total,
        )
