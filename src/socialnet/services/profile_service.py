"""Profile service — the profile aggregator plus profile edits.

Learn: A profile page needs data from three tables: the profile, the
owning account, and the follow graph (two counts plus "does the viewer
follow this person?"). Instead of N sequential lookups, get_profile()
builds one SELECT:

    SELECT profile.*, account.*,
           (SELECT count(*) FROM follows WHERE follower_id = owner) AS following_count,
           (SELECT count(*) FROM follows WHERE followee_id = owner) AS followers_count,
           EXISTS (SELECT 1 FROM follows
                   WHERE follower_id = :viewer AND followee_id = owner) AS is_following
    FROM profiles JOIN accounts ON accounts.id = profiles.owner_id
    WHERE profiles.owner_id = :target

so counts and the relationship flag come from one consistent snapshot.
The EXISTS column is only added when there is a viewer and the viewer is
not the target; otherwise is_following is False.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.db.models import Account, Follow, Profile
from socialnet.errors import InternalError, NotFoundError
from socialnet.schemas.account import StoredImage
from socialnet.schemas.profile import ProfileAccount, ProfileUpdate, ProfileView
from socialnet.storage import ObjectStorage, StorageError

logger = structlog.get_logger()


class ProfileService:
    """Business logic for profiles."""

    def __init__(self, db: AsyncSession, storage: Optional[ObjectStorage] = None):
        self.db = db
        self.storage = storage

    # ─── Aggregation ────────────────────────────────────

    async def get_profile(
        self,
        target_id: uuid.UUID,
        viewer_id: Optional[uuid.UUID] = None,
    ) -> ProfileView:
        """Aggregate a profile for display. Raises NotFoundError if missing."""
        following_count = (
            select(func.count(Follow.id))
            .where(Follow.follower_id == Profile.owner_id)
            .correlate(Profile)
            .scalar_subquery()
        )
        followers_count = (
            select(func.count(Follow.id))
            .where(Follow.followee_id == Profile.owner_id)
            .correlate(Profile)
            .scalar_subquery()
        )
        columns = [
            Profile,
            Account,
            following_count.label("following_count"),
            followers_count.label("followers_count"),
        ]

        check_relation = viewer_id is not None and viewer_id != target_id
        if check_relation:
            columns.append(
                exists()
                .where(Follow.follower_id == viewer_id, Follow.followee_id == Profile.owner_id)
                .correlate(Profile)
                .label("is_following")
            )

        q = (
            select(*columns)
            .join(Account, Account.id == Profile.owner_id)
            .where(Profile.owner_id == target_id)
        )
        row = (await self.db.execute(q)).first()
        if row is None:
            raise NotFoundError("User profile does not exist")

        profile, account = row.Profile, row.Account
        return ProfileView(
            id=profile.id,
            owner=profile.owner_id,
            bio=profile.bio,
            dob=profile.dob,
            location=profile.location,
            website=profile.website,
            country_code=profile.country_code,
            phone_number=profile.phone_number,
            social_links=profile.social_links or {},
            interests=profile.interests or [],
            cover_image=StoredImage(
                url=profile.cover_image_url, provider_id=profile.cover_image_provider_id
            ),
            account=ProfileAccount(
                full_name=account.full_name,
                avatar=StoredImage(url=account.avatar_url, provider_id=account.avatar_provider_id),
                username=account.username,
                email=account.email,
                is_email_verified=account.is_email_verified,
            ),
            following_count=row.following_count,
            followers_count=row.followers_count,
            is_following=bool(row.is_following) if check_relation else False,
        )

    async def get_profile_by_username(
        self,
        username: str,
        viewer_id: Optional[uuid.UUID] = None,
    ) -> ProfileView:
        result = await self.db.execute(
            select(Account.id).where(Account.username == username.strip().lower())
        )
        account_id = result.scalar_one_or_none()
        if account_id is None:
            raise NotFoundError("User doesn't exist")
        return await self.get_profile(account_id, viewer_id)

    # ─── Edits ──────────────────────────────────────────

    async def _own_profile(self, account_id: uuid.UUID) -> Profile:
        result = await self.db.execute(select(Profile).where(Profile.owner_id == account_id))
        profile = result.scalars().first()
        if not profile:
            raise NotFoundError("Profile does not exist")
        return profile

    async def update_profile(self, account_id: uuid.UUID, changes: ProfileUpdate) -> ProfileView:
        profile = await self._own_profile(account_id)

        fields = changes.model_dump(exclude_unset=True)
        if "social_links" in fields:
            # merge so a partial update keeps the links that weren't sent
            links = dict(profile.social_links or {})
            links.update({k: v for k, v in (fields.pop("social_links") or {}).items() if v is not None})
            profile.social_links = links
        for name, value in fields.items():
            setattr(profile, name, value)

        await self.db.commit()
        logger.info("profile.updated", account_id=str(account_id), fields=sorted(fields))
        return await self.get_profile(account_id, account_id)

    async def update_cover_image(
        self,
        account_id: uuid.UUID,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> StoredImage:
        profile = await self._own_profile(account_id)

        try:
            stored = await self.storage.upload(data, filename, content_type)
        except StorageError:
            raise InternalError("Error uploading cover image")

        previous = profile.cover_image_provider_id
        profile.cover_image_url = stored.url
        profile.cover_image_provider_id = stored.provider_id
        await self.db.commit()

        if previous:
            await self.storage.delete(previous)
        return StoredImage(url=stored.url, provider_id=stored.provider_id)
