"""Refresh-token rotation and reconciliation.

Learn: Each account has exactly one valid refresh token, stored on the
account row. There is no token family or rotation chain:

- rotate():    mint a new pair, overwrite the stored refresh token
               (login — the newest session always wins)
- reconcile(): a client presents its refresh token; it must be
               byte-for-byte the stored one, otherwise RefreshMismatch.
               A structurally valid but superseded token is a replay or
               a sign that the account logged out everywhere.
- revoke():    logout — clear the stored token unconditionally

Two concurrent refreshes with the same token would both pass the
equality check and the later write would silently clobber the earlier
one. The swap in reconcile() is therefore a compare-and-swap
(UPDATE ... WHERE refresh_token = :presented); the loser gets
RefreshMismatch. Every other account write is last-write-wins.
"""

import uuid
from typing import Optional

import structlog
from fastapi import Response
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.auth.jwt import REFRESH, TokenError, TokenIssuer, TokenPair, account_id_from_claims
from socialnet.config import Settings
from socialnet.db.models import Account
from socialnet.errors import NotFoundError, RefreshMismatchError, UnauthorizedError

logger = structlog.get_logger()

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


class SessionReconciler:
    """Owns the single-active-refresh-token rule for accounts."""

    def __init__(self, db: AsyncSession, issuer: TokenIssuer):
        self.db = db
        self.issuer = issuer

    async def rotate(self, account_id: uuid.UUID) -> TokenPair:
        """Issue a fresh pair and make its refresh token the only valid one."""
        account = await self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("Account not found while generating tokens")

        pair = self.issuer.issue_pair(account)
        account.refresh_token = pair.refresh_token
        await self.db.commit()
        return pair

    async def reconcile(self, incoming: Optional[str]) -> TokenPair:
        """Exchange a refresh token for a new pair."""
        if not incoming:
            raise UnauthorizedError("Unauthorized request")

        try:
            claims = self.issuer.verify(incoming, REFRESH)
        except TokenError as e:
            raise UnauthorizedError(str(e))

        account = await self.db.get(Account, account_id_from_claims(claims))
        if not account:
            raise UnauthorizedError("Invalid refresh token")

        if incoming != account.refresh_token:
            logger.warning("session.refresh_mismatch", account_id=str(account.id))
            raise RefreshMismatchError()

        pair = self.issuer.issue_pair(account)
        result = await self.db.execute(
            update(Account)
            .where(Account.id == account.id, Account.refresh_token == incoming)
            .values(refresh_token=pair.refresh_token)
        )
        if result.rowcount != 1:
            logger.warning("session.refresh_race_lost", account_id=str(account.id))
            raise RefreshMismatchError()

        await self.db.commit()
        return pair

    async def revoke(self, account_id: uuid.UUID) -> None:
        """Logout: forget the stored refresh token."""
        await self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(refresh_token=None)
        )
        await self.db.commit()


# ─── Cookies ─────────────────────────────────────────────


def set_auth_cookies(response: Response, pair: TokenPair, settings: Settings) -> None:
    for name, value in ((ACCESS_COOKIE, pair.access_token), (REFRESH_COOKIE, pair.refresh_token)):
        response.set_cookie(
            name,
            value,
            max_age=settings.cookie_max_age_seconds,
            path="/",
            httponly=True,
            samesite="strict",
            secure=settings.is_production,
        )


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            samesite="strict",
            secure=settings.is_production,
        )
