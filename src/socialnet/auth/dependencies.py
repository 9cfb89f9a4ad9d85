"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current account from the request.

The access token is read from the `accessToken` cookie first, then from
an `Authorization: Bearer <token>` header. Three entry points:

1. get_current_account — strict: no token or a bad token is a 401
2. get_current_account_optional — soft: for public pages that can be
   personalized; a missing or bad token just means "anonymous"
3. require_roles(...) — strict plus a role check (403 on mismatch)
"""

from typing import Optional

from fastapi import Cookie, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.auth.ephemeral import EphemeralTokenManager
from socialnet.auth.jwt import ACCESS, TokenError, TokenIssuer, account_id_from_claims
from socialnet.auth.sessions import ACCESS_COOKIE
from socialnet.config import Settings, get_settings
from socialnet.db.engine import get_db
from socialnet.db.models import Account, UserRole
from socialnet.errors import ForbiddenError, UnauthorizedError
from socialnet.mail import Mailer
from socialnet.storage import LocalObjectStorage, ObjectStorage


# ─── Collaborators built from settings ──────────────────


def get_token_issuer(settings: Settings = Depends(get_settings)) -> TokenIssuer:
    return TokenIssuer(settings)


def get_ephemeral_tokens(settings: Settings = Depends(get_settings)) -> EphemeralTokenManager:
    return EphemeralTokenManager(settings)


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    return Mailer(settings)


def get_storage(settings: Settings = Depends(get_settings)) -> ObjectStorage:
    return LocalObjectStorage(settings)


# ─── Current account ────────────────────────────────────


def _extract_token(cookie_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
    if cookie_token:
        return cookie_token
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def get_current_account(
    access_cookie: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
    authorization: Optional[str] = Header(None),
    issuer: TokenIssuer = Depends(get_token_issuer),
    db: AsyncSession = Depends(get_db),
) -> Account:
    """Resolve the current account (required — 401 if no valid token)."""
    token = _extract_token(access_cookie, authorization)
    if not token:
        raise UnauthorizedError("Unauthorized request")

    try:
        claims = issuer.verify(token, ACCESS)
    except TokenError as e:
        raise UnauthorizedError(str(e))

    account = await db.get(Account, account_id_from_claims(claims))
    if not account:
        # Client should call /users/refresh-token if it still holds a refresh token
        raise UnauthorizedError("Invalid access token")
    return account


async def get_current_account_optional(
    access_cookie: Optional[str] = Cookie(None, alias=ACCESS_COOKIE),
    authorization: Optional[str] = Header(None),
    issuer: TokenIssuer = Depends(get_token_issuer),
    db: AsyncSession = Depends(get_db),
) -> Optional[Account]:
    """Resolve the current account if there is one (never rejects)."""
    token = _extract_token(access_cookie, authorization)
    if not token:
        return None

    try:
        claims = issuer.verify(token, ACCESS)
    except TokenError:
        return None

    return await db.get(Account, account_id_from_claims(claims))


def require_roles(*roles: UserRole):
    """Dependency factory: the current account must hold one of `roles`."""

    async def _check(account: Account = Depends(get_current_account)) -> Account:
        if account.role not in roles:
            raise ForbiddenError()
        return account

    return _check
