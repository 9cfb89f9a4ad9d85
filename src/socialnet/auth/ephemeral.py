"""Single-use tokens for email verification and password reset.

Learn: Same shape as API keys — the client gets a random value once,
the database only ever sees its SHA-256 digest:

    client token  ──sha256──▶  stored hash (+ absolute expiry)

To verify, hash what the client presents and look for an account whose
stored hash matches and whose expiry is still in the future. Consuming
a token clears the pair with a conditional UPDATE on the stored hash,
so of two concurrent presentations exactly one succeeds.

The two purposes use separate columns on Account and never
cross-validate: a reset token can't verify an email and vice versa.
"""

import enum
import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.config import Settings
from socialnet.db.models import Account


class TokenPurpose(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


# purpose → (hash column, expiry column) on Account
_COLUMNS = {
    TokenPurpose.EMAIL_VERIFICATION: ("email_verification_token", "email_verification_expiry"),
    TokenPurpose.PASSWORD_RESET: ("forgot_password_token", "forgot_password_expiry"),
}


@dataclass(frozen=True)
class EphemeralToken:
    client_token: str  # goes into the email, never stored or logged
    stored_hash: str
    expires_at: datetime

    def __repr__(self) -> str:
        return f"EphemeralToken(stored_hash={self.stored_hash[:8]}..., expires_at={self.expires_at})"


def hash_token(client_token: str) -> str:
    return hashlib.sha256(client_token.encode("utf-8")).hexdigest()


class EphemeralTokenManager:
    """Issues, attaches, looks up and consumes single-use tokens."""

    def __init__(self, settings: Settings):
        self.ttl = timedelta(minutes=settings.ephemeral_token_ttl_minutes)

    def issue(self) -> EphemeralToken:
        client_token = secrets.token_urlsafe(32)
        return EphemeralToken(
            client_token=client_token,
            stored_hash=hash_token(client_token),
            expires_at=datetime.now(timezone.utc) + self.ttl,
        )

    def attach(self, account: Account, purpose: TokenPurpose, token: EphemeralToken) -> None:
        """Store the token's hash and expiry on the account (replaces any earlier one)."""
        hash_col, expiry_col = _COLUMNS[purpose]
        setattr(account, hash_col, token.stored_hash)
        setattr(account, expiry_col, token.expires_at)

    async def consume(
        self,
        db: AsyncSession,
        account: Account,
        purpose: TokenPurpose,
        client_token: str,
    ) -> bool:
        """Clear the token pair only if it still holds this token's hash.

        Returns False when another request consumed it first; the caller
        must treat that as an invalid token.
        """
        hash_col, expiry_col = _COLUMNS[purpose]
        result = await db.execute(
            update(Account)
            .where(
                Account.id == account.id,
                getattr(Account, hash_col) == hash_token(client_token),
            )
            .values({hash_col: None, expiry_col: None})
        )
        return result.rowcount == 1

    async def find_account(
        self,
        db: AsyncSession,
        purpose: TokenPurpose,
        client_token: str,
    ) -> Optional[Account]:
        """Return the account holding a live token for `purpose`, if any."""
        if not client_token:
            return None
        hash_col, expiry_col = _COLUMNS[purpose]
        q = select(Account).where(
            getattr(Account, hash_col) == hash_token(client_token),
            getattr(Account, expiry_col) > datetime.now(timezone.utc),
        )
        result = await db.execute(q)
        return result.scalars().first()
