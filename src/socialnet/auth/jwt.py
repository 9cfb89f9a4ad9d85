"""JWT token creation and verification (the token issuer).

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (60min), carries id, username, full name, email
- Refresh token: long-lived (10 days), carries only the account id

Each kind is signed with its own secret, so a refresh token can never
pass as an access token or the other way round. Only one algorithm is
accepted on decode; a token signed with anything else (including "none")
is rejected as a signature failure.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from socialnet.config import Settings
from socialnet.db.models import Account

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token verification fails."""


class MalformedTokenError(TokenError):
    pass


class ExpiredTokenError(TokenError):
    pass


class SignatureInvalidError(TokenError):
    pass


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    """Mints and verifies access and refresh tokens."""

    def __init__(self, settings: Settings):
        self.algorithm = settings.jwt_algorithm
        self._secrets = {
            ACCESS: settings.access_token_secret,
            REFRESH: settings.refresh_token_secret,
        }
        self._lifetimes = {
            ACCESS: timedelta(minutes=settings.access_token_expire_minutes),
            REFRESH: timedelta(days=settings.refresh_token_expire_days),
        }

    def issue_access_token(self, account: Account) -> str:
        """Create a JWT access token."""
        return self._encode(
            ACCESS,
            {
                "sub": str(account.id),
                "username": account.username,
                "fullName": account.full_name,
                "email": account.email,
            },
        )

    def issue_refresh_token(self, account: Account) -> str:
        """Create a JWT refresh token. Carries the account id only."""
        return self._encode(REFRESH, {"sub": str(account.id)})

    def issue_pair(self, account: Account) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(account),
            refresh_token=self.issue_refresh_token(account),
        )

    def verify(self, token: str, kind: str = ACCESS) -> dict:
        """Verify and decode a JWT token of the given kind.

        Returns the claims dict on success.
        Raises a TokenError subclass on failure.
        """
        try:
            claims = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError("Token has expired")
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise SignatureInvalidError(f"Invalid token signature: {e}")
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Invalid token: {e}")

        if claims.get("type") != kind:
            raise MalformedTokenError(f"Invalid token: expected a {kind} token")
        try:
            uuid.UUID(str(claims["sub"]))
        except ValueError:
            raise MalformedTokenError("Invalid token: subject is not an account id")
        return claims

    def _encode(self, kind: str, claims: dict) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "type": kind,
            "jti": uuid.uuid4().hex,  # unique per issuance
            "iat": now,
            "exp": now + self._lifetimes[kind],
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)


def account_id_from_claims(claims: dict) -> uuid.UUID:
    return uuid.UUID(str(claims["sub"]))
