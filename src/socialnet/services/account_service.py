"""Account service — registration, login and the credential lifecycle.

Learn: Service layer separates business logic from HTTP routing.
Routes handle HTTP concerns (cookies, status codes), this class handles
the rules. Token issuer, ephemeral token manager, mailer and storage are
injected; nothing here reads configuration on its own.

Every operation computes its token values first, attaches them to the
Account, then commits once. Mail goes out after the commit, so a mail
failure can never roll back or fail the request. Consuming a single-use
token is the exception: it is a conditional UPDATE that loses cleanly
to a concurrent request presenting the same token.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.auth.ephemeral import EphemeralTokenManager, TokenPurpose
from socialnet.auth.jwt import TokenIssuer, TokenPair
from socialnet.auth.password import check_password, set_password
from socialnet.auth.sessions import SessionReconciler
from socialnet.config import Settings
from socialnet.db.models import Account, Profile, UserRole
from socialnet.errors import (
    ConflictError,
    InternalError,
    InvalidOrExpiredTokenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from socialnet.mail import Mailer, MailMessage, TemplateKind
from socialnet.storage import ObjectStorage, StorageError

logger = structlog.get_logger()


class AccountService:
    """Business logic for accounts and their credentials."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings,
        issuer: TokenIssuer,
        ephemeral: EphemeralTokenManager,
        mailer: Mailer,
        storage: Optional[ObjectStorage] = None,
    ):
        self.db = db
        self.settings = settings
        self.issuer = issuer
        self.ephemeral = ephemeral
        self.mailer = mailer
        self.storage = storage
        self.sessions = SessionReconciler(db, issuer)

    # ─── Lookups ────────────────────────────────────────

    async def get_account(self, account_id: uuid.UUID) -> Optional[Account]:
        return await self.db.get(Account, account_id)

    async def find_by_identifier(self, identifier: str) -> Optional[Account]:
        """Find an account by (normalized) email or username."""
        result = await self.db.execute(
            select(Account).where(
                or_(Account.email == identifier, Account.username == identifier)
            )
        )
        return result.scalars().first()

    # ─── Registration ───────────────────────────────────

    async def register(
        self,
        username: str,
        full_name: str,
        email: str,
        password: str,
    ) -> Account:
        """Create an unverified account plus its empty profile, send verification mail."""
        result = await self.db.execute(
            select(Account).where(or_(Account.email == email, Account.username == username))
        )
        existing = result.scalars().first()
        if existing:
            field = "email" if existing.email == email else "username"
            raise ConflictError(f"User with this {field} already exists")

        account = Account(
            username=username,
            full_name=full_name,
            email=email,
            role=UserRole.USER,
            is_email_verified=False,
        )
        await set_password(account, password, self.settings.bcrypt_rounds)

        token = self.ephemeral.issue()
        self.ephemeral.attach(account, TokenPurpose.EMAIL_VERIFICATION, token)

        self.db.add(account)
        try:
            await self.db.flush()
            self.db.add(Profile(owner_id=account.id))
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email/username
            await self.db.rollback()
            raise ConflictError("User already exists")

        logger.info("account.registered", account_id=str(account.id))
        await self._send_verification(account, token.client_token)
        return account

    # ─── Login / logout / refresh ───────────────────────

    async def login(self, identifier: str, password: str) -> tuple[Account, TokenPair]:
        account = await self.find_by_identifier(identifier)
        if not account:
            raise NotFoundError("User not found")

        if not await check_password(account, password):
            logger.info("account.login_failed", account_id=str(account.id))
            raise UnauthorizedError("Password is incorrect")

        pair = await self.sessions.rotate(account.id)
        logger.info("account.logged_in", account_id=str(account.id))
        return account, pair

    async def logout(self, account_id: uuid.UUID) -> None:
        await self.sessions.revoke(account_id)
        logger.info("account.logged_out", account_id=str(account_id))

    async def refresh(self, incoming: Optional[str]) -> TokenPair:
        return await self.sessions.reconcile(incoming)

    # ─── Email verification ─────────────────────────────

    async def verify_email(self, client_token: str) -> Account:
        if not client_token:
            raise ValidationError("Email verification token is missing")

        account = await self.ephemeral.find_account(
            self.db, TokenPurpose.EMAIL_VERIFICATION, client_token
        )
        if not account or not await self.ephemeral.consume(
            self.db, account, TokenPurpose.EMAIL_VERIFICATION, client_token
        ):
            raise InvalidOrExpiredTokenError()

        account.is_email_verified = True
        await self.db.commit()
        logger.info("account.email_verified", account_id=str(account.id))
        return account

    async def resend_email_verification(self, account_id: uuid.UUID) -> None:
        account = await self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("User doesn't exist")
        if account.is_email_verified:
            raise ValidationError("Email is already verified")

        token = self.ephemeral.issue()
        self.ephemeral.attach(account, TokenPurpose.EMAIL_VERIFICATION, token)
        await self.db.commit()
        await self._send_verification(account, token.client_token)

    # ─── Passwords ──────────────────────────────────────

    async def forgot_password(self, email: str) -> None:
        result = await self.db.execute(select(Account).where(Account.email == email))
        account = result.scalars().first()
        if not account:
            raise NotFoundError("User with this email does not exist")

        token = self.ephemeral.issue()
        self.ephemeral.attach(account, TokenPurpose.PASSWORD_RESET, token)
        await self.db.commit()

        base = self.settings.forgot_password_redirect_url.rstrip("/")
        await self.mailer.send(
            MailMessage(
                recipient=account.email,
                subject="Password reset request",
                template_kind=TemplateKind.PASSWORD_RESET,
                template_params={
                    "username": account.username,
                    "link": f"{base}/{token.client_token}",
                },
            )
        )

    async def reset_forgotten_password(self, client_token: str, new_password: str) -> None:
        account = await self.ephemeral.find_account(
            self.db, TokenPurpose.PASSWORD_RESET, client_token
        )
        if not account or not await self.ephemeral.consume(
            self.db, account, TokenPurpose.PASSWORD_RESET, client_token
        ):
            raise InvalidOrExpiredTokenError("Invalid reset token or it has expired")

        await set_password(account, new_password, self.settings.bcrypt_rounds)
        await self.db.commit()
        logger.info("account.password_reset", account_id=str(account.id))

    async def change_password(
        self, account_id: uuid.UUID, current_password: str, new_password: str
    ) -> None:
        account = await self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("User doesn't exist")
        if current_password == new_password:
            raise ValidationError("New password cannot be the same as the current password")
        if not await check_password(account, current_password):
            raise UnauthorizedError("Current password is incorrect")

        await set_password(account, new_password, self.settings.bcrypt_rounds)
        await self.db.commit()
        logger.info("account.password_changed", account_id=str(account.id))

    # ─── Roles ──────────────────────────────────────────

    async def assign_role(self, account_id: uuid.UUID, role: UserRole) -> Account:
        account = await self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("User doesn't exist")
        account.role = role
        await self.db.commit()
        logger.info("account.role_assigned", account_id=str(account.id), role=role.value)
        return account

    # ─── Avatar ─────────────────────────────────────────

    async def update_avatar(
        self,
        account_id: uuid.UUID,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> Account:
        account = await self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("User doesn't exist")

        try:
            stored = await self.storage.upload(data, filename, content_type)
        except StorageError:
            raise InternalError("Error uploading avatar")

        previous = account.avatar_provider_id
        account.avatar_url = stored.url
        account.avatar_provider_id = stored.provider_id
        await self.db.commit()

        if previous:
            await self.storage.delete(previous)
        return account

    # ─── Helpers ────────────────────────────────────────

    async def _send_verification(self, account: Account, client_token: str) -> None:
        base = self.settings.public_base_url.rstrip("/")
        await self.mailer.send(
            MailMessage(
                recipient=account.email,
                subject="Email verification",
                template_kind=TemplateKind.EMAIL_VERIFICATION,
                template_params={
                    "username": account.username,
                    "link": f"{base}/api/v1/users/verify-email/{client_token}",
                },
            )
        )
