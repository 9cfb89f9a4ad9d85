"""Users API — registration, login, sessions and the credential lifecycle.

Learn: Routes for the account and its tokens:
- POST /users/register → create an unverified account + empty profile
- POST /users/login → email-or-username/password → cookies + tokens
- POST /users/logout → clear stored refresh token and cookies
- GET /users/verify-email/{token} → consume the verification token
- POST /users/refresh-token → rotate the refresh token (cookie or body)
- POST /users/forgot-password → mail a one-time reset link
- POST /users/reset-password/{token} → consume the reset token
- POST /users/change-password → current + new password
- POST /users/assign-role/{account_id} → ADMIN only
- GET /users/current-user, PATCH /users/avatar

Tokens travel both as httpOnly cookies (browsers) and in the response
body (mobile/CLI clients). Cookies are only written after the service
call succeeded, so a failed login or refresh never touches them.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, File, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet.api.uploads import read_image
from socialnet.auth.dependencies import (
    get_current_account,
    get_ephemeral_tokens,
    get_mailer,
    get_storage,
    get_token_issuer,
    require_roles,
)
from socialnet.auth.ephemeral import EphemeralTokenManager
from socialnet.auth.jwt import TokenIssuer
from socialnet.auth.sessions import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from socialnet.config import Settings, get_settings
from socialnet.db.engine import get_db
from socialnet.db.models import Account, UserRole
from socialnet.mail import Mailer
from socialnet.schemas.account import (
    AccountRead,
    AssignRoleRequest,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRead,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPairRead,
)
from socialnet.schemas.common import ApiResponse, ok
from socialnet.services.account_service import AccountService
from socialnet.storage import ObjectStorage

router = APIRouter(prefix="/users")


def get_account_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    issuer: TokenIssuer = Depends(get_token_issuer),
    ephemeral: EphemeralTokenManager = Depends(get_ephemeral_tokens),
    mailer: Mailer = Depends(get_mailer),
    storage: ObjectStorage = Depends(get_storage),
) -> AccountService:
    return AccountService(db, settings, issuer, ephemeral, mailer, storage)


# ─── Register / verify ──────────────────────────────────


@router.post("/register", response_model=ApiResponse[AccountRead], status_code=201)
async def register(body: RegisterRequest, svc: AccountService = Depends(get_account_service)):
    """Create a new account. A verification link is mailed to the address."""
    account = await svc.register(body.username, body.full_name, body.email, body.password)
    return ok(
        AccountRead.from_account(account),
        "Users registered successfully and verification email has been sent on your email.",
        status_code=201,
    )


@router.get("/verify-email/{token}", response_model=ApiResponse[dict])
async def verify_email(token: str, svc: AccountService = Depends(get_account_service)):
    await svc.verify_email(token)
    return ok({"isEmailVerified": True}, "Email is verified")


@router.post("/resend-email-verification", response_model=ApiResponse[dict])
async def resend_email_verification(
    account: Account = Depends(get_current_account),
    svc: AccountService = Depends(get_account_service),
):
    await svc.resend_email_verification(account.id)
    return ok({}, "Mail has been sent to your mail ID")


# ─── Sessions ───────────────────────────────────────────


@router.post("/login", response_model=ApiResponse[LoginRead])
async def login(
    body: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
    svc: AccountService = Depends(get_account_service),
):
    """Login with email or username → cookies + token pair."""
    account, pair = await svc.login(body.identifier, body.password)
    set_auth_cookies(response, pair, settings)
    return ok(
        LoginRead(
            user=AccountRead.from_account(account),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        ),
        "User logged in successfully",
    )


@router.post("/logout", response_model=ApiResponse[dict])
async def logout(
    response: Response,
    account: Account = Depends(get_current_account),
    settings: Settings = Depends(get_settings),
    svc: AccountService = Depends(get_account_service),
):
    await svc.logout(account.id)
    clear_auth_cookies(response, settings)
    return ok({}, "User logged out")


@router.post("/refresh-token", response_model=ApiResponse[TokenPairRead])
async def refresh_access_token(
    response: Response,
    body: Optional[RefreshRequest] = None,
    refresh_cookie: Optional[str] = Cookie(None, alias=REFRESH_COOKIE),
    settings: Settings = Depends(get_settings),
    svc: AccountService = Depends(get_account_service),
):
    """Exchange the current refresh token for a fresh pair.

    The cookie wins over the body. Each refresh token works once.
    """
    incoming = refresh_cookie or (body.refresh_token if body else None)
    pair = await svc.refresh(incoming)
    set_auth_cookies(response, pair, settings)
    return ok(
        TokenPairRead(access_token=pair.access_token, refresh_token=pair.refresh_token),
        "Access token refreshed",
    )


# ─── Passwords ──────────────────────────────────────────


@router.post("/forgot-password", response_model=ApiResponse[dict])
async def forgot_password(
    body: ForgotPasswordRequest, svc: AccountService = Depends(get_account_service)
):
    await svc.forgot_password(body.email)
    return ok({}, "Password reset mail has been sent on your mail id")


@router.post("/reset-password/{token}", response_model=ApiResponse[dict])
async def reset_forgotten_password(
    token: str,
    body: ResetPasswordRequest,
    svc: AccountService = Depends(get_account_service),
):
    await svc.reset_forgotten_password(token, body.new_password)
    return ok({}, "Password reset successfully")


@router.post("/change-password", response_model=ApiResponse[dict])
async def change_current_password(
    body: ChangePasswordRequest,
    account: Account = Depends(get_current_account),
    svc: AccountService = Depends(get_account_service),
):
    await svc.change_password(account.id, body.current_password, body.new_password)
    return ok({}, "Password changed successfully")


# ─── Roles / current account ────────────────────────────


@router.post("/assign-role/{account_id}", response_model=ApiResponse[dict])
async def assign_role(
    account_id: uuid.UUID,
    body: AssignRoleRequest,
    _admin: Account = Depends(require_roles(UserRole.ADMIN)),
    svc: AccountService = Depends(get_account_service),
):
    await svc.assign_role(account_id, body.role)
    return ok({}, "Role changed for the user")


@router.get("/current-user", response_model=ApiResponse[AccountRead])
async def current_user(account: Account = Depends(get_current_account)):
    return ok(AccountRead.from_account(account), "Current user fetched successfully")


@router.patch("/avatar", response_model=ApiResponse[AccountRead])
async def update_avatar(
    avatar: UploadFile = File(...),
    account: Account = Depends(get_current_account),
    settings: Settings = Depends(get_settings),
    svc: AccountService = Depends(get_account_service),
):
    data = await read_image(avatar, settings)
    updated = await svc.update_avatar(account.id, data, avatar.filename or "avatar", avatar.content_type)
    return ok(AccountRead.from_account(updated), "Avatar updated successfully")
