"""Tests for the token issuer — minting and verifying access/refresh JWTs."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from socialnet.auth.jwt import (
    ACCESS,
    REFRESH,
    ExpiredTokenError,
    MalformedTokenError,
    SignatureInvalidError,
    TokenError,
    TokenIssuer,
    account_id_from_claims,
)
from socialnet.config import Settings
from socialnet.db.models import Account


def _settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "access_token_secret": "test-access-secret",
        "refresh_token_secret": "test-refresh-secret",
    }
    values.update(overrides)
    return Settings(**values)


def _account() -> Account:
    return Account(
        id=uuid.uuid4(),
        username="alice",
        full_name="Alice Liddell",
        email="alice@example.com",
    )


def test_access_token_claims():
    issuer = TokenIssuer(_settings())
    account = _account()
    claims = issuer.verify(issuer.issue_access_token(account), ACCESS)
    assert claims["sub"] == str(account.id)
    assert claims["username"] == "alice"
    assert claims["fullName"] == "Alice Liddell"
    assert claims["email"] == "alice@example.com"
    assert claims["type"] == ACCESS
    assert account_id_from_claims(claims) == account.id


def test_refresh_token_carries_only_the_id():
    issuer = TokenIssuer(_settings())
    account = _account()
    claims = issuer.verify(issuer.issue_refresh_token(account), REFRESH)
    assert claims["sub"] == str(account.id)
    assert "email" not in claims
    assert "username" not in claims


def test_each_issuance_is_unique():
    issuer = TokenIssuer(_settings())
    account = _account()
    assert issuer.issue_refresh_token(account) != issuer.issue_refresh_token(account)


def test_refresh_token_is_not_an_access_token():
    issuer = TokenIssuer(_settings())
    pair = issuer.issue_pair(_account())
    # different secrets, so this is a signature failure
    with pytest.raises(SignatureInvalidError):
        issuer.verify(pair.refresh_token, ACCESS)
    with pytest.raises(SignatureInvalidError):
        issuer.verify(pair.access_token, REFRESH)


def test_wrong_type_with_right_secret_is_rejected():
    settings = _settings()
    now = datetime.now(timezone.utc)
    token = pyjwt.encode(
        {"sub": str(uuid.uuid4()), "type": REFRESH, "iat": now, "exp": now + timedelta(minutes=5)},
        settings.access_token_secret,
        algorithm="HS256",
    )
    with pytest.raises(MalformedTokenError):
        TokenIssuer(settings).verify(token, ACCESS)


def test_expired_token():
    issuer = TokenIssuer(_settings(access_token_expire_minutes=-1))
    token = issuer.issue_access_token(_account())
    with pytest.raises(ExpiredTokenError):
        issuer.verify(token, ACCESS)


def test_token_signed_with_other_secret():
    other = TokenIssuer(
        _settings(access_token_secret="someone-else", refresh_token_secret="someone-else-r")
    )
    token = other.issue_access_token(_account())
    with pytest.raises(SignatureInvalidError):
        TokenIssuer(_settings()).verify(token, ACCESS)


def test_unsigned_token_rejected():
    now = datetime.now(timezone.utc)
    token = pyjwt.encode(
        {"sub": str(uuid.uuid4()), "type": ACCESS, "iat": now, "exp": now + timedelta(minutes=5)},
        None,
        algorithm="none",
    )
    with pytest.raises(TokenError):
        TokenIssuer(_settings()).verify(token, ACCESS)


def _raw_token(settings, **overrides):
    now = datetime.now(timezone.utc)
    payload = {"sub": str(uuid.uuid4()), "type": ACCESS, "iat": now, "exp": now + timedelta(minutes=5)}
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return pyjwt.encode(payload, settings.access_token_secret, algorithm="HS256")


def test_subject_must_be_an_account_id():
    settings = _settings()
    with pytest.raises(MalformedTokenError):
        TokenIssuer(settings).verify(_raw_token(settings, sub="not-a-uuid"), ACCESS)


def test_missing_expiry_is_malformed():
    settings = _settings()
    with pytest.raises(MalformedTokenError):
        TokenIssuer(settings).verify(_raw_token(settings, exp=None), ACCESS)


def test_garbage_is_malformed():
    with pytest.raises(MalformedTokenError):
        TokenIssuer(_settings()).verify("definitely.not.a-jwt", ACCESS)
