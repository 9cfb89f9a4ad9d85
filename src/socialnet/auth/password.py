"""Password hashing utilities (the credential store).

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor comes from settings (bcrypt_rounds, default 12), which
takes ~100ms per hash on modern hardware.

Hashing is CPU-bound, so request handlers use the async wrappers, which
push the work onto the thread pool and keep the event loop free.
"""

import bcrypt
from starlette.concurrency import run_in_threadpool

from socialnet.db.models import Account

DEFAULT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Never raises on a bad hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError, AttributeError):
        return False


async def hash_password_async(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return await run_in_threadpool(hash_password, password, rounds)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(verify_password, password, password_hash)


async def set_password(account: Account, password: str, rounds: int = DEFAULT_ROUNDS) -> None:
    """Hash `password` and store it on the account.

    This is the only writer of Account.password_hash, so a password is
    hashed exactly once per change and never re-hashed on unrelated saves.
    """
    account.password_hash = await hash_password_async(password, rounds)


async def check_password(account: Account, password: str) -> bool:
    return await verify_password_async(password, account.password_hash)
