"""socialnet CLI — run the server, prepare the database, administer accounts.

Usage:
    socialnet serve --reload                 # Run the API with uvicorn
    socialnet init-db                        # Create all tables
    socialnet assign-role alice@x.com ADMIN  # Promote/demote an account
    socialnet profile alice                  # Fetch a public profile over HTTP
    socialnet health                         # Ask a running server how it feels
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url(api_url: Optional[str] = None) -> str:
    return (api_url or os.environ.get("SOCIALNET_API_URL", DEFAULT_API_URL)).rstrip("/")


def _client(api_url: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at a running socialnet server."""
    return httpx.AsyncClient(base_url=_api_url(api_url), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="socialnet")
def main():
    """socialnet — social network backend."""


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: SOCIALNET_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: SOCIALNET_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from socialnet.config import settings

    uvicorn.run(
        "socialnet.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
@click.option("--database-url", default=None, help="Override SOCIALNET_DATABASE_URL")
def init_db(database_url: Optional[str]):
    """Create all tables (development shortcut for `alembic upgrade head`)."""
    _run(_init_db_impl(database_url))
    click.secho("Database initialized", fg="green")


async def _init_db_impl(database_url: Optional[str]):
    from socialnet.config import settings
    from socialnet.db.engine import make_engine
    from socialnet.db.models import Base

    engine = make_engine(database_url or settings.database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# assign-role
# ---------------------------------------------------------------------------


@main.command("assign-role")
@click.argument("identifier")
@click.argument("role", type=click.Choice(["USER", "ADMIN"], case_sensitive=False))
@click.option("--database-url", default=None, help="Override SOCIALNET_DATABASE_URL")
def assign_role(identifier: str, role: str, database_url: Optional[str]):
    """Set the role of the account with this email or username.

    The HTTP route needs an existing ADMIN; this is how the first one is made.
    """
    username = _run(_assign_role_impl(identifier, role.upper(), database_url))
    if username is None:
        _fail(f"no account matches {identifier!r}")
    click.secho(f"{username} is now {role.upper()}", fg="green")


async def _assign_role_impl(identifier: str, role: str, database_url: Optional[str]):
    from sqlalchemy import or_, select
    from sqlalchemy.ext.asyncio import async_sessionmaker

    from socialnet.config import settings
    from socialnet.db.engine import make_engine
    from socialnet.db.models import Account, UserRole

    key = identifier.strip().lower()
    engine = make_engine(database_url or settings.database_url)
    try:
        async with async_sessionmaker(engine, expire_on_commit=False)() as db:
            result = await db.execute(
                select(Account).where(or_(Account.email == key, Account.username == key))
            )
            account = result.scalars().first()
            if account is None:
                return None
            account.role = UserRole(role)
            await db.commit()
            return account.username
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# profile / health (HTTP)
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.option("--api-url", default=None, help="Server URL (or set SOCIALNET_API_URL)")
def profile(username: str, api_url: Optional[str]):
    """Show the public profile of USERNAME."""
    body = _run(_get_json(f"/api/v1/social-media/profile/u/{username}", api_url))
    if not body.get("success"):
        _fail(body.get("message", "request failed"))

    data = body["data"]
    account = data["account"]
    click.secho(f"{account['fullName']} (@{account['username']})", bold=True)
    if data.get("bio"):
        click.echo(data["bio"])
    click.echo(f"Followers: {data['followersCount']}  Following: {data['followingCount']}")


@main.command()
@click.option("--api-url", default=None, help="Server URL (or set SOCIALNET_API_URL)")
def health(api_url: Optional[str]):
    """Print the server health report."""
    body = _run(_get_json("/api/v1/health", api_url))
    click.echo(_pretty_json(body.get("data") or body))


async def _get_json(path: str, api_url: Optional[str]) -> dict:
    async with _client(api_url) as client:
        try:
            resp = await client.get(path)
        except httpx.HTTPError as e:
            _fail(f"cannot reach {_api_url(api_url)}: {e}")
        return resp.json()


if __name__ == "__main__":
    main()
