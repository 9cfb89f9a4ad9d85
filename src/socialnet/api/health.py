"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and its
dependencies are reachable. The database goes through the same get_db
dependency as every other route; Redis is optional (rate limiting only),
so "not configured" is reported but does not degrade the status.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from socialnet import __version__
from socialnet.db.engine import get_db
from socialnet.db.redis import get_redis
from socialnet.schemas.common import ok

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except RuntimeError:
        checks["redis"] = "not configured"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    healthy = checks["database"] == "ok" and not checks["redis"].startswith("error")
    status = "healthy" if healthy else "degraded"

    return ok({"status": status, **checks}, "Health check passed" if healthy else "Health check degraded")
