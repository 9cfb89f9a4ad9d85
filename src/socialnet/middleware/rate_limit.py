"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: Each client IP gets a counter key like
"socialnet:rl:{ip}:{bucket}:{minute}" that expires on its own.
Credential endpoints (login, register, forgot-password) get a stricter
limit to slow down brute-force and mail flooding.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from socialnet.db.redis import get_redis

logger = structlog.get_logger()

STRICT_PATHS = (
    "/api/v1/users/login",
    "/api/v1/users/register",
    "/api/v1/users/forgot-password",
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 300, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        strict = request.url.path.startswith(STRICT_PATHS)
        rpm = self.auth_rpm if strict else self.default_rpm
        bucket = "auth" if strict else "api"
        key = f"socialnet:rl:{client_ip}:{bucket}:{int(time.time() // 60)}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception as e:
            # Redis error: let the request through
            logger.warning("ratelimit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            logger.warning("ratelimit.exceeded", client=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={
                    "statusCode": 429,
                    "message": f"There are too many requests. You are only allowed {rpm} requests per minute",
                    "success": False,
                    "errors": [],
                },
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
