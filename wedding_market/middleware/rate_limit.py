"""
Request limits (slowapi)

Two tiers: a ceiling shared by every client (RATE_LIMIT_GLOBAL) and
per-client limits keyed by remote address (defaults plus per-endpoint
decorators). Counters live in Redis when RATE_LIMIT_STORAGE_URI points at a
reachable server, otherwise in process memory.
"""
import logging

import redis
from fastapi import Depends, Request, status
from fastapi.responses import JSONResponse
from limits import parse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from wedding_market.config import Settings, get_settings, settings
from wedding_market.exceptions import TooManyRequests

logger = logging.getLogger(__name__)

GLOBAL_KEY = "rate_limit:global"


def resolve_storage_uri(storage_uri: str) -> str:
    """Memory storage is per-process: limits are only approximate behind several workers"""
    if not storage_uri.startswith("redis"):
        return storage_uri
    try:
        redis.from_url(storage_uri, socket_connect_timeout=2, socket_timeout=2).ping()
    except redis.RedisError as e:
        logger.warning(f"Rate limit storage {storage_uri} unreachable ({e}), counting in memory")
        return "memory://"
    return storage_uri


def get_rate_limit_key(request: Request) -> str:
    return f"rate_limit:ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_rate_limit_key,
    storage_uri=resolve_storage_uri(settings.RATE_LIMIT_STORAGE_URI) if settings.RATE_LIMIT_ENABLED else "memory://",
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute", f"{settings.RATE_LIMIT_PER_HOUR}/hour"],
    application_limits=[settings.RATE_LIMIT_GLOBAL],
    headers_enabled=True,  # X-RateLimit-* on every limited response
    enabled=settings.RATE_LIMIT_ENABLED
)


def enforce_global_limit(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """
    App-wide dependency: one counter for all clients together

    slowapi keys application_limits by client address, so the shared bucket
    is hit here, on the limiter's own storage, for every route.
    """
    active = request.app.state.limiter
    if not active.enabled:
        return
    if not active.limiter.hit(parse(settings.RATE_LIMIT_GLOBAL), GLOBAL_KEY):
        logger.warning(f"Global rate limit {settings.RATE_LIMIT_GLOBAL} reached on {request.method} {request.url.path}")
        raise TooManyRequests(f"Server is busy. Limit: {settings.RATE_LIMIT_GLOBAL}")


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """429 in the common error envelope, with the limit headers attached"""
    logger.warning(f"Rate limit hit by {get_remote_address(request)} on {request.method} {request.url.path}")
    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": "TooManyRequests", "message": f"Too many requests. Limit: {exc.detail}"}
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)
