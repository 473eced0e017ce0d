"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Fixed window per client, starting at the client's first request.
- Client identity comes from the first X-Forwarded-For entry, then
  X-Real-IP. Requests carrying neither share a single "unknown" budget.
"""

from __future__ import annotations

import hashlib
import logging
import math

from fastapi import Request

from code_commenter.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from code_commenter.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from code_commenter.core.config import settings
from code_commenter.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_max_keys,
        settings.app.rate_limit_sweep_interval_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            max_keys=settings.app.rate_limit_max_keys,
            sweep_interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
        )
        _limiter_config = config

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next request starts from a clean table."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def get_client_id(request: Request) -> str:
    """Derive the client identifier for rate limiting.

    Args:
        request: FastAPI request.

    Returns:
        First X-Forwarded-For address, else X-Real-IP, else "unknown".
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build the X-RateLimit-* and Retry-After headers for a refused request."""

    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_at)),
    }


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing rate limits.

    When enabled, consumes 1 unit from the requester's budget.

    Raises:
        RateLimitAppError: When the client exhausted its window (→ 429).
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter()
    client_id = get_client_id(request)
    key = f"ip:{client_id}"
    key_hash = _hash_limiter_key(key)

    result = limiter.check(key)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": settings.app.rate_limit_window_seconds,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "unknown_client": client_id == UNKNOWN_CLIENT,
            "limit": result.limit,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers = None
    if settings.app.rate_limit_include_headers:
        headers = build_rate_limit_headers(result)

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=f"Too many requests. Please try again in {retry_after} seconds.",
        details={"retry_after": retry_after},
        headers=headers,
    )
