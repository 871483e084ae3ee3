"""Shared Redis client for the rate limiter, leaderboard cache and badge broadcasts.

Redis is optional for the rewards engine: every caller either asks for
``get_optional_redis()`` and skips its Redis step on None, or catches the
RuntimeError from ``get_redis()``.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20, timeout_seconds: float = 2.0) -> None:
    """Create the client. No connection is opened until the first command."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """The shared client. Raises RuntimeError before init_redis()."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


def get_optional_redis() -> redis.Redis | None:
    """FastAPI dependency: the client, or None when Redis is not configured."""
    return _client


async def redis_status() -> str:
    """Readiness value: "ok" or "unavailable: <reason>"."""
    try:
        await get_redis().ping()
    except (RuntimeError, RedisError) as exc:
        return f"unavailable: {exc}"
    return "ok"
