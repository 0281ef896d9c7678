"""
order_api/core/rate_limiter.py — per-key rate limiting on the `limits` engine
Each RateLimiter owns its own in-memory storage, so two instances never share
buckets. The HTTP limiter lives on app.state and is keyed by client address;
the reminder job owns a second one keyed by a fixed task name.
"""
from __future__ import annotations

from fastapi import HTTPException, Request, status
from limits import RateLimitItem, RateLimitItemPerSecond, parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from loguru import logger
from slowapi.util import get_remote_address


class RateLimiter:
    """
    At most `limit` approvals per key in any `window_seconds` interval.
    allow() never blocks; unseen keys start with the full allowance.
    """

    def __init__(self, limit: int, window_seconds: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._item: RateLimitItem = RateLimitItemPerSecond(limit, window_seconds)
        # MemoryStorage guards each key with its own lock
        self._strategy = MovingWindowRateLimiter(MemoryStorage())

    @classmethod
    def from_string(cls, rate: str) -> "RateLimiter":
        """Build from a slowapi-style rate string such as "100/minute" or "1/day"."""
        item = parse(rate)
        return cls(item.amount, item.get_expiry())

    @property
    def limit(self) -> int:
        return self._item.amount

    @property
    def window_seconds(self) -> int:
        return self._item.get_expiry()

    def allow(self, key: str) -> bool:
        """Consume one permit for `key` if one is available."""
        return self._strategy.hit(self._item, key)

    def __repr__(self) -> str:
        return f"RateLimiter(limit={self.limit}, window_seconds={self.window_seconds})"


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI dependency — per-client throttling
# ──────────────────────────────────────────────────────────────────────────────

async def enforce_rate_limit(request: Request) -> None:
    """Reject the request with 429 once the client's allowance is spent."""
    limiter: RateLimiter = request.app.state.request_limiter
    client = get_remote_address(request)
    if not limiter.allow(client):
        logger.info(f"Rate limit exceeded for {client} on {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
        )
