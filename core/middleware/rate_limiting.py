"""
Redis-backed rate limiting middleware.
Implements a global token bucket shared by every worker process.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ['/health', '/ready']


@dataclass
class RateLimitDecision:
    """Result of taking a token from the bucket."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class TokenBucket:
    """
    Redis-based token bucket rate limiter.

    The bucket holds at most ``capacity`` tokens and is refilled continuously
    at ``rate`` tokens per second. Its state (token count and last refill
    time) lives in a single Redis hash, updated with an optimistic
    WATCH/MULTI transaction so concurrent workers never double-spend a token.
    A rejected request leaves the bucket unchanged.
    """

    def __init__(
        self,
        redis_client: Redis,
        rate: float,
        capacity: int,
        key: str = "ratelimit:global",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize token bucket.

        Args:
            redis_client: Async Redis client instance
            rate: Refill rate in tokens per second
            capacity: Burst size (maximum number of stored tokens)
            key: Redis key holding the bucket state
            clock: Time source in seconds, shared by all workers
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.redis = redis_client
        self.rate = rate
        self.capacity = capacity
        self.key = key
        self._clock = clock
        # Idle buckets expire once they would be full again anyway
        self._ttl = math.ceil(capacity / rate) + 60

    def _refill(self, state: list, now: float) -> float:
        tokens, updated = state
        if tokens is None or updated is None:
            return float(self.capacity)
        elapsed = max(0.0, now - float(updated))
        return min(float(self.capacity), float(tokens) + elapsed * self.rate)

    async def acquire(self, cost: int = 1) -> RateLimitDecision:
        """
        Take ``cost`` tokens if available.

        Raises:
            RedisError: When the bucket state cannot be read or written
        """
        async with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(self.key)
                    now = self._clock()
                    tokens = self._refill(await pipe.hmget(self.key, 'tokens', 'updated'), now)
                    allowed = tokens >= cost
                    if allowed:
                        tokens -= cost

                    pipe.multi()
                    pipe.hset(self.key, mapping={'tokens': tokens, 'updated': now})
                    pipe.expire(self.key, self._ttl)
                    await pipe.execute()
                    break
                except WatchError:
                    # Another worker touched the bucket, re-read and try again
                    continue

        if allowed:
            return RateLimitDecision(
                allowed=True,
                limit=self.capacity,
                remaining=int(tokens),
                retry_after=0,
            )

        return RateLimitDecision(
            allowed=False,
            limit=self.capacity,
            remaining=0,
            retry_after=max(1, math.ceil((cost - tokens) / self.rate)),
        )

    async def reset(self) -> None:
        """Refill the bucket completely."""
        await self.redis.delete(self.key)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests with 429 once the shared token bucket is empty.

    Rejected requests never reach the application, so they have no side
    effects. If Redis is unavailable the middleware fails open.
    """

    def __init__(
        self,
        app: ASGIApp,
        redis_url: Optional[str] = None,
        rate: float = 1.0,
        burst: int = 5,
        key_prefix: str = "ratelimit",
        bucket: Optional[TokenBucket] = None,
        enable_headers: bool = True,
    ):
        """
        Initialize rate limiting middleware.

        Args:
            app: The ASGI application
            redis_url: Redis connection URL (ignored when ``bucket`` is given)
            rate: Refill rate in requests per second
            burst: Maximum burst size
            key_prefix: Prefix for the Redis key
            bucket: Pre-built bucket (overrides redis_url, rate and burst)
            enable_headers: Whether to add rate limit headers to responses
        """
        super().__init__(app)
        if bucket is None and redis_url is None:
            raise ValueError("redis_url is required when no bucket is given")
        self.redis_url = redis_url
        self.rate = rate
        self.burst = burst
        self.key_prefix = key_prefix
        self.bucket = bucket
        self.enable_headers = enable_headers

    def _get_bucket(self) -> TokenBucket:
        """Create the Redis client lazily on first use."""
        if self.bucket is None:
            client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                health_check_interval=30,
            )
            self.bucket = TokenBucket(
                client,
                rate=self.rate,
                capacity=self.burst,
                key=f"{self.key_prefix}:global",
            )
            logger.info("Rate limiter initialized")
        return self.bucket

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if any(request.url.path.startswith(path) for path in EXEMPT_PATHS):
            return await call_next(request)

        try:
            decision = await self._get_bucket().acquire()
        except RedisError as e:
            logger.error(f"Redis error in rate limiter, allowing request: {e}")
            return await call_next(request)

        if not decision.allowed:
            logger.warning(
                f"Rate limit exceeded: {request.method} {request.url.path} "
                f"(retry after {decision.retry_after}s)"
            )
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    'error': {
                        'code': 'RATE_LIMIT_EXCEEDED',
                        'message': 'Too many requests. Please try again later.',
                        'path': request.url.path,
                        'method': request.method,
                        'retry_after': decision.retry_after,
                    }
                },
            )
            response.headers['Retry-After'] = str(decision.retry_after)
            if self.enable_headers:
                self._add_rate_limit_headers(response, decision)
            return response

        response = await call_next(request)

        if self.enable_headers:
            self._add_rate_limit_headers(response, decision)

        return response

    def _add_rate_limit_headers(self, response: Response, decision: RateLimitDecision) -> None:
        response.headers['X-RateLimit-Limit'] = str(decision.limit)
        response.headers['X-RateLimit-Remaining'] = str(decision.remaining)
