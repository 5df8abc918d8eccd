# =============================================================================
# app/middleware/rate_limit.py - Rate Limiting and Slow Down
# =============================================================================
# Two per-client counters backed by the `limits` library (the engine behind
# slowapi), keyed by slowapi's get_remote_address:
#
# - RateLimitMiddleware: fixed window, only for paths under a prefix.
#   The request beyond the limit is rejected with 429.
# - SlowDownMiddleware: fixed window over all paths. Requests beyond the
#   threshold are delayed, never rejected.
#
# Storage defaults to process memory; any `limits` storage URI works
# (e.g. redis://host:6379 when running several workers).
# =============================================================================

import asyncio
import logging
import math
import time

from limits import RateLimitItem, RateLimitItemPerMinute, parse
from limits.aio.strategies import FixedWindowRateLimiter
from limits.storage import storage_from_string
from slowapi.util import get_remote_address
from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import RateLimitExceededError, exception_response

logger = logging.getLogger(__name__)


def create_limiter(storage_uri: str) -> FixedWindowRateLimiter:
    """
    Build an async fixed-window limiter for a storage URI.

    Plain URIs are mapped to their async flavour:
        "memory://" -> "async+memory://"
    """
    if not storage_uri.startswith("async+"):
        storage_uri = f"async+{storage_uri}"
    return FixedWindowRateLimiter(storage_from_string(storage_uri))


def matches_prefix(path: str, prefix: str) -> bool:
    """
    Segment-aware prefix match.

    Example:
        matches_prefix("/u", "/u")          # True
        matches_prefix("/u/settings", "/u") # True
        matches_prefix("/users", "/u")      # False
    """
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


def client_key(scope: Scope) -> str:
    return get_remote_address(Request(scope))


class RateLimitMiddleware:
    """Reject clients that exceed `limit` requests under `prefix`."""

    def __init__(
        self,
        app: ASGIApp,
        prefix: str,
        limit: str,
        message: str,
        storage_uri: str = "memory://",
    ):
        self.app = app
        self.prefix = prefix
        self.item: RateLimitItem = parse(limit)
        self.limit = limit
        self.message = message
        self.limiter = create_limiter(storage_uri)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not matches_prefix(scope["path"], self.prefix):
            await self.app(scope, receive, send)
            return

        key = client_key(scope)
        allowed = await self.limiter.hit(self.item, "ratelimit", self.prefix, key)
        stats = await self.limiter.get_window_stats(self.item, "ratelimit", self.prefix, key)
        headers = {
            "X-RateLimit-Limit": str(self.item.amount),
            "X-RateLimit-Remaining": str(max(stats.remaining, 0)),
            "X-RateLimit-Reset": str(math.ceil(stats.reset_time)),
        }

        if not allowed:
            retry_after = max(math.ceil(stats.reset_time - time.time()), 0)
            logger.warning(f"Rate limit exceeded for {key} on {scope['path']} ({self.limit})")
            response = exception_response(
                RateLimitExceededError(self.message, self.limit, retry_after, headers=headers)
            )
            await response(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                for name, value in headers.items():
                    response_headers[name] = value
            await send(message)

        await self.app(scope, receive, send_wrapper)


class SlowDownMiddleware:
    """Delay each request a client makes beyond `delay_after` in the window."""

    def __init__(
        self,
        app: ASGIApp,
        window_minutes: int,
        delay_after: int,
        delay_ms: int,
        storage_uri: str = "memory://",
    ):
        self.app = app
        self.item = RateLimitItemPerMinute(delay_after, window_minutes)
        self.delay_seconds = delay_ms / 1000
        self.limiter = create_limiter(storage_uri)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.delay_seconds <= 0:
            await self.app(scope, receive, send)
            return

        key = client_key(scope)
        if not await self.limiter.hit(self.item, "slowdown", key):
            logger.debug(f"Slowing down {key} by {self.delay_seconds:.3f}s")
            await asyncio.sleep(self.delay_seconds)

        await self.app(scope, receive, send)
