# =============================================================================
# app/middleware/cookies.py - Cookie Parsing
# =============================================================================
# Parses the Cookie header into request.state.cookies. Values written with a
# "j:" prefix are JSON-encoded objects and are decoded; a value that fails to
# decode is kept as the raw string.
# =============================================================================

import json
from typing import Any

from starlette.datastructures import Headers
from starlette.requests import cookie_parser
from starlette.types import ASGIApp, Receive, Scope, Send

JSON_COOKIE_PREFIX = "j:"


def decode_cookie_value(value: str) -> Any:
    """
    Decode a single cookie value.

    Example:
        decode_cookie_value('j:{"theme": "dark"}')  # {"theme": "dark"}
        decode_cookie_value("plain")                # "plain"
    """
    if not value.startswith(JSON_COOKIE_PREFIX):
        return value
    try:
        return json.loads(value[len(JSON_COOKIE_PREFIX):])
    except json.JSONDecodeError:
        return value


def parse_cookies(cookie_header: str) -> dict[str, Any]:
    return {name: decode_cookie_value(value) for name, value in cookie_parser(cookie_header).items()}


class CookieParserMiddleware:
    """Expose parsed cookies on request.state.cookies."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket"):
            cookie_header = Headers(scope=scope).get("cookie", "")
            scope.setdefault("state", {})["cookies"] = parse_cookies(cookie_header)
        await self.app(scope, receive, send)
