# =============================================================================
# app/middleware/sanitize.py - Input Sanitization
# =============================================================================
# Two sanitizers run early in the pipeline:
#
# - strip_operator_keys: drops keys that start with "$" or contain "."
#   (query-operator injection, e.g. ?user[$ne]=x or {"$where": ...}).
#   Bracket segments are checked one by one.
# - escape_markup: replaces "<" with "&lt;" in every string value
#   (reflected cross-site scripting)
#
# At their position in the chain only the query string is available, so the
# middlewares rewrite it there. The body is not read until BodyParserMiddleware
# runs, so each middleware also registers its sanitizer in request state and
# the body parser applies them, in chain order, to the decoded payload.
# =============================================================================

import re
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qsl, urlencode

from starlette.types import ASGIApp, Receive, Scope, Send

# Key in request state holding the registered sanitizers
SANITIZERS_STATE_KEY = "sanitizers"

# Key in request state holding the query string as the client sent it
ORIGINAL_QUERY_STATE_KEY = "original_query_string"

# "$" at the start of the key or of any bracket segment: $gt, user[$ne], a[b][$in]
OPERATOR_SEGMENT = re.compile(r"(?:^|\[)\$")

Sanitizer = Callable[[Any], Any]


# =============================================================================
# Sanitizers
# =============================================================================

def is_operator_key(key: str) -> bool:
    """
    True for keys that could be read as query operators or nested paths.

    Bracket notation counts segment by segment, so "user[$ne]" is an
    operator key just like "$ne".
    """
    return "." in key or OPERATOR_SEGMENT.search(key) is not None


def strip_operator_keys(value: Any) -> Any:
    """
    Recursively drop dict keys that start with "$" or contain ".".

    Example:
        strip_operator_keys({"name": "a", "$gt": 1, "a.b": 2, "tags": [{"$ne": 0}]})
        # {"name": "a", "tags": [{}]}
    """
    if isinstance(value, dict):
        return {
            key: strip_operator_keys(item)
            for key, item in value.items()
            if not (isinstance(key, str) and is_operator_key(key))
        }
    if isinstance(value, list):
        return [strip_operator_keys(item) for item in value]
    return value


def escape_markup(value: Any) -> Any:
    """
    Recursively replace "<" with "&lt;" in strings.

    Keys are left alone; only values are escaped.
    """
    if isinstance(value, str):
        return value.replace("<", "&lt;")
    if isinstance(value, dict):
        return {key: escape_markup(item) for key, item in value.items()}
    if isinstance(value, list):
        return [escape_markup(item) for item in value]
    return value


def apply_sanitizers(value: Any, sanitizers: list[Sanitizer]) -> Any:
    for sanitizer in sanitizers:
        value = sanitizer(value)
    return value


# =============================================================================
# Query String Helpers
# =============================================================================

def sanitize_query_string(query_string: bytes, sanitizer: Sanitizer) -> bytes:
    """Apply a sanitizer to every (key, value) pair of a raw query string."""
    if not query_string:
        return query_string

    pairs = parse_qsl(query_string.decode("latin-1"), keep_blank_values=True)
    cleaned = []
    for key, value in pairs:
        kept = sanitizer({key: value})
        cleaned.extend(kept.items())
    if cleaned == pairs:
        return query_string
    return urlencode(cleaned).encode("latin-1")


# =============================================================================
# Middleware
# =============================================================================

class SanitizeMiddleware:
    """
    Rewrite the query string with a sanitizer and register it for the body.

    The scope is copied before the query string is replaced so that stages
    above this one keep seeing the original URL.
    """

    sanitizer: Sanitizer

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        query_string = scope.get("query_string", b"")
        state.setdefault(ORIGINAL_QUERY_STATE_KEY, query_string)
        state.setdefault(SANITIZERS_STATE_KEY, []).append(self.sanitizer)

        cleaned = sanitize_query_string(query_string, self.sanitizer)
        if cleaned != query_string:
            scope = dict(scope)
            scope["query_string"] = cleaned

        await self.app(scope, receive, send)


class InjectionSanitizeMiddleware(SanitizeMiddleware):
    """Remove operator-style keys from query parameters and the body."""

    sanitizer = staticmethod(strip_operator_keys)


class XSSSanitizeMiddleware(SanitizeMiddleware):
    """Escape markup in query parameter values and the body."""

    sanitizer = staticmethod(escape_markup)
