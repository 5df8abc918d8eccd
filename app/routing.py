# =============================================================================
# app/routing.py - Route Table with Fallback
# =============================================================================
# Requests that no FastAPI route matched land here. RouteTable walks an
# ordered list of (matcher, handler) entries and hands the request to the
# first handler whose matcher accepts it; if none does, the fallback runs.
#
# Matchers are plain predicates over the Request, so the table does not
# depend on any path pattern syntax:
#
#   table = RouteTable(fallback=render_not_found(templates))
#   table.add(path_prefix("/legacy"), legacy_handler)
#   table.add(all_of(methods("POST"), exact_path("/hook")), hook_handler)
#   app.router.default = table
# =============================================================================

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response
from starlette.types import Receive, Scope, Send
from starlette.websockets import WebSocketClose

from app.middleware.sanitize import ORIGINAL_QUERY_STATE_KEY

logger = logging.getLogger(__name__)

Matcher = Callable[[Request], bool]
Handler = Callable[[Request], Awaitable[Response]]

NOT_FOUND_STATUS = 400
ERROR_TEMPLATE = "errorpage.html"


# =============================================================================
# Matchers
# =============================================================================

def any_request(request: Request) -> bool:
    return True


def exact_path(path: str) -> Matcher:
    def match(request: Request) -> bool:
        return request.url.path == path
    return match


def path_prefix(prefix: str) -> Matcher:
    """Match the prefix itself and anything beneath it, by path segment."""
    prefix = prefix.rstrip("/")

    def match(request: Request) -> bool:
        path = request.url.path
        return not prefix or path == prefix or path.startswith(prefix + "/")
    return match


def methods(*names: str) -> Matcher:
    allowed = {name.upper() for name in names}

    def match(request: Request) -> bool:
        return request.method in allowed
    return match


def all_of(*matchers: Matcher) -> Matcher:
    def match(request: Request) -> bool:
        return all(matcher(request) for matcher in matchers)
    return match


# =============================================================================
# Route Table
# =============================================================================

@dataclass(frozen=True)
class RouteEntry:
    matcher: Matcher
    handler: Handler
    name: str = ""


class RouteTable:
    """
    Ordered (matcher, handler) pairs with a defined fallback.

    The table is an ASGI app, so it can be installed as the router's
    default app for unmatched requests.
    """

    def __init__(self, fallback: Handler):
        self.entries: list[RouteEntry] = []
        self.fallback = fallback

    def add(self, matcher: Matcher, handler: Handler, name: str = "") -> None:
        self.entries.append(RouteEntry(matcher, handler, name or getattr(handler, "__name__", "")))

    def resolve(self, request: Request) -> Handler:
        for entry in self.entries:
            if entry.matcher(request):
                return entry.handler
        return self.fallback

    async def dispatch(self, request: Request) -> Response:
        return await self.resolve(request)(request)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            await WebSocketClose()(scope, receive, send)
            return
        request = Request(scope, receive)
        response = await self.dispatch(request)
        await response(scope, receive, send)


# =============================================================================
# Fallback
# =============================================================================

def original_url(request: Request) -> str:
    """
    Path plus query string, as the client sent it.

    The sanitizers rewrite the query string in the scope, so the copy they
    saved in request state wins over request.url.
    """
    raw = request.scope.get("state", {}).get(ORIGINAL_QUERY_STATE_KEY)
    query = raw.decode("latin-1") if raw is not None else request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def render_not_found(templates: Jinja2Templates) -> Handler:
    """
    Build the catch-all handler.

    Every method and path gets status 400 and the rendered error page
    naming the requested URL.
    """

    async def not_found(request: Request) -> Response:
        url = original_url(request)
        logger.debug(f"No route for {request.method} {url}")
        return templates.TemplateResponse(
            request,
            ERROR_TEMPLATE,
            {
                "data": {
                    "status": NOT_FOUND_STATUS,
                    "message": f"cannot find the path: {url} on this server",
                }
            },
            status_code=NOT_FOUND_STATUS,
        )

    return not_found
