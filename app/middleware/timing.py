# =============================================================================
# app/middleware/timing.py - Request Timestamp
# =============================================================================
# Last stage before routing: stamps request.state.received_at with the time
# (epoch milliseconds) the request reached the application.
# =============================================================================

from starlette.types import ASGIApp, Receive, Scope, Send

from lib.utils import epoch_millis


class RequestTimestampMiddleware:

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            scope.setdefault("state", {})["received_at"] = epoch_millis()
        await self.app(scope, receive, send)
