# =============================================================================
# app/middleware/errors.py - Unhandled Errors Inside the Chain
# =============================================================================
# Starlette renders handlers for Exception/500 in its outermost error
# middleware, above every stage of the pipeline, so those responses would
# skip the security headers and the access log. This stage sits directly
# below SecurityHeadersMiddleware and turns unexpected exceptions into the
# generic 500 body there instead.
#
# If the response has already started nothing can be rendered; the error is
# re-raised and the server closes the connection.
# =============================================================================

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import unhandled_exception_handler


class UnhandledErrorMiddleware:

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            response = await unhandled_exception_handler(Request(scope), exc)
            await response(scope, receive, send)
