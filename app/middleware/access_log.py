# =============================================================================
# app/middleware/access_log.py - Access Logging
# =============================================================================
# Logs one line per request in the compact "dev" format:
#
#   GET /u/profile?tab=1 400 2.314 ms - 612
#
# 5xx responses log at ERROR, 4xx at WARNING, everything else at INFO.
# =============================================================================

import logging
import time

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

access_logger = logging.getLogger("portico.access")


class AccessLogMiddleware:
    """Time each request and log method, url, status, duration and size."""

    def __init__(self, app: ASGIApp, logger: logging.Logger = access_logger):
        self.app = app
        self.logger = logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status_code = 500
        content_length = "-"

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code, content_length
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableHeaders(scope=message)
                content_length = headers.get("content-length", "-")
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.logger.log(
                _level_for(status_code),
                f"{scope['method']} {_original_url(scope)} {status_code} "
                f"{elapsed_ms:.3f} ms - {content_length}",
            )


def _original_url(scope: Scope) -> str:
    path = scope.get("root_path", "") + scope["path"]
    query = scope.get("query_string", b"")
    return f"{path}?{query.decode('latin-1')}" if query else path


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO
