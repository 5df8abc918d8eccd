# =============================================================================
# app/middleware/static.py - Static Asset Short-Circuit
# =============================================================================
# First stage of the pipeline. GET/HEAD requests that resolve to a file
# under STATIC_DIR are answered here and never reach the rest of the chain.
# Everything else (other methods, unknown files, directories) falls through.
# =============================================================================

import logging
from pathlib import Path

from starlette.exceptions import HTTPException
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)


class StaticAssetMiddleware:
    """Serve files from a directory before the rest of the middleware runs."""

    def __init__(self, app: ASGIApp, directory: Path):
        self.app = app
        self.directory = Path(directory)
        self.static = StaticFiles(directory=self.directory, check_dir=False)
        if not self.directory.is_dir():
            logger.warning(f"Static directory {self.directory} does not exist; static serving disabled")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in ("GET", "HEAD") or not self.directory.is_dir():
            await self.app(scope, receive, send)
            return

        path = self.static.get_path(scope)
        if not path or path == ".":
            await self.app(scope, receive, send)
            return

        try:
            response = await self.static.get_response(path, scope)
        except HTTPException as e:
            if e.status_code == 404:
                await self.app(scope, receive, send)
                return
            raise

        await response(scope, receive, send)
