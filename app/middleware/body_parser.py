# =============================================================================
# app/middleware/body_parser.py - Request Body Parsing
# =============================================================================
# Decodes JSON and URL-encoded bodies into request.state.body, enforcing a
# size limit per content type:
#
#   application/json                   -> JSON_BODY_LIMIT_KB (300 KiB)
#   application/x-www-form-urlencoded  -> FORM_BODY_LIMIT_KB (10 KiB)
#
# Oversize bodies are rejected with 413 (early, from Content-Length, when the
# client declares it) and malformed JSON with 400. Sanitizers registered by
# earlier stages are applied to the decoded value. The raw bytes are replayed
# so downstream handlers can still read the body themselves.
# =============================================================================

import json
import logging
from typing import Any
from urllib.parse import parse_qs

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.exceptions import MalformedBodyError, PayloadTooLargeError, PorticoException, exception_response
from app.middleware.sanitize import SANITIZERS_STATE_KEY, apply_sanitizers

logger = logging.getLogger(__name__)

JSON_TYPES = ("application/json",)
FORM_TYPES = ("application/x-www-form-urlencoded",)


def media_type_of(content_type: str) -> str:
    """Strip parameters: "application/json; charset=utf-8" -> "application/json"."""
    return content_type.split(";", 1)[0].strip().lower()


def is_json_media_type(media_type: str) -> bool:
    return media_type in JSON_TYPES or media_type.endswith("+json")


def parse_form(raw: bytes) -> dict[str, Any]:
    """
    Decode an URL-encoded body, with repeated keys collected into lists.

    Example:
        parse_form(b"a=1&b=2&b=3")  # {"a": "1", "b": ["2", "3"]}
    """
    parsed = parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


def parse_json(raw: bytes) -> Any:
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedBodyError("application/json", str(e)) from e


class BodyParserMiddleware:
    """Parse bounded JSON / form bodies into request state."""

    def __init__(self, app: ASGIApp, json_limit: int, form_limit: int):
        self.app = app
        self.json_limit = json_limit
        self.form_limit = form_limit

    def _limit_for(self, media_type: str) -> int | None:
        if is_json_media_type(media_type):
            return self.json_limit
        if media_type in FORM_TYPES:
            return self.form_limit
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = scope.setdefault("state", {})
        state.setdefault("body", {})

        headers = Headers(scope=scope)
        media_type = media_type_of(headers.get("content-type", ""))
        limit = self._limit_for(media_type)
        if limit is None:
            await self.app(scope, receive, send)
            return

        try:
            raw = await self._read_body(headers, receive, media_type, limit)
            if is_json_media_type(media_type):
                body = parse_json(raw)
            else:
                body = parse_form(raw)
        except PorticoException as e:
            logger.info(f"Rejected {scope['method']} {scope['path']} body: {e.message}")
            await exception_response(e)(scope, receive, send)
            return

        state["body"] = apply_sanitizers(body, state.get(SANITIZERS_STATE_KEY, []))
        await self.app(scope, _replay(raw, receive), send)

    async def _read_body(self, headers: Headers, receive: Receive, media_type: str, limit: int) -> bytes:
        declared = headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > limit:
            raise PayloadTooLargeError(media_type, limit, int(declared))

        chunks = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > limit:
                raise PayloadTooLargeError(media_type, limit, received)
            chunks.append(chunk)
            more_body = message.get("more_body", False)
        return b"".join(chunks)


def _replay(raw: bytes, receive: Receive) -> Receive:
    """A receive callable that yields the buffered body once, then defers."""
    sent = False

    async def replay() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": raw, "more_body": False}
        return await receive()

    return replay
