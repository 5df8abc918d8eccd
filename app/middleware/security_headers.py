# =============================================================================
# app/middleware/security_headers.py - Security Headers
# =============================================================================
# Adds a fixed set of security headers to every response that passes this
# stage, including rejections produced further down the chain (429, 413).
#
# The content-security-policy starts from a conservative default policy and
# is extended with the third-party sources the front end needs (payments,
# captcha, CDN).
# =============================================================================

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

# -----------------------------------------------------------------------------
# Content-Security-Policy
# -----------------------------------------------------------------------------

DEFAULT_CSP_DIRECTIVES: dict[str, list[str]] = {
    "default-src": ["'self'"],
    "base-uri": ["'self'"],
    "font-src": ["'self'", "https:", "data:"],
    "form-action": ["'self'"],
    "frame-ancestors": ["'self'"],
    "img-src": ["'self'", "data:"],
    "object-src": ["'none'"],
    "script-src": ["'self'"],
    "script-src-attr": ["'none'"],
    "style-src": ["'self'", "https:", "'unsafe-inline'"],
    "upgrade-insecure-requests": [],
}

SITE_CSP_DIRECTIVES: dict[str, list[str]] = {
    "default-src": ["'self'"],
    "script-src": [
        "'self'",
        "https://www.paypal.com",
        "https://www.sandbox.paypal.com",
        "https://www.google.com",
        "https://www.gstatic.com",
        "https://cdn.jsdelivr.net",
        "'unsafe-inline'",
    ],
    "frame-src": [
        "'self'",
        "https://www.paypal.com",
        "https://www.sandbox.paypal.com",
        "https://www.google.com",
        "https://cdn.jsdelivr.net",
    ],
    "img-src": [
        "'self'",
        "data:",
        "https://www.paypalobjects.com",
        "https://www.google.com",
        "https://cdn.jsdelivr.net",
    ],
    "connect-src": [
        "'self'",
        "https://www.paypal.com",
        "https://www.sandbox.paypal.com",
        "https://www.google.com",
        "https://cdn.jsdelivr.net",
    ],
    "object-src": ["'self'", "http://127.0.0.1:3000"],
}


def build_csp(overrides: dict[str, list[str]] | None = None) -> str:
    """
    Merge directive overrides into the defaults and render the header value.

    Example:
        build_csp({"img-src": ["'self'", "data:"]})
        # "default-src 'self';base-uri 'self';...;img-src 'self' data:;..."
    """
    directives = {**DEFAULT_CSP_DIRECTIVES, **(overrides or {})}
    parts = []
    for name, sources in directives.items():
        parts.append(f"{name} {' '.join(sources)}" if sources else name)
    return ";".join(parts)


def default_security_headers(csp: str | None = None) -> dict[str, str]:
    """Headers added to every response."""
    return {
        "Content-Security-Policy": csp or build_csp(SITE_CSP_DIRECTIVES),
        "Cross-Origin-Opener-Policy": "same-origin-allow-popups",
        "Cross-Origin-Resource-Policy": "same-origin",
        "Origin-Agent-Cluster": "?1",
        "Referrer-Policy": "no-referrer",
        "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
        "X-Content-Type-Options": "nosniff",
        "X-DNS-Prefetch-Control": "off",
        "X-Download-Options": "noopen",
        "X-Frame-Options": "DENY",
        "X-Permitted-Cross-Domain-Policies": "none",
        "X-XSS-Protection": "0",
    }


class SecurityHeadersMiddleware:
    """Set security headers on the response start message."""

    def __init__(self, app: ASGIApp, headers: dict[str, str] | None = None):
        self.app = app
        self.headers = headers or default_security_headers()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_wrapper)
