# =============================================================================
# app/middleware/ - Request Pipeline Stages
# =============================================================================
# Pure ASGI middleware for each stage of the request pipeline:
# - static.py: Serve files from STATIC_DIR before anything else runs
# - access_log.py: One log line per request
# - sanitize.py: Operator-key stripping and markup escaping
# - security_headers.py: CSP, frame, referrer and related headers
# - errors.py: Generic 500 for unexpected errors, inside the header stage
# - rate_limit.py: Prefix rate limiting and global slow down
# - body_parser.py: Bounded JSON / URL-encoded body parsing
# - cookies.py: Cookie header parsing
# - timing.py: Request received timestamp
#
# CORS, sessions and authentication use Starlette's own middleware.
# The order is defined in app/pipeline.py.
# =============================================================================

from .access_log import AccessLogMiddleware
from .body_parser import BodyParserMiddleware
from .cookies import CookieParserMiddleware
from .errors import UnhandledErrorMiddleware
from .rate_limit import RateLimitMiddleware, SlowDownMiddleware
from .sanitize import InjectionSanitizeMiddleware, XSSSanitizeMiddleware
from .security_headers import SecurityHeadersMiddleware
from .static import StaticAssetMiddleware
from .timing import RequestTimestampMiddleware

__all__ = [
    "AccessLogMiddleware",
    "BodyParserMiddleware",
    "CookieParserMiddleware",
    "InjectionSanitizeMiddleware",
    "RateLimitMiddleware",
    "RequestTimestampMiddleware",
    "SecurityHeadersMiddleware",
    "SlowDownMiddleware",
    "StaticAssetMiddleware",
    "UnhandledErrorMiddleware",
    "XSSSanitizeMiddleware",
]
