# =============================================================================
# app/pipeline.py - Request Pipeline
# =============================================================================
# The one place that defines the middleware chain and its order.
#
# The list is passed to FastAPI(middleware=...), where the first entry is the
# outermost layer, so requests flow through it top to bottom:
#
#   static assets -> access log -> injection sanitize -> XSS sanitize -> CORS
#   -> security headers -> unhandled errors -> rate limit (prefix) -> slow down
#   -> body parser -> cookie parser -> session -> authentication -> request timestamp
#   -> routes / route table fallback
# =============================================================================

from starlette.middleware import Middleware
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.auth.backend import SessionAuthBackend
from app.config import Settings
from app.middleware import (
    AccessLogMiddleware,
    BodyParserMiddleware,
    CookieParserMiddleware,
    InjectionSanitizeMiddleware,
    RateLimitMiddleware,
    RequestTimestampMiddleware,
    SecurityHeadersMiddleware,
    SlowDownMiddleware,
    StaticAssetMiddleware,
    UnhandledErrorMiddleware,
    XSSSanitizeMiddleware,
)


def build_middleware(settings: Settings) -> list[Middleware]:
    """
    Build the ordered middleware chain from settings.

    Args:
        settings: Validated application settings

    Returns:
        Middleware definitions, outermost first
    """
    return [
        Middleware(StaticAssetMiddleware, directory=settings.STATIC_DIR),
        Middleware(AccessLogMiddleware),
        Middleware(InjectionSanitizeMiddleware),
        Middleware(XSSSanitizeMiddleware),
        Middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials="*" not in settings.cors_origins_list,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(SecurityHeadersMiddleware),
        Middleware(UnhandledErrorMiddleware),
        Middleware(
            RateLimitMiddleware,
            prefix=settings.RATE_LIMIT_PREFIX,
            limit=settings.RATE_LIMIT,
            message=settings.RATE_LIMIT_MESSAGE,
            storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        ),
        Middleware(
            SlowDownMiddleware,
            window_minutes=settings.SLOW_DOWN_WINDOW_MINUTES,
            delay_after=settings.SLOW_DOWN_AFTER,
            delay_ms=settings.SLOW_DOWN_DELAY_MS,
            storage_uri=settings.RATE_LIMIT_STORAGE_URI,
        ),
        Middleware(
            BodyParserMiddleware,
            json_limit=settings.json_body_limit_bytes,
            form_limit=settings.form_body_limit_bytes,
        ),
        Middleware(CookieParserMiddleware),
        Middleware(
            SessionMiddleware,
            secret_key=settings.SESSION_SECRET_KEY,
            session_cookie=settings.SESSION_COOKIE_NAME,
            max_age=settings.session_max_age_seconds,
            https_only=settings.SESSION_HTTPS_ONLY,
        ),
        Middleware(
            AuthenticationMiddleware,
            backend=SessionAuthBackend(settings.JWT_SECRET, settings.JWT_AUDIENCE),
        ),
        Middleware(RequestTimestampMiddleware),
    ]
