# =============================================================================
# app/auth/backend.py - Authentication Backend
# =============================================================================
# Starlette AuthenticationBackend that attaches the current user to every
# request. Sources, in order:
#
# 1. Bearer token (HS256, audience checked) - only when JWT_SECRET is set
# 2. User serialized in the session cookie under "passport" -> "user"
# 3. Anonymous
#
# An invalid or expired token is logged and ignored, so the request is
# treated as anonymous; routes that need a user enforce that themselves
# with get_current_user.
# =============================================================================

import logging
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError
from starlette.authentication import AuthCredentials, AuthenticationBackend, BaseUser
from starlette.requests import HTTPConnection

from app.auth.models import AuthUser, PorticoUser, TokenPayload

logger = logging.getLogger(__name__)

# Session layout: {"passport": {"user": {...AuthUser...}}}
SESSION_AUTH_KEY = "passport"
SESSION_USER_KEY = "user"


def decode_bearer_token(token: str, secret: str, audience: str) -> AuthUser | None:
    """
    Verify a bearer token and return the user it names.

    Returns None (and logs why) when the token is unusable.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=["HS256"], audience=audience)
        claims = TokenPayload(**payload)
    except ExpiredSignatureError:
        logger.warning("Bearer token has expired")
        return None
    except JWTError as e:
        logger.warning(f"Bearer token validation failed: {e}")
        return None
    except ValidationError as e:
        logger.warning(f"Bearer token missing required claims: {e.error_count()} error(s)")
        return None

    return AuthUser(id=claims.sub, email=claims.email, name=claims.name)


def deserialize_session_user(session: dict[str, Any]) -> AuthUser | None:
    """Rebuild the user stored in the session, if any."""
    data = (session.get(SESSION_AUTH_KEY) or {}).get(SESSION_USER_KEY)
    if not data:
        return None
    try:
        return AuthUser(**data)
    except (TypeError, ValidationError):
        logger.warning("Discarding malformed user in session")
        return None


class SessionAuthBackend(AuthenticationBackend):
    """Resolve the request user from a bearer token or the session."""

    def __init__(self, jwt_secret: str | None = None, audience: str = "authenticated"):
        self.jwt_secret = jwt_secret
        self.audience = audience

    async def authenticate(self, conn: HTTPConnection) -> tuple[AuthCredentials, BaseUser] | None:
        if self.jwt_secret:
            scheme, _, token = conn.headers.get("authorization", "").partition(" ")
            if scheme.lower() == "bearer" and token:
                user = decode_bearer_token(token.strip(), self.jwt_secret, self.audience)
                if user is not None:
                    return AuthCredentials(["authenticated"]), PorticoUser(user, source="bearer")

        user = deserialize_session_user(conn.scope.get("session") or {})
        if user is not None:
            return AuthCredentials(["authenticated"]), PorticoUser(user, source="session")

        return None
