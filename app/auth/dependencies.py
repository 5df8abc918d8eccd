# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Dependency injection and session helpers for authentication.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
from typing import Optional

from fastapi import Request

from app.auth.backend import SESSION_AUTH_KEY, SESSION_USER_KEY
from app.auth.models import AuthUser
from app.exceptions import NotAuthenticatedError

logger = logging.getLogger(__name__)


async def get_current_user_optional(request: Request) -> Optional[AuthUser]:
    """
    Get the user attached by the authentication middleware.

    Returns None for anonymous requests instead of raising an error.
    """
    if not request.user.is_authenticated:
        return None
    return request.user.user


async def get_current_user(request: Request) -> AuthUser:
    """
    Require an authenticated user.

    Raises:
        NotAuthenticatedError: 401 if the request is anonymous
    """
    user = await get_current_user_optional(request)
    if user is None:
        raise NotAuthenticatedError()
    return user


def login_user(request: Request, user: AuthUser) -> None:
    """Serialize a user into the session cookie."""
    request.session[SESSION_AUTH_KEY] = {SESSION_USER_KEY: user.model_dump(mode="json")}
    logger.info(f"User {user.id} logged in")


def logout_user(request: Request) -> None:
    """Remove the user from the session cookie."""
    passport = request.session.pop(SESSION_AUTH_KEY, None)
    if passport:
        logger.info(f"User {passport.get(SESSION_USER_KEY, {}).get('id')} logged out")
