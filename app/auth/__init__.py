# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Attaches the current user to each request from the session cookie or a
# bearer token, and provides dependencies for routes that need a user.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.backend import SessionAuthBackend
from app.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    login_user,
    logout_user,
)
from app.auth.models import AuthUser, PorticoUser

__all__ = [
    "SessionAuthBackend",
    "get_current_user",
    "get_current_user_optional",
    "login_user",
    "logout_user",
    "AuthUser",
    "PorticoUser",
]
