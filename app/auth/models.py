# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data, plus the Starlette user object
# that AuthenticationMiddleware attaches to request.user.
# =============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict
from starlette.authentication import BaseUser


class AuthUser(BaseModel):
    """
    Authenticated user, as serialized into the session cookie or
    carried by a bearer token.

    This is the minimal user info available without querying the database.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class TokenPayload(BaseModel):
    """
    Decoded bearer token payload.

    Standard JWT claims plus the optional profile claims we read.
    """
    sub: str  # User ID
    email: Optional[str] = None
    name: Optional[str] = None
    aud: Optional[str] = None
    exp: Optional[int] = None
    iat: Optional[int] = None


class PorticoUser(BaseUser):
    """Starlette user wrapper around an AuthUser."""

    def __init__(self, user: AuthUser, source: str):
        self.user = user
        self.source = source  # "session" or "bearer"

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.user.name or self.user.email or self.user.id

    @property
    def identity(self) -> str:
        return self.user.id
