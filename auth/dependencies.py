"""
auth/dependencies.py -- The auth boundary and its FastAPI Depends() wrappers.

authenticate() is the single point where request handling meets the auth
core: one Authorization header value in, one user UUID (or a typed
UnauthorizedError) out. It is a plain function with no FastAPI types so it
can be tested and reused outside the web layer.

  Accepted:  "Bearer <token>"  (scheme is case-sensitive, exactly one space)
  Rejected:  absent header, other schemes, "Bearer" with no token
             -> MissingOrMalformedHeaderError
  Otherwise: TokenService.validate() decides (InvalidToken / ExpiredToken /
             TokenSubjectError).

There is no retry: a failed validation ends the request.

require_identity() and get_current_user() are the FastAPI dependencies
built on top. get_current_user() additionally loads the User row and treats
a token for a deleted user as an invalid token.
"""

from __future__ import annotations

import uuid

from fastapi import Request

from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import InvalidTokenError, MissingOrMalformedHeaderError

_SCHEME = "Bearer "


def authenticate(authorization: str | None, tokens: TokenService) -> uuid.UUID:
    """Return the user id asserted by a `Bearer <token>` header value."""
    if not authorization or not authorization.startswith(_SCHEME):
        raise MissingOrMalformedHeaderError()
    token = authorization[len(_SCHEME) :]
    if not token or token.strip() != token:
        raise MissingOrMalformedHeaderError()
    return tokens.validate(token)


def require_identity(request: Request) -> uuid.UUID:
    """Require a valid bearer token. Raises UnauthorizedError subclasses.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user_id: uuid.UUID = Depends(require_identity)): ...
    """
    return authenticate(request.headers.get("Authorization"), request.app.state.tokens)


def get_current_user(request: Request) -> User:
    """Require a valid bearer token and return the matching User row."""
    user_id = require_identity(request)
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(user_id)
    if user is None:
        raise InvalidTokenError()
    return user
