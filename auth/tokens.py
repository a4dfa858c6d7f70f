"""
auth/tokens.py -- Stateless session tokens (JWT).

Security design decisions:
  JWT: python-jose, HMAC family (HS256 by default). Claims are exactly
       {sub, iss, iat, exp}: sub is the user's UUID, iss the configured
       issuer, iat/exp integer unix seconds. Nothing else rides in the token;
       everything about the user is looked up fresh when needed.

  No revocation list: validity is signature + expiry only. A leaked token
       stays valid until exp. Lifetime (TOKEN_TTL_SECONDS, default 24h) is
       the sole expiry mechanism.

  Secret lookup: TokenService holds a settings provider, not the secret.
       The secret, issuer, TTL and algorithm are read on every issue() and
       validate() call so rotating JWT_SECRET takes effect on the next call.

  Expiry is checked here rather than by jose so that the boundary is exact
       (a token is expired at t >= exp, no leeway) and so tests can drive the
       clock. jose verifies the signature, algorithm, iss and iat; exp
       presence and sub are checked in validate().

  Failure mapping:
       exp reached                            -> ExpiredTokenError
       bad signature / structure / algorithm  -> InvalidTokenError
       valid signature but sub is not a UUID  -> TokenSubjectError (500)
       The last one means something with our key minted a bad token -- a
       server-side integrity problem, not a client mistake.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from jose import JWTError, jwt

from core.config import SettingsProvider, get_settings
from core.errors import ExpiredTokenError, InvalidTokenError, TokenSubjectError

logger = logging.getLogger("dragonfruit.auth")

# jose turns verify_<claim> back on for every require_<claim>, so exp and sub
# must not be listed as required. Both are checked in validate() instead.
_DECODE_OPTIONS = {
    "verify_exp": False,
    "verify_sub": False,
    "verify_iss": True,
    "require_iss": True,
    "require_iat": True,
}


class TokenService:
    """Issues and validates signed session tokens.

    Usage:
        tokens = TokenService()
        token = tokens.issue(user_id)
        user_id = tokens.validate(token)
    """

    def __init__(
        self,
        settings: SettingsProvider = get_settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._settings().token_ttl_seconds

    def issue(self, subject_id: uuid.UUID) -> str:
        """Return a signed token asserting subject_id for the configured TTL."""
        cfg = self._settings()
        now = int(self._clock())
        claims = {
            "sub": str(subject_id),
            "iss": cfg.token_issuer,
            "iat": now,
            "exp": now + cfg.token_ttl_seconds,
        }
        return jwt.encode(claims, cfg.jwt_secret, algorithm=cfg.token_algorithm)

    def validate(self, token: str) -> uuid.UUID:
        """Return the subject UUID of a valid, unexpired token.

        Raises ExpiredTokenError, InvalidTokenError or TokenSubjectError.
        """
        cfg = self._settings()
        try:
            claims = jwt.decode(
                token,
                cfg.jwt_secret,
                algorithms=[cfg.token_algorithm],
                issuer=cfg.token_issuer,
                options=_DECODE_OPTIONS,
            )
        except JWTError as exc:
            raise InvalidTokenError() from exc

        exp = claims.get("exp")
        if not isinstance(exp, int) or isinstance(exp, bool):
            raise InvalidTokenError()
        if self._clock() >= exp:
            raise ExpiredTokenError()

        subject = claims.get("sub")
        try:
            return uuid.UUID(subject)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.error("Token with valid signature carries a non-UUID subject")
            raise TokenSubjectError("token subject is not a UUID") from exc
