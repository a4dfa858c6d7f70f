"""
api/limiter.py -- Per-client rate limiting for the credential-guessing surface.

Only POST /auth/register and POST /auth/login carry a limit. Both run a full
Argon2id computation per request, so an unthrottled client could both brute
force passwords and pin the hashing pool.

One Limiter instance is shared by api/main.py (SlowAPIMiddleware) and the
routes that decorate themselves with @limiter.limit(login_limit). Separate
instances would keep separate counters.

Counters live in process memory: they reset on restart and are not shared
between workers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def login_limit() -> str:
    """Current LOGIN_RATE_LIMIT, e.g. "10/minute". Read per request."""
    return get_settings().login_rate_limit
