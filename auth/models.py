"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in vault/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/ or vault/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TotpState(str, Enum):
    """Second-factor enrollment state for one user.

    unset -> pending   POST /auth/totp/setup stores a fresh secret
    pending -> pending setup again replaces the secret
    pending -> enabled POST /auth/totp/verify with a valid code
    enabled -> disabled POST /auth/totp/disable with a valid code (secret cleared)
    disabled -> pending setup again

    There is no path from unset (or disabled) straight to enabled: the user
    must prove possession of the secret first.
    """

    unset = "unset"
    pending = "pending"
    enabled = "enabled"
    disabled = "disabled"


@dataclass
class User:
    """A DragonFruit account.

    id is a UUID4 string assigned by UserStore.create_user(). It is the token
    subject and part of the credential key derivation input, so it never
    changes.

    password_hash is the Argon2id PHC string. totp_secret is Base32 and is
    only trusted once totp_state is enabled.
    """

    username: str
    email: str
    password_hash: str
    id: str | None = None
    totp_secret: str | None = None
    totp_state: TotpState = TotpState.unset
    created_at: str | None = None
    updated_at: str | None = None
    last_login: str | None = None

    @property
    def totp_enabled(self) -> bool:
        return self.totp_state is TotpState.enabled
