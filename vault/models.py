"""
vault/models.py -- Domain dataclasses for the DragonFruit vault.

These are pure data containers with zero logic. Ownership checks and
persistence live in vault/store.py; encryption of credential passwords
happens in the route layer (auth/crypto.py) before a Credential ever
reaches the store.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Category:
    """A user-owned folder for credentials.

    id is None before the record is written to the database.
    """

    user_id: str
    name: str
    description: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass
class Credential:
    """A stored third-party login.

    password holds the encrypted-secret string ("{salt}:{ciphertext}"),
    never plaintext. Only GET /credentials/{id}/password decrypts it.
    """

    user_id: str
    category_id: str
    name: str
    username: str
    password: str
    website: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
