"""
auth/passwords.py -- Password hashing, verification and key derivation.

Security design decisions:
  Argon2id via argon2-cffi. Argon2 is memory-hard: each hash costs ~64 MiB
       and several passes over it, which makes GPU/ASIC brute force of
       low-entropy passwords expensive. Every call to hash_password() draws
       a fresh 16-byte salt from os.urandom (inside argon2-cffi).

  Stored format: the PHC string, e.g.
       $argon2id$v=19$m=65536,t=3,p=4$<salt b64>$<digest b64>
       It is self-describing (algorithm tag, version, cost parameters, salt,
       digest), so verification never needs out-of-band parameters and a
       future parameter or algorithm change can coexist with old hashes.
       needs_rehash() tells the login path when a stored hash was produced
       with outdated parameters.

  Verification: argon2-cffi compares digests in constant time. Mismatch is
       a False return, not an error. A stored hash that does not parse is
       MalformedSecretOrCodeError -- that is a data problem the caller must
       see, and swallowing it into False would hide it.

  derive_key(): the same Argon2id primitive with the same cost parameters,
       but deterministic for a caller-supplied salt and returning raw bytes.
       auth/crypto.py uses it to turn "{user_id}:{JWT_SECRET}" into key
       material for credential secrets.

All functions here are CPU-heavy by design. Route handlers run them through
api.offload.run_cpu_bound so they never block the event loop.
"""

from __future__ import annotations

import logging

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import hash_secret_raw

from core.errors import EntropyError, MalformedSecretOrCodeError

logger = logging.getLogger("dragonfruit.auth")

# Argon2id cost parameters. These are also the parameters used by
# derive_key(), so changing them changes every derived credential key --
# stored credential secrets would no longer decrypt.
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536  # KiB
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32
ARGON2_SALT_LEN = 16

_hasher = PasswordHasher(
    time_cost=ARGON2_TIME_COST,
    memory_cost=ARGON2_MEMORY_COST,
    parallelism=ARGON2_PARALLELISM,
    hash_len=ARGON2_HASH_LEN,
    salt_len=ARGON2_SALT_LEN,
    type=Type.ID,
)


def hash_password(plain: str) -> str:
    """Return the Argon2id PHC string for the given plaintext password."""
    try:
        return _hasher.hash(plain)
    except OSError as exc:
        # os.urandom failure while drawing the salt.
        raise EntropyError(f"salt generation failed: {exc}") from exc


def verify_password(plain: str, stored_hash: str) -> bool:
    """Return True if the plaintext password matches the stored hash.

    Raises MalformedSecretOrCodeError when stored_hash is not a parseable
    Argon2 PHC string.
    """
    try:
        return _hasher.verify(stored_hash, plain)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, UnicodeEncodeError) as exc:
        # argon2-cffi encodes the stored hash as ASCII before parsing it.
        raise MalformedSecretOrCodeError("Stored password hash is malformed.") from exc
    except VerificationError:
        # Parsed, but argon2 rejected it for another reason (e.g. a hash
        # that decodes to an impossible parameter set). Not a match.
        return False


def needs_rehash(stored_hash: str) -> bool:
    """Return True if stored_hash was produced with different cost parameters."""
    try:
        return _hasher.check_needs_rehash(stored_hash)
    except (InvalidHashError, UnicodeEncodeError) as exc:
        raise MalformedSecretOrCodeError("Stored password hash is malformed.") from exc


def derive_key(material: str, salt: bytes) -> bytes:
    """Derive ARGON2_HASH_LEN bytes of key material from (material, salt).

    Deterministic: the same material and salt always give the same bytes.
    """
    if len(salt) < 8:
        # Argon2 requires at least 8 bytes of salt.
        raise MalformedSecretOrCodeError("Key derivation salt is too short.")
    return hash_secret_raw(
        secret=material.encode("utf-8"),
        salt=salt,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST,
        parallelism=ARGON2_PARALLELISM,
        hash_len=ARGON2_HASH_LEN,
        type=Type.ID,
    )


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Login verifies against this when the username
# does not exist so response time does not reveal account existence.
DUMMY_HASH: str = hash_password("dragonfruit_timing_dummy")
