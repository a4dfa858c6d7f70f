"""
auth/crypto.py -- Reversible protection of stored credential passwords.

Stored format (one colon, no escaping):

    {salt}:{ciphertext}

  salt        16 random bytes, standard base64 without padding (22 chars)
  ciphertext  standard base64 of the XORed bytes

Neither alphabet contains ':', so a well-formed value always has exactly
one colon. Parsing splits on ':' and requires exactly two parts.

Scheme:
  key   = Argon2id("{user_id}:{JWT_SECRET}", salt)    (32 bytes, passwords.derive_key)
  ct[i] = plaintext_utf8[i] XOR key[i mod 32]

Known weakness -- this is an obfuscation layer, not authenticated encryption:
  * No integrity: flipping a ciphertext bit flips the same plaintext bit and
    nothing notices.
  * The 32-byte keystream repeats for passwords longer than 32 bytes.
  * Decrypting with the wrong user id usually yields garbage bytes; it fails
    only when that garbage is not valid UTF-8.
The format and round-trip behaviour are what the stored data depends on. A
replacement should key AES-GCM (or similar) with a dedicated per-user data
key and keep this string shape with a version marker.

JWT_SECRET is read through the settings provider on every call. Rotating it
makes all previously stored credential passwords undecryptable.
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
import uuid
from itertools import cycle

from auth.passwords import ARGON2_SALT_LEN, derive_key
from core.config import SettingsProvider, get_settings
from core.errors import CipherFormatError, DecryptionError, EntropyError

logger = logging.getLogger("dragonfruit.auth")


def _b64encode_nopad(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").rstrip("=")


def _b64decode_nopad(value: str) -> bytes:
    return base64.b64decode(value + "=" * (-len(value) % 4), validate=True)


def _xor(data: bytes, key: bytes) -> bytes:
    return bytes(b ^ k for b, k in zip(data, cycle(key)))


class CredentialCipher:
    """Encrypts and decrypts credential passwords for one user at a time."""

    def __init__(self, settings: SettingsProvider = get_settings) -> None:
        self._settings = settings

    def _key(self, identity: uuid.UUID, salt: bytes) -> bytes:
        return derive_key(f"{identity}:{self._settings().jwt_secret}", salt)

    def encrypt(self, plaintext: str, identity: uuid.UUID) -> str:
        """Return "{salt}:{ciphertext}" for plaintext under identity's key."""
        try:
            salt = secrets.token_bytes(ARGON2_SALT_LEN)
        except OSError as exc:
            raise EntropyError(f"salt generation failed: {exc}") from exc
        ciphertext = _xor(plaintext.encode("utf-8"), self._key(identity, salt))
        return f"{_b64encode_nopad(salt)}:{base64.b64encode(ciphertext).decode('ascii')}"

    def decrypt(self, encrypted: str, identity: uuid.UUID) -> str:
        """Recover the plaintext stored by encrypt() for the same identity.

        Raises CipherFormatError for a value that is not a single
        salt:ciphertext pair with valid base64 on both sides, and
        DecryptionError when the recovered bytes are not UTF-8.
        """
        parts = encrypted.split(":")
        if len(parts) != 2:
            raise CipherFormatError(f"expected one ':' separator, found {len(parts) - 1}")
        salt_b64, ciphertext_b64 = parts
        try:
            salt = _b64decode_nopad(salt_b64)
            ciphertext = base64.b64decode(ciphertext_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CipherFormatError(f"invalid base64 in encrypted secret: {exc}") from exc
        if len(salt) != ARGON2_SALT_LEN:
            raise CipherFormatError(f"salt is {len(salt)} bytes, expected {ARGON2_SALT_LEN}")

        plain = _xor(ciphertext, self._key(identity, salt))
        try:
            return plain.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Credential decryption produced non-UTF-8 output (user=%s)", identity)
            raise DecryptionError("decrypted bytes are not valid UTF-8") from exc
