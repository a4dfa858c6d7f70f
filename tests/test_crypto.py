"""
tests/test_crypto.py -- Unit tests for auth/crypto.py (CredentialCipher).

Covers:
  - encrypt()/decrypt() round trip, including non-ASCII and long plaintexts
  - stored format: "{22-char unpadded b64 salt}:{b64 ciphertext}", fresh salt per call
  - decrypting under another identity never returns the plaintext
  - malformed stored values raise CipherFormatError (an internal error)
  - JWT_SECRET rotation changes the key
"""

from __future__ import annotations

import base64
import uuid

import pytest

from auth.crypto import CredentialCipher
from core.errors import CipherFormatError, DecryptionError, InternalError

ALICE = uuid.UUID("0b5d7f1e-3c2a-4e8b-9f60-1a2b3c4d5e6f")
BOB = uuid.UUID("9e8d7c6b-5a49-4382-b1c0-fedcba987654")


class TestRoundTrip:
    @pytest.mark.parametrize(
        "plaintext",
        [
            "hunter2",
            "",
            "pässwörd with spaces and 火龍果",
            "x" * 100,  # longer than the 32-byte key: the keystream repeats
            "a:b:c",
        ],
    )
    def test_round_trip(self, cipher: CredentialCipher, plaintext: str) -> None:
        assert cipher.decrypt(cipher.encrypt(plaintext, ALICE), ALICE) == plaintext

    def test_format(self, cipher: CredentialCipher) -> None:
        stored = cipher.encrypt("hunter2", ALICE)
        salt_b64, ct_b64 = stored.split(":")
        assert len(salt_b64) == 22
        assert "=" not in salt_b64
        assert len(base64.b64decode(ct_b64)) == len("hunter2")

    def test_fresh_salt_per_call(self, cipher: CredentialCipher) -> None:
        first = cipher.encrypt("same", ALICE)
        second = cipher.encrypt("same", ALICE)
        assert first != second
        assert cipher.decrypt(first, ALICE) == cipher.decrypt(second, ALICE) == "same"

    def test_plaintext_not_visible(self, cipher: CredentialCipher) -> None:
        stored = cipher.encrypt("very-recognisable-password", ALICE)
        assert "very-recognisable-password" not in stored
        assert base64.b64decode(stored.split(":")[1]) != b"very-recognisable-password"


class TestWrongIdentity:
    def test_other_user_cannot_read(self, cipher: CredentialCipher) -> None:
        stored = cipher.encrypt("alice-only-secret", ALICE)
        try:
            result = cipher.decrypt(stored, BOB)
        except DecryptionError:
            return
        assert result != "alice-only-secret"

    def test_rotated_secret_cannot_read(self, cipher: CredentialCipher, settings_factory) -> None:
        stored = cipher.encrypt("before-rotation", ALICE)
        rotated = CredentialCipher(lambda: settings_factory(jwt_secret="rotated-" + "k" * 40))
        try:
            result = rotated.decrypt(stored, ALICE)
        except DecryptionError:
            return
        assert result != "before-rotation"

    def test_non_utf8_output_raises_decryption_error(self, cipher: CredentialCipher) -> None:
        """Flip the high bit of every byte so the output cannot be valid UTF-8."""
        stored = cipher.encrypt("plain ascii", ALICE)
        salt_b64, ct_b64 = stored.split(":")
        flipped = bytes(b ^ 0x80 for b in base64.b64decode(ct_b64))
        corrupted = f"{salt_b64}:{base64.b64encode(flipped).decode('ascii')}"
        with pytest.raises(DecryptionError):
            cipher.decrypt(corrupted, ALICE)


class TestMalformed:
    @pytest.mark.parametrize(
        "stored",
        [
            "",
            "no-separator-here",
            "a:b:c",
            "!!!!:AAAA",
            "AAAAAAAAAAAAAAAAAAAAAA:not base64!",
            "AAAA:AAAA",  # 3-byte salt
        ],
    )
    def test_format_errors(self, cipher: CredentialCipher, stored: str) -> None:
        with pytest.raises(CipherFormatError) as exc_info:
            cipher.decrypt(stored, ALICE)
        assert isinstance(exc_info.value, InternalError)
        assert exc_info.value.status_code == 500
        # The public message never carries the detail.
        assert exc_info.value.message == "An unexpected error occurred."
