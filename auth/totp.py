"""
auth/totp.py -- Time-based one-time passwords (RFC 4226 HOTP / RFC 6238 TOTP).

Layout:
  hotp()             -- the RFC 4226 core: HMAC-SHA1 over an 8-byte
                        big-endian counter, dynamic truncation, modulo 10^d.
  totp_code()        -- counter = floor(unix_time / step), then hotp().
  verify_totp()      -- recompute the current code and compare.
  generate_secret()  -- 20 random bytes, Base32, plus the otpauth:// URI.

Verification policy: the candidate is accepted only for the exact current
time step. There is no look-back / look-ahead window, so a code typed in
the last second of its step and received in the next one is rejected.
This is stricter than most authenticator deployments (which allow +/-1
step) and is kept on purpose; users retry with the next code.

The comparison uses hmac.compare_digest so response time does not depend
on how many leading digits matched.

Time is read through an optional `for_time` argument (unix seconds). Route
handlers leave it unset; tests pin it to reproduce RFC vectors.

TOTP secrets are never logged.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets
import struct
import time
from typing import Optional, Tuple

from core.errors import MalformedSecretOrCodeError

TOTP_SECRET_BYTES = 20  # 160 bits, the HMAC-SHA1 block-friendly size from RFC 4226
TOTP_STEP_SECONDS = 30
TOTP_DIGITS = 6


def generate_secret(label: str, account: str) -> Tuple[str, str]:
    """Return (base32_secret, provisioning_uri) for a new enrollment.

    The URI format is fixed for QR-code generation:
        otpauth://totp/{label}:{account}?secret={secret}&issuer={label}
    Values are embedded verbatim.
    """
    secret = base64.b32encode(secrets.token_bytes(TOTP_SECRET_BYTES)).decode("ascii")
    uri = f"otpauth://totp/{label}:{account}?secret={secret}&issuer={label}"
    return secret, uri


def decode_secret(secret: str) -> bytes:
    """Decode a Base32 secret. Raises MalformedSecretOrCodeError on bad input."""
    try:
        key = base64.b32decode(secret.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
        raise MalformedSecretOrCodeError("TOTP secret is not valid Base32.") from exc
    if not key:
        # HMAC accepts an empty key; an empty shared secret is still wrong.
        raise MalformedSecretOrCodeError("TOTP secret is empty.")
    return key


def hotp(key: bytes, counter: int, digits: int = TOTP_DIGITS) -> str:
    """Return the RFC 4226 HOTP value for (key, counter) as a zero-padded string."""
    digest = hmac.new(key, struct.pack(">Q", counter), hashlib.sha1).digest()
    # Dynamic truncation: low nibble of the last byte picks a 4-byte window.
    offset = digest[-1] & 0x0F
    binary = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF
    return str(binary % (10**digits)).zfill(digits)


def time_counter(step: int = TOTP_STEP_SECONDS, for_time: Optional[float] = None) -> int:
    if for_time is None:
        for_time = time.time()
    return int(for_time) // step


def totp_code(
    secret: str,
    step: int = TOTP_STEP_SECONDS,
    digits: int = TOTP_DIGITS,
    for_time: Optional[float] = None,
) -> str:
    """Return the TOTP code for the Base32 secret at for_time (default: now)."""
    return hotp(decode_secret(secret), time_counter(step, for_time), digits)


def verify_totp(
    secret: str,
    candidate: str,
    step: int = TOTP_STEP_SECONDS,
    digits: int = TOTP_DIGITS,
    for_time: Optional[float] = None,
) -> bool:
    """Return True if candidate equals the code for the current time step.

    A malformed secret raises; a wrong, short or non-numeric candidate is
    simply False.
    """
    expected = totp_code(secret, step, digits, for_time)
    return hmac.compare_digest(expected.encode("ascii"), candidate.encode("utf-8"))
