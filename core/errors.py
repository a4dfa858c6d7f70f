"""
core/errors.py -- Typed failure taxonomy shared by auth/, vault/ and api/.

Every failure the auth core can produce is a subclass of AppError carrying
the HTTP status, a stable machine-readable code, and a public message. The
API layer renders them through a single exception handler (api/main.py), so
route handlers and services simply raise.

InternalError is special: the public message is always generic. Whatever
went wrong is kept in `detail`, which the handler logs and never renders.

A False return from a verify function is a valid outcome, not an error.
Nothing in this module is raised for a plain mismatch.

Layer rule: core/ is the kernel. No imports from api/, auth/ or vault/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for all typed application failures."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# 401
# ---------------------------------------------------------------------------


class UnauthorizedError(AppError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class MissingOrMalformedHeaderError(UnauthorizedError):
    code = "missing_or_malformed_header"
    message = "Missing or malformed Authorization header."


class InvalidTokenError(UnauthorizedError):
    code = "invalid_token"
    message = "Invalid token."


class ExpiredTokenError(UnauthorizedError):
    """Signature was valid but the token is past its exp claim.

    Kept distinct from InvalidTokenError so clients can show "log in again"
    instead of a forged/malformed message.
    """

    code = "expired_token"
    message = "Token expired."


class InvalidCredentialsError(UnauthorizedError):
    code = "invalid_credentials"
    message = "Invalid username, password or verification code."


# ---------------------------------------------------------------------------
# 4xx client errors
# ---------------------------------------------------------------------------


class BadRequestError(AppError):
    status_code = 400
    code = "bad_request"
    message = "Bad request."


class MalformedSecretOrCodeError(BadRequestError):
    """A TOTP secret failed Base32 decoding or a stored hash is unparseable."""

    code = "malformed_secret_or_code"
    message = "Malformed secret or code."


class InvalidTotpCodeError(BadRequestError):
    """A well-formed but wrong code during second-factor setup or removal."""

    code = "invalid_totp_code"
    message = "Invalid verification code."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Resource not found."


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    message = "Resource already exists."


# ---------------------------------------------------------------------------
# 500
# ---------------------------------------------------------------------------


class InternalError(AppError):
    """Server-side integrity fault. `detail` is for the log only."""

    status_code = 500
    code = "internal_error"
    message = "An unexpected error occurred."

    def __init__(self, detail: str = "") -> None:
        super().__init__()
        self.detail = detail

    def __str__(self) -> str:
        return self.detail or self.message


class EntropyError(InternalError):
    pass


class TokenSubjectError(InternalError):
    """A token passed signature verification but its sub is not a UUID."""


class CipherFormatError(InternalError):
    """A stored encrypted secret is not a single `salt:ciphertext` pair."""


class DecryptionError(InternalError):
    """Decryption produced bytes that are not valid UTF-8 text."""
