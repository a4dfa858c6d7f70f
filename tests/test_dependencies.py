"""
tests/test_dependencies.py -- Unit tests for the auth boundary, authenticate().

Covers:
  - "Bearer <token>" with a valid token yields the subject UUID
  - absent header, other schemes, wrong case, empty token and stray
    whitespace are MissingOrMalformedHeaderError
  - a well-formed header with a bad or expired token surfaces the
    TokenService error unchanged
"""

from __future__ import annotations

import uuid

import pytest

from auth.dependencies import authenticate
from auth.tokens import TokenService
from core.errors import ExpiredTokenError, InvalidTokenError, MissingOrMalformedHeaderError

USER_ID = uuid.UUID("2c0a6a3e-6a57-4b7e-8a0e-5b8f1f3e9d10")


def test_valid_bearer_header(tokens: TokenService) -> None:
    header = f"Bearer {tokens.issue(USER_ID)}"
    assert authenticate(header, tokens) == USER_ID


@pytest.mark.parametrize(
    "header",
    [
        None,
        "",
        "Bearer",
        "Bearer ",
        "bearer abc.def.ghi",
        "BEARER abc.def.ghi",
        "Basic dXNlcjpwYXNz",
        "Token abc.def.ghi",
        "abc.def.ghi",
    ],
)
def test_malformed_headers(tokens: TokenService, header) -> None:
    with pytest.raises(MissingOrMalformedHeaderError):
        authenticate(header, tokens)


def test_double_space_is_malformed(tokens: TokenService) -> None:
    with pytest.raises(MissingOrMalformedHeaderError):
        authenticate(f"Bearer  {tokens.issue(USER_ID)}", tokens)


def test_trailing_whitespace_is_malformed(tokens: TokenService) -> None:
    with pytest.raises(MissingOrMalformedHeaderError):
        authenticate(f"Bearer {tokens.issue(USER_ID)} ", tokens)


def test_garbage_token_is_invalid(tokens: TokenService) -> None:
    with pytest.raises(InvalidTokenError):
        authenticate("Bearer not-a-jwt", tokens)


def test_expired_token_is_expired(tokens: TokenService, clock) -> None:
    token = tokens.issue(USER_ID)
    clock.advance(86400)
    with pytest.raises(ExpiredTokenError):
        authenticate(f"Bearer {token}", tokens)


def test_errors_are_401(tokens: TokenService) -> None:
    with pytest.raises(MissingOrMalformedHeaderError) as exc_info:
        authenticate(None, tokens)
    assert exc_info.value.status_code == 401
    assert exc_info.value.code == "missing_or_malformed_header"
