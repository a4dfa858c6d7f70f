"""
api/routes/v1/auth.py -- Registration, login, profile and second-factor endpoints.

Routes:
  POST  /api/v1/auth/register        -- create account (public)
  POST  /api/v1/auth/login           -- password (+ TOTP) login; returns bearer token
  GET   /api/v1/auth/me              -- current user (requires auth)
  PATCH /api/v1/auth/me              -- change username/email/password (requires auth)
  POST  /api/v1/auth/totp/setup      -- generate a pending TOTP secret (requires auth)
  POST  /api/v1/auth/totp/verify     -- prove possession; pending -> enabled (requires auth)
  POST  /api/v1/auth/totp/disable    -- enabled -> disabled, secret cleared (requires auth)

Security:
  [H2] login and register are rate-limited per client IP. @limiter.limit sits
       below @router.post so the registered endpoint is the limited wrapper.
  [C1] login always runs one Argon2 verification, against DUMMY_HASH when
       the username is unknown, so timing does not reveal account existence.
       Unknown user, wrong password, and missing/wrong TOTP code all return
       the same 401 invalid_credentials.
  [M5] Cache-Control: no-store on register and login responses.
  Argon2 work goes through run_cpu_bound() -- never inline on the event loop.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import limiter, login_limit
from api.models import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfilePatch,
    RegisterRequest,
    TotpCodeRequest,
    TotpSetupResponse,
    UserResponse,
)
from api.offload import run_cpu_bound
from auth.dependencies import get_current_user
from auth.models import TotpState, User
from auth.passwords import DUMMY_HASH, hash_password, needs_rehash, verify_password
from auth.store import UserStore
from auth.tokens import TokenService
from auth.totp import generate_secret, verify_totp
from core.config import get_settings
from core.errors import BadRequestError, ConflictError, InvalidCredentialsError, InvalidTotpCodeError

logger = logging.getLogger("dragonfruit.auth")

# Auth policy:
# - POST  /auth/register, /auth/login: public
# - everything else: requires a valid bearer token (get_current_user)
router = APIRouter()


def _no_store(resp: JSONResponse) -> JSONResponse:
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=UserResponse, status_code=201)
@limiter.limit(login_limit)  # [H2]
async def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account. The password is hashed before it touches the store."""
    user_store: UserStore = request.app.state.user_store
    password_hash = await run_cpu_bound(hash_password, body.password)
    try:
        user_id = user_store.create_user(User(username=body.username, email=body.email, password_hash=password_hash))
    except IntegrityError as exc:
        raise ConflictError("Username or email already exists.") from exc

    logger.info("Registered user %s", user_id)
    created = user_store.get_by_id(user_id)
    return _no_store(JSONResponse(status_code=201, content=UserResponse.from_user(created).model_dump(mode="json")))


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(login_limit)  # [H2]
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username, password and (if enabled) a TOTP code."""
    user_store: UserStore = request.app.state.user_store
    tokens: TokenService = request.app.state.tokens
    settings = get_settings()

    user = user_store.get_by_username(body.username)
    if user is None:
        # Equalize timing -- do NOT return before running Argon2 [C1]
        await run_cpu_bound(verify_password, body.password, DUMMY_HASH)
        raise InvalidCredentialsError()
    if not await run_cpu_bound(verify_password, body.password, user.password_hash):
        logger.info("Login failed for user %s: bad password", user.id)
        raise InvalidCredentialsError()

    if user.totp_enabled:
        if not body.totp_code or not verify_totp(
            user.totp_secret or "", body.totp_code, settings.totp_step_seconds, settings.totp_digits
        ):
            logger.info("Login failed for user %s: second factor", user.id)
            raise InvalidCredentialsError()

    if needs_rehash(user.password_hash):
        user_store.update_user(user.id, password_hash=await run_cpu_bound(hash_password, body.password))
    user_store.update_last_login(user.id)
    user = user_store.get_by_id(user.id)

    token = tokens.issue(uuid.UUID(user.id))
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=tokens.ttl_seconds,
            user=UserResponse.from_user(user),
        ).model_dump(mode="json"),
    )
    return _no_store(resp)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the profile of the currently authenticated user."""
    return UserResponse.from_user(current_user)


@router.patch("/auth/me", response_model=UserResponse)
async def update_me(
    request: Request,
    body: ProfilePatch,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Change username, email and/or password. The new password hash overwrites the old one."""
    user_store: UserStore = request.app.state.user_store

    updates: dict = {}
    if body.username is not None:
        updates["username"] = body.username
    if body.email is not None:
        updates["email"] = body.email
    if body.password is not None:
        updates["password_hash"] = await run_cpu_bound(hash_password, body.password)
    if not updates:
        raise BadRequestError("No fields to update.")

    try:
        user_store.update_user(current_user.id, **updates)
    except IntegrityError as exc:
        raise ConflictError("Username or email already exists.") from exc
    return UserResponse.from_user(user_store.get_by_id(current_user.id))


# ---------------------------------------------------------------------------
# Second factor enrollment
#
#   unset/disabled/pending --setup--> pending --verify--> enabled --disable--> disabled
# ---------------------------------------------------------------------------


@router.post("/auth/totp/setup", response_model=TotpSetupResponse)
async def totp_setup(request: Request, current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Generate a new pending secret and return it with its provisioning URI.

    This is the only time the secret leaves the server. Calling setup again
    while pending replaces the secret (the old QR code stops working).
    """
    if current_user.totp_enabled:
        raise ConflictError("Two-factor authentication is already enabled. Disable it first.")
    settings = get_settings()
    user_store: UserStore = request.app.state.user_store

    secret, uri = generate_secret(settings.totp_label, current_user.username)
    user_store.set_totp(current_user.id, TotpState.pending, secret)
    logger.info("TOTP setup started for user %s", current_user.id)
    return _no_store(JSONResponse(content=TotpSetupResponse(secret=secret, uri=uri).model_dump()))


@router.post("/auth/totp/verify", response_model=MessageResponse)
async def totp_verify(
    request: Request,
    body: TotpCodeRequest,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Enable the pending secret once the user proves they can generate codes from it."""
    if current_user.totp_state is not TotpState.pending or not current_user.totp_secret:
        raise BadRequestError("Two-factor setup has not been started.")
    settings = get_settings()
    if not verify_totp(current_user.totp_secret, body.code, settings.totp_step_seconds, settings.totp_digits):
        raise InvalidTotpCodeError()

    user_store: UserStore = request.app.state.user_store
    user_store.set_totp(current_user.id, TotpState.enabled, current_user.totp_secret)
    logger.info("TOTP enabled for user %s", current_user.id)
    return MessageResponse(message="Two-factor authentication enabled.")


@router.post("/auth/totp/disable", response_model=MessageResponse)
async def totp_disable(
    request: Request,
    body: TotpCodeRequest,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Turn the second factor off. Requires a current code; the secret is discarded."""
    if not current_user.totp_enabled:
        raise BadRequestError("Two-factor authentication is not enabled.")
    settings = get_settings()
    if not verify_totp(current_user.totp_secret or "", body.code, settings.totp_step_seconds, settings.totp_digits):
        raise InvalidTotpCodeError()

    user_store: UserStore = request.app.state.user_store
    user_store.set_totp(current_user.id, TotpState.disabled, None)
    logger.info("TOTP disabled for user %s", current_user.id)
    return MessageResponse(message="Two-factor authentication disabled.")
