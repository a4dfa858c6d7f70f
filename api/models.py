"""
API request and response models for DragonFruit REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
vault/models.py, which own the internal domain representation. Route
handlers map between the two.

Nothing secret ever appears in a response model except where it is the
point of the endpoint: TotpSetupResponse (the secret, once, at setup) and
CredentialWithPassword (the decrypted password, on explicit request).
Password hashes and encrypted-secret strings have no response field at all.
"""

from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints

from auth.models import User
from vault.models import Category, Credential

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Non-blank after stripping. Used for every user-visible "name" field.
_Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
_Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=64)]
# Passwords are not stripped -- leading/trailing spaces are significant.
_Password = Annotated[str, StringConstraints(min_length=8, max_length=255)]
_TotpCode = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=10)]


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    username: _Username
    email: EmailStr
    password: _Password


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    totp_code is required only when the account has an enabled second factor.
    """

    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=255)
    totp_code: Optional[_TotpCode] = None


class ProfilePatch(BaseModel):
    """Request body for PATCH /api/v1/auth/me. Omitted fields are unchanged."""

    username: Optional[_Username] = None
    email: Optional[EmailStr] = None
    password: Optional[_Password] = None


class TotpCodeRequest(BaseModel):
    """Request body for POST /auth/totp/verify and /auth/totp/disable."""

    code: _TotpCode


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    username: str
    email: str
    totp_enabled: bool
    totp_state: str
    created_at: str
    updated_at: str
    last_login: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Factory Method -- the mapping lives beside the output model."""
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            totp_enabled=user.totp_enabled,
            totp_state=user.totp_state.value,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
            last_login=user.last_login,
        )


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class TotpSetupResponse(BaseModel):
    """The only response that ever carries a TOTP secret."""

    model_config = ConfigDict(frozen=True)

    secret: str
    uri: str


# ---------------------------------------------------------------------------
# Vault -- categories
# ---------------------------------------------------------------------------


class CategoryCreate(BaseModel):
    name: _Name
    description: Optional[str] = Field(default=None, max_length=1000)


class CategoryPatch(BaseModel):
    name: Optional[_Name] = None
    description: Optional[str] = Field(default=None, max_length=1000)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    description: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


# ---------------------------------------------------------------------------
# Vault -- credentials
# ---------------------------------------------------------------------------


class CredentialCreate(BaseModel):
    category_id: UUID
    name: _Name
    username: str = Field(max_length=255)
    password: str = Field(max_length=1024)
    website: Optional[str] = Field(default=None, max_length=2048)
    notes: Optional[str] = Field(default=None, max_length=10000)


class CredentialPatch(BaseModel):
    category_id: Optional[UUID] = None
    name: Optional[_Name] = None
    username: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=1024)
    website: Optional[str] = Field(default=None, max_length=2048)
    notes: Optional[str] = Field(default=None, max_length=10000)


class CredentialResponse(BaseModel):
    """Credential metadata. Never includes the password."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    category_id: UUID
    name: str
    username: str
    website: Optional[str]
    notes: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_credential(cls, credential: Credential) -> "CredentialResponse":
        return cls(
            id=credential.id,
            category_id=credential.category_id,
            name=credential.name,
            username=credential.username,
            website=credential.website,
            notes=credential.notes,
            created_at=credential.created_at,
            updated_at=credential.updated_at,
        )


class CredentialWithPassword(CredentialResponse):
    """Response for GET /credentials/{id}/password -- the explicit read."""

    password: str
