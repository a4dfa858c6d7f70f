"""
api/routes/v1/credentials.py -- Credential CRUD with encrypted passwords.

Routes (all require auth):
  GET    /api/v1/credentials                        -- metadata only; ?category_id= filter
  POST   /api/v1/credentials                        -- password encrypted before insert
  GET    /api/v1/credentials/{credential_id}        -- metadata only
  GET    /api/v1/credentials/{credential_id}/password  -- explicit read: decrypts
  PATCH  /api/v1/credentials/{credential_id}        -- new password re-encrypted with a fresh salt
  DELETE /api/v1/credentials/{credential_id}
  GET    /api/v1/categories/{category_id}/credentials

Passwords are encrypted with the caller's own id (auth/crypto.py). The
plaintext exists only in the request body and in the /password response.
Encrypt and decrypt both run Argon2 key derivation, so they go through
run_cpu_bound().
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.models import CredentialCreate, CredentialPatch, CredentialResponse, CredentialWithPassword
from api.offload import run_cpu_bound
from api.routes.v1.categories import CategoryNotFoundError
from auth.crypto import CredentialCipher
from auth.dependencies import require_identity
from core.errors import BadRequestError, NotFoundError
from vault.models import Credential
from vault.store import VaultStore

logger = logging.getLogger("dragonfruit.vault")

router = APIRouter()


class CredentialNotFoundError(NotFoundError):
    message = "Credential not found."


def _require_category(vault: VaultStore, category_id: uuid.UUID, user_id: uuid.UUID) -> None:
    if vault.get_category(str(category_id), str(user_id)) is None:
        raise CategoryNotFoundError()


@router.get("/credentials", response_model=list[CredentialResponse])
async def list_credentials(
    request: Request,
    category_id: Optional[uuid.UUID] = None,
    user_id: uuid.UUID = Depends(require_identity),
) -> list[CredentialResponse]:
    vault: VaultStore = request.app.state.vault
    rows = vault.list_credentials(str(user_id), str(category_id) if category_id else None)
    return [CredentialResponse.from_credential(c) for c in rows]


@router.get("/categories/{category_id}/credentials", response_model=list[CredentialResponse])
async def list_category_credentials(
    request: Request,
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_identity),
) -> list[CredentialResponse]:
    vault: VaultStore = request.app.state.vault
    _require_category(vault, category_id, user_id)
    return [CredentialResponse.from_credential(c) for c in vault.list_credentials(str(user_id), str(category_id))]


@router.post("/credentials", response_model=CredentialResponse, status_code=201)
async def create_credential(
    request: Request,
    body: CredentialCreate,
    user_id: uuid.UUID = Depends(require_identity),
) -> CredentialResponse:
    vault: VaultStore = request.app.state.vault
    cipher: CredentialCipher = request.app.state.cipher
    _require_category(vault, body.category_id, user_id)

    encrypted = await run_cpu_bound(cipher.encrypt, body.password, user_id)
    credential_id = vault.create_credential(
        Credential(
            user_id=str(user_id),
            category_id=str(body.category_id),
            name=body.name,
            username=body.username,
            password=encrypted,
            website=body.website,
            notes=body.notes,
        )
    )
    return CredentialResponse.from_credential(vault.get_credential(credential_id, str(user_id)))


@router.get("/credentials/{credential_id}", response_model=CredentialResponse)
async def get_credential(
    request: Request,
    credential_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_identity),
) -> CredentialResponse:
    vault: VaultStore = request.app.state.vault
    credential = vault.get_credential(str(credential_id), str(user_id))
    if credential is None:
        raise CredentialNotFoundError()
    return CredentialResponse.from_credential(credential)


@router.get("/credentials/{credential_id}/password", response_model=CredentialWithPassword)
async def get_credential_password(
    request: Request,
    credential_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_identity),
) -> JSONResponse:
    """Return the credential with its decrypted password. Not cacheable."""
    vault: VaultStore = request.app.state.vault
    cipher: CredentialCipher = request.app.state.cipher
    credential = vault.get_credential(str(credential_id), str(user_id))
    if credential is None:
        raise CredentialNotFoundError()

    plaintext = await run_cpu_bound(cipher.decrypt, credential.password, user_id)
    logger.info("Credential %s revealed to user %s", credential_id, user_id)
    body = CredentialWithPassword(
        **CredentialResponse.from_credential(credential).model_dump(),
        password=plaintext,
    )
    resp = JSONResponse(content=body.model_dump(mode="json"))
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.patch("/credentials/{credential_id}", response_model=CredentialResponse)
async def update_credential(
    request: Request,
    credential_id: uuid.UUID,
    body: CredentialPatch,
    user_id: uuid.UUID = Depends(require_identity),
) -> CredentialResponse:
    vault: VaultStore = request.app.state.vault
    cipher: CredentialCipher = request.app.state.cipher

    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise BadRequestError("No fields to update.")
    for required in ("category_id", "name", "username", "password"):
        if required in updates and updates[required] is None:
            raise BadRequestError(f"{required} cannot be null.")
    if vault.get_credential(str(credential_id), str(user_id)) is None:
        raise CredentialNotFoundError()

    if "category_id" in updates:
        _require_category(vault, updates["category_id"], user_id)
        updates["category_id"] = str(updates["category_id"])
    if "password" in updates:
        updates["password"] = await run_cpu_bound(cipher.encrypt, updates["password"], user_id)

    vault.update_credential(str(credential_id), str(user_id), **updates)
    return CredentialResponse.from_credential(vault.get_credential(str(credential_id), str(user_id)))


@router.delete("/credentials/{credential_id}", status_code=204)
async def delete_credential(
    request: Request,
    credential_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_identity),
) -> Response:
    vault: VaultStore = request.app.state.vault
    if not vault.delete_credential(str(credential_id), str(user_id)):
        raise CredentialNotFoundError()
    return Response(status_code=204)
