"""
api/routes/v1/categories.py -- Category CRUD.

Routes (all require auth):
  GET    /api/v1/categories
  POST   /api/v1/categories
  GET    /api/v1/categories/{category_id}
  PATCH  /api/v1/categories/{category_id}
  DELETE /api/v1/categories/{category_id}    -- 409 while it still holds credentials

IDOR guard: every store call passes the caller's id; other users' rows are
indistinguishable from missing ones (404).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request, Response

from api.models import CategoryCreate, CategoryPatch, CategoryResponse
from auth.dependencies import require_identity
from core.errors import BadRequestError, ConflictError, NotFoundError
from vault.models import Category
from vault.store import VaultStore

router = APIRouter()


class CategoryNotFoundError(NotFoundError):
    message = "Category not found."


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    request: Request,
    user_id: uuid.UUID = Depends(require_identity),
) -> list[CategoryResponse]:
    vault: VaultStore = request.app.state.vault
    return [CategoryResponse.from_category(c) for c in vault.list_categories(str(user_id))]


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    request: Request,
    body: CategoryCreate,
    user_id: uuid.UUID = Depends(require_identity),
) -> CategoryResponse:
    vault: VaultStore = request.app.state.vault
    category_id = vault.create_category(Category(user_id=str(user_id), name=body.name, description=body.description))
    return CategoryResponse.from_category(vault.get_category(category_id, str(user_id)))


@router.get("/categories/{category_id}", response_model=CategoryResponse)
async def get_category(
    request: Request,
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_identity),
) -> CategoryResponse:
    vault: VaultStore = request.app.state.vault
    category = vault.get_category(str(category_id), str(user_id))
    if category is None:
        raise CategoryNotFoundError()
    return CategoryResponse.from_category(category)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    request: Request,
    category_id: uuid.UUID,
    body: CategoryPatch,
    user_id: uuid.UUID = Depends(require_identity),
) -> CategoryResponse:
    vault: VaultStore = request.app.state.vault
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise BadRequestError("No fields to update.")
    if "name" in updates and updates["name"] is None:
        raise BadRequestError("Category name cannot be null.")
    if not vault.update_category(str(category_id), str(user_id), **updates):
        raise CategoryNotFoundError()
    return CategoryResponse.from_category(vault.get_category(str(category_id), str(user_id)))


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    request: Request,
    category_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_identity),
) -> Response:
    vault: VaultStore = request.app.state.vault
    if vault.get_category(str(category_id), str(user_id)) is None:
        raise CategoryNotFoundError()
    if vault.count_credentials_in_category(str(category_id), str(user_id)) > 0:
        raise ConflictError("Category still contains credentials. Move or delete them first.")
    vault.delete_category(str(category_id), str(user_id))
    return Response(status_code=204)
