"""
vault/store.py -- SQLAlchemy Core persistence for categories and credentials.

Pattern: Repository + Data Mapper (same as auth/store.py).

Ownership: every query is scoped by user_id in its WHERE clause. A caller
who guesses another user's category or credential id gets None / False,
exactly as if the row did not exist [IDOR guard].

Partial updates: update_category() / update_credential() take keyword
arguments and pass them to update().values(**fields) after checking them
against a column whitelist, so column names never come from request input.

Layer rule: no imports from api/. auth/store.make_engine is shared so both
stores get the same SQLite settings.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Index, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.store import make_engine
from vault.models import Category, Credential

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_categories = Table(
    "categories",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), nullable=False),
    Column("name", String(255), nullable=False),
    Column("description", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_categories_user", "user_id"),
)

_credentials = Table(
    "credentials",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), nullable=False),
    Column("category_id", String(36), ForeignKey("categories.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("username", String(255), nullable=False),
    Column("password", Text, nullable=False),  # encrypted-secret string
    Column("website", Text),
    Column("notes", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_credentials_user", "user_id"),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class VaultStore:
    """Repository for Category and Credential entities."""

    _CATEGORY_FIELDS: frozenset = frozenset({"name", "description"})
    _CREDENTIAL_FIELDS: frozenset = frozenset({"category_id", "name", "username", "password", "website", "notes"})

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def create_category(self, category: Category) -> str:
        """Insert a new category and return its assigned UUID string."""
        category_id = str(uuid.uuid4())
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _categories.insert().values(
                    id=category_id,
                    user_id=category.user_id,
                    name=category.name,
                    description=category.description,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return category_id

    def get_category(self, category_id: str, user_id: str) -> Optional[Category]:
        """Fetch one of the user's categories. Returns None if absent or not theirs."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _categories.select().where((_categories.c.id == category_id) & (_categories.c.user_id == user_id))
            ).fetchone()
        return _row_to_category(row) if row is not None else None

    def list_categories(self, user_id: str) -> list[Category]:
        """Return the user's categories ordered by name."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _categories.select().where(_categories.c.user_id == user_id).order_by(_categories.c.name)
            ).fetchall()
        return [_row_to_category(r) for r in rows]

    def update_category(self, category_id: str, user_id: str, /, **fields) -> bool:
        """Update name/description. Returns False if not found or not owned."""
        unknown = set(fields) - self._CATEGORY_FIELDS
        if unknown:
            raise ValueError(f"Unknown category fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _categories.update()
                .where((_categories.c.id == category_id) & (_categories.c.user_id == user_id))
                .values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def count_credentials_in_category(self, category_id: str, user_id: str) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count())
                .select_from(_credentials)
                .where((_credentials.c.category_id == category_id) & (_credentials.c.user_id == user_id))
            ).scalar()
        return result or 0

    def delete_category(self, category_id: str, user_id: str) -> bool:
        """Delete a category. Returns False if not found or not owned.

        Callers must check the category is empty first (see
        count_credentials_in_category); the route refuses to orphan
        credentials.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _categories.delete().where((_categories.c.id == category_id) & (_categories.c.user_id == user_id))
            )
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def create_credential(self, credential: Credential) -> str:
        """Insert a credential (password already encrypted) and return its UUID."""
        credential_id = str(uuid.uuid4())
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _credentials.insert().values(
                    id=credential_id,
                    user_id=credential.user_id,
                    category_id=credential.category_id,
                    name=credential.name,
                    username=credential.username,
                    password=credential.password,
                    website=credential.website,
                    notes=credential.notes,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return credential_id

    def get_credential(self, credential_id: str, user_id: str) -> Optional[Credential]:
        """Fetch one of the user's credentials. Returns None if absent or not theirs."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _credentials.select().where(
                    (_credentials.c.id == credential_id) & (_credentials.c.user_id == user_id)
                )
            ).fetchone()
        return _row_to_credential(row) if row is not None else None

    def list_credentials(self, user_id: str, category_id: Optional[str] = None) -> list[Credential]:
        """Return the user's credentials ordered by name, optionally for one category."""
        query = _credentials.select().where(_credentials.c.user_id == user_id)
        if category_id is not None:
            query = query.where(_credentials.c.category_id == category_id)
        with self.engine.connect() as conn:
            rows = conn.execute(query.order_by(_credentials.c.name)).fetchall()
        return [_row_to_credential(r) for r in rows]

    def update_credential(self, credential_id: str, user_id: str, /, **fields) -> bool:
        """Update any subset of the whitelisted credential fields.

        A new password must already be encrypted. Returns False if not found
        or not owned.
        """
        unknown = set(fields) - self._CREDENTIAL_FIELDS
        if unknown:
            raise ValueError(f"Unknown credential fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _credentials.update()
                .where((_credentials.c.id == credential_id) & (_credentials.c.user_id == user_id))
                .values(updated_at=_now_iso(), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_credential(self, credential_id: str, user_id: str) -> bool:
        """Delete a credential. Returns False if not found or not owned."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _credentials.delete().where(
                    (_credentials.c.id == credential_id) & (_credentials.c.user_id == user_id)
                )
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_category(row) -> Category:
    return Category(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_credential(row) -> Credential:
    return Credential(
        id=row.id,
        user_id=row.user_id,
        category_id=row.category_id,
        name=row.name,
        username=row.username,
        password=row.password,
        website=row.website,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
