"""
tests/test_stores.py -- Unit tests for auth/store.py and vault/store.py.

Covers:
  - UserStore: create/get, unique username/email, whitelisted updates,
    TOTP state persistence, last_login stamping
  - VaultStore: owner-scoped category and credential CRUD, category
    filtering, credential counting, unknown-field rejection
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import TotpState, User
from auth.store import UserStore
from vault.models import Category, Credential
from vault.store import VaultStore

# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def users() -> UserStore:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def vault() -> VaultStore:
    s = VaultStore("sqlite:///:memory:")
    yield s
    s.close()


def _user(name: str = "alice") -> User:
    return User(username=name, email=f"{name}@example.com", password_hash="$argon2id$placeholder")


# ---------------------------------------------------------------------------
# UserStore
# ---------------------------------------------------------------------------


class TestUserStore:
    def test_create_and_get(self, users: UserStore) -> None:
        uid = users.create_user(_user())
        by_id = users.get_by_id(uid)
        by_name = users.get_by_username("alice")
        assert by_id == by_name
        assert by_id.id == uid
        assert by_id.totp_state is TotpState.unset
        assert by_id.totp_secret is None
        assert by_id.last_login is None
        assert by_id.created_at == by_id.updated_at

    def test_missing_user(self, users: UserStore) -> None:
        assert users.get_by_id("00000000-0000-0000-0000-000000000000") is None
        assert users.get_by_username("nobody") is None

    def test_username_lookup_is_case_sensitive(self, users: UserStore) -> None:
        users.create_user(_user())
        assert users.get_by_username("ALICE") is None

    def test_duplicate_username(self, users: UserStore) -> None:
        users.create_user(_user())
        with pytest.raises(IntegrityError):
            users.create_user(User(username="alice", email="other@example.com", password_hash="h"))

    def test_duplicate_email(self, users: UserStore) -> None:
        users.create_user(_user())
        with pytest.raises(IntegrityError):
            users.create_user(User(username="other", email="alice@example.com", password_hash="h"))

    def test_update_user(self, users: UserStore) -> None:
        uid = users.create_user(_user())
        assert users.update_user(uid, email="new@example.com", password_hash="new-hash") is True
        updated = users.get_by_id(uid)
        assert updated.email == "new@example.com"
        assert updated.password_hash == "new-hash"

    def test_update_unknown_field(self, users: UserStore) -> None:
        uid = users.create_user(_user())
        with pytest.raises(ValueError):
            users.update_user(uid, totp_secret="SNEAKY")

    def test_update_cannot_target_owner_columns(self, users: UserStore) -> None:
        uid = users.create_user(_user())
        with pytest.raises(ValueError):
            users.update_user(uid, user_id="someone-else")
        with pytest.raises(ValueError):
            users.update_user(uid, id="00000000-0000-0000-0000-000000000000")

    def test_update_missing_user(self, users: UserStore) -> None:
        assert users.update_user("00000000-0000-0000-0000-000000000000", email="x@example.com") is False

    def test_set_totp(self, users: UserStore) -> None:
        uid = users.create_user(_user())
        users.set_totp(uid, TotpState.pending, "JBSWY3DPEHPK3PXP")
        pending = users.get_by_id(uid)
        assert pending.totp_state is TotpState.pending
        assert pending.totp_secret == "JBSWY3DPEHPK3PXP"
        assert pending.totp_enabled is False

        users.set_totp(uid, TotpState.enabled, "JBSWY3DPEHPK3PXP")
        assert users.get_by_id(uid).totp_enabled is True

        users.set_totp(uid, TotpState.disabled, None)
        disabled = users.get_by_id(uid)
        assert disabled.totp_state is TotpState.disabled
        assert disabled.totp_secret is None

    def test_update_last_login(self, users: UserStore) -> None:
        uid = users.create_user(_user())
        users.update_last_login(uid)
        assert users.get_by_id(uid).last_login is not None

    def test_ping(self, users: UserStore) -> None:
        assert users.ping() is True


# ---------------------------------------------------------------------------
# VaultStore
# ---------------------------------------------------------------------------

OWNER = "11111111-1111-4111-8111-111111111111"
INTRUDER = "22222222-2222-4222-8222-222222222222"


def _credential(category_id: str, name: str = "GitHub", owner: str = OWNER) -> Credential:
    return Credential(
        user_id=owner,
        category_id=category_id,
        name=name,
        username="octocat",
        password="c2FsdHNhbHRzYWx0c2FsdA:AAAA",
        website="https://github.com",
    )


class TestVaultCategories:
    def test_create_get_list(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work", description="Job logins"))
        category = vault.get_category(cid, OWNER)
        assert category.name == "Work"
        assert category.description == "Job logins"
        assert [c.id for c in vault.list_categories(OWNER)] == [cid]

    def test_other_user_sees_nothing(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        assert vault.get_category(cid, INTRUDER) is None
        assert vault.list_categories(INTRUDER) == []
        assert vault.update_category(cid, INTRUDER, name="Pwned") is False
        assert vault.delete_category(cid, INTRUDER) is False
        assert vault.get_category(cid, OWNER).name == "Work"

    def test_update(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        assert vault.update_category(cid, OWNER, name="Office", description=None) is True
        updated = vault.get_category(cid, OWNER)
        assert updated.name == "Office"
        assert updated.description is None

    def test_update_unknown_field(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        with pytest.raises(ValueError):
            vault.update_category(cid, OWNER, user_id=INTRUDER)

    def test_count_and_delete(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        assert vault.count_credentials_in_category(cid, OWNER) == 0
        vault.create_credential(_credential(cid))
        assert vault.count_credentials_in_category(cid, OWNER) == 1
        assert vault.delete_category(cid, OWNER) is True
        assert vault.get_category(cid, OWNER) is None


class TestVaultCredentials:
    def test_create_get(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        cred_id = vault.create_credential(_credential(cid))
        cred = vault.get_credential(cred_id, OWNER)
        assert cred.name == "GitHub"
        assert cred.category_id == cid
        assert cred.password == "c2FsdHNhbHRzYWx0c2FsdA:AAAA"
        assert cred.notes is None

    def test_list_ordered_and_filtered(self, vault: VaultStore) -> None:
        work = vault.create_category(Category(user_id=OWNER, name="Work"))
        home = vault.create_category(Category(user_id=OWNER, name="Home"))
        vault.create_credential(_credential(work, name="Jira"))
        vault.create_credential(_credential(work, name="GitLab"))
        vault.create_credential(_credential(home, name="Bank"))

        assert [c.name for c in vault.list_credentials(OWNER)] == ["Bank", "GitLab", "Jira"]
        assert [c.name for c in vault.list_credentials(OWNER, work)] == ["GitLab", "Jira"]

    def test_owner_scoping(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        cred_id = vault.create_credential(_credential(cid))
        assert vault.get_credential(cred_id, INTRUDER) is None
        assert vault.list_credentials(INTRUDER) == []
        assert vault.update_credential(cred_id, INTRUDER, name="Pwned") is False
        assert vault.delete_credential(cred_id, INTRUDER) is False

    def test_update(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        cred_id = vault.create_credential(_credential(cid))
        assert vault.update_credential(cred_id, OWNER, notes="rotated", website=None) is True
        cred = vault.get_credential(cred_id, OWNER)
        assert cred.notes == "rotated"
        assert cred.website is None

    def test_update_unknown_field(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        cred_id = vault.create_credential(_credential(cid))
        with pytest.raises(ValueError):
            vault.update_credential(cred_id, OWNER, user_id=INTRUDER)

    def test_delete(self, vault: VaultStore) -> None:
        cid = vault.create_category(Category(user_id=OWNER, name="Work"))
        cred_id = vault.create_credential(_credential(cid))
        assert vault.delete_credential(cred_id, OWNER) is True
        assert vault.get_credential(cred_id, OWNER) is None
