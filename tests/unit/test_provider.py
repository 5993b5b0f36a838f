"""Tests for the host-facing provider over an in-memory SQLite directory."""

from unittest.mock import patch

import pytest
from sqlmodel import Session

from dbuserprovider.core.exceptions import ConstraintViolation
from dbuserprovider.core.models.host import CredentialInput
from dbuserprovider.entities.user.table import UserTable
from dbuserprovider.provider import DBUserStorageProvider
from tests.fixtures.core import ALICE_PASSWORD, BOB_PASSWORD
from tests.fixtures.host import CachedUser, FakeSnapshot


def _storage_id(user_id) -> str:
    return f"f:test-component:{user_id}"


class TestLookup:
    def test_get_user_by_id(self, provider: DBUserStorageProvider, realm, seeded_users):
        alice, _ = seeded_users

        user = provider.get_user_by_id(realm, _storage_id(alice.id))

        assert user is not None
        assert user.id == _storage_id(alice.id)
        assert user.username == "alice"
        assert user.email == "a@x.com"

    def test_get_user_by_external_id(self, provider: DBUserStorageProvider, realm, seeded_users):
        _, bob = seeded_users

        assert provider.get_user_by_id(realm, str(bob.id)).username == "bob"

    def test_get_missing_user_by_id(self, provider: DBUserStorageProvider, realm, seeded_users):
        assert provider.get_user_by_id(realm, _storage_id(999)) is None

    def test_get_user_by_username(self, provider: DBUserStorageProvider, realm, seeded_users):
        assert provider.get_user_by_username(realm, "bob").email == "b@x.com"
        assert provider.get_user_by_username(realm, "carol") is None

    def test_email_lookup_is_username_lookup(
        self, provider: DBUserStorageProvider, realm, seeded_users
    ):
        assert provider.get_user_by_email(realm, "alice") == provider.get_user_by_username(
            realm, "alice"
        )
        # Email addresses are not matched against the email column
        assert provider.get_user_by_email(realm, "a@x.com") is None


class TestCounts:
    def test_count_variants(self, provider: DBUserStorageProvider, realm, seeded_users):
        assert provider.get_users_count(realm) == 2
        assert provider.get_users_count(realm, "bob") == 1
        assert provider.get_users_count(realm, group_ids={"admins"}) == 2
        assert provider.get_users_count(realm, "bob", group_ids={"admins"}) == 1
        assert provider.get_users_count(realm, params={"email": "a@x.com"}) == 2
        assert provider.get_users_count(realm, include_service_account=False) == 2


class TestListing:
    def test_get_users(self, provider: DBUserStorageProvider, realm, seeded_users):
        assert [u.username for u in provider.get_users(realm)] == ["alice", "bob"]

    def test_get_users_paged(self, provider: DBUserStorageProvider, realm, seeded_users):
        assert [u.username for u in provider.get_users(realm, 0, 1)] == ["alice"]
        assert [u.username for u in provider.get_users(realm, 1, 1)] == ["bob"]

    def test_invalid_paging_returns_everyone(
        self, provider: DBUserStorageProvider, realm, seeded_users
    ):
        assert len(provider.get_users(realm, -1, 1)) == 2
        assert len(provider.get_users(realm, 0, 0)) == 2

    def test_search_by_term(self, provider: DBUserStorageProvider, realm, seeded_users):
        assert [u.username for u in provider.search_for_user(realm, "b@x")] == ["bob"]

    def test_search_by_params_uses_first_value(
        self, provider: DBUserStorageProvider, realm, seeded_users
    ):
        users = provider.search_for_user(realm, {"username": "ali", "email": "b@x.com"})

        assert [u.username for u in users] == ["alice"]

    def test_search_with_empty_params_lists_everyone(
        self, provider: DBUserStorageProvider, realm, seeded_users
    ):
        assert len(provider.search_for_user(realm, {}, 0, 10)) == 2

    def test_unsupported_queries_are_empty(
        self, provider: DBUserStorageProvider, realm, seeded_users
    ):
        assert provider.get_group_members(realm, "group-1") == []
        assert provider.get_group_members(realm, "group-1", 0, 10) == []
        assert provider.search_for_user_by_user_attribute(realm, "email", "a@x.com") == []


class TestCredentialValidation:
    def test_valid_password(self, provider: DBUserStorageProvider, realm, seeded_users):
        alice, _ = seeded_users
        user = CachedUser(id=_storage_id(alice.id), username="alice", email="a@x.com")

        assert provider.is_valid(realm, user, CredentialInput.password(ALICE_PASSWORD))
        assert not provider.is_valid(realm, user, CredentialInput.password(BOB_PASSWORD))

    def test_unsupported_credential_kind(
        self, provider: DBUserStorageProvider, realm, seeded_users
    ):
        user = CachedUser(id=_storage_id(1), username="alice")
        otp = CredentialInput(type="otp", value=ALICE_PASSWORD)

        assert not provider.supports_credential_type("otp")
        assert not provider.is_configured_for(realm, user, "otp")
        assert provider.is_configured_for(realm, user, "password")
        assert not provider.is_valid(realm, user, otp)
        assert not provider.update_credential(realm, user, otp)

    def test_update_then_validate(self, provider: DBUserStorageProvider, realm, seeded_users):
        user = provider.get_user_by_username(realm, "bob")

        assert provider.update_credential(realm, user, CredentialInput.password("rotated"))
        assert provider.is_valid(realm, user, CredentialInput.password("rotated"))
        assert not provider.is_valid(realm, user, CredentialInput.password(BOB_PASSWORD))

    def test_update_rejected_by_hash_function(self, provider_factory, realm, seeded_users):
        provider = provider_factory(hash_function="Blowfish")
        user = provider.get_user_by_username(realm, "alice")

        assert not provider.update_credential(realm, user, CredentialInput.password("x" * 100))

    def test_disableable_credential_types(self, provider: DBUserStorageProvider, realm):
        user = CachedUser(id=_storage_id(1), username="alice")

        provider.disable_credential_type(realm, user, "password")
        assert provider.get_disableable_credential_types(realm, user) == set()


class TestCacheReconciliation:
    @pytest.fixture
    def reconciling_provider(self, provider_factory) -> DBUserStorageProvider:
        return provider_factory(allow_database_to_overwrite_keycloak=True)

    def test_fresh_cache_is_not_refetched(self, reconciling_provider, realm, seeded_users):
        alice, _ = seeded_users
        user = CachedUser(id=_storage_id(alice.id), username="alice", email="a@x.com")
        snapshot = FakeSnapshot(age_ms=400)

        with patch.object(
            reconciling_provider.repository,
            "find_user_by_id",
            wraps=reconciling_provider.repository.find_user_by_id,
        ) as find_by_id:
            valid = reconciling_provider.is_valid(
                realm, user, CredentialInput.password(ALICE_PASSWORD), snapshot
            )

        assert valid
        assert find_by_id.call_count == 0
        snapshot.invalidate.assert_not_called()

    def test_changed_email_invalidates_and_uses_new_username(
        self, reconciling_provider, realm, engine, seeded_users
    ):
        alice, _ = seeded_users
        user = CachedUser(id=_storage_id(alice.id), username="alice", email="a@x.com")
        snapshot = FakeSnapshot(age_ms=600)

        with Session(engine) as session:
            row = session.get(UserTable, alice.id)
            row.username = "alicia"
            row.email = "alicia@x.com"
            session.add(row)
            session.commit()

        with patch.object(
            reconciling_provider.repository,
            "validate_credentials",
            wraps=reconciling_provider.repository.validate_credentials,
        ) as validate:
            valid = reconciling_provider.is_valid(
                realm, user, CredentialInput.password(ALICE_PASSWORD), snapshot
            )

        assert valid
        snapshot.invalidate.assert_called_once_with()
        validate.assert_called_once_with("alicia", ALICE_PASSWORD)

    def test_deleted_user_invalidates_and_fails(
        self, reconciling_provider, realm, seeded_users
    ):
        alice, _ = seeded_users
        user = CachedUser(id=_storage_id(alice.id), username="alice", email="a@x.com")
        snapshot = FakeSnapshot(age_ms=600)
        reconciling_provider.repository.remove_user(str(alice.id))

        valid = reconciling_provider.is_valid(
            realm, user, CredentialInput.password(ALICE_PASSWORD), snapshot
        )

        assert not valid
        snapshot.invalidate.assert_called_once_with()

    def test_unchanged_user_keeps_cache(self, reconciling_provider, realm, seeded_users):
        alice, _ = seeded_users
        user = CachedUser(id=_storage_id(alice.id), username="alice", email="a@x.com")
        snapshot = FakeSnapshot(age_ms=600)

        assert reconciling_provider.is_valid(
            realm, user, CredentialInput.password(ALICE_PASSWORD), snapshot
        )
        snapshot.invalidate.assert_not_called()

    def test_reconciliation_off_trusts_cache(self, provider, realm, seeded_users):
        alice, _ = seeded_users
        user = CachedUser(id=_storage_id(alice.id), username="alice", email="stale@x.com")
        snapshot = FakeSnapshot(age_ms=60_000)

        assert provider.is_valid(realm, user, CredentialInput.password(ALICE_PASSWORD), snapshot)
        snapshot.invalidate.assert_not_called()


class TestRegistration:
    def test_add_user(self, provider: DBUserStorageProvider, realm, seeded_users):
        user = provider.add_user(realm, "carol")

        assert user.username == "carol"
        assert user.id == _storage_id(user.external_id)
        assert provider.get_user_by_username(realm, "carol").external_id == user.external_id

    def test_add_duplicate_user(self, provider: DBUserStorageProvider, realm, seeded_users):
        with pytest.raises(ConstraintViolation):
            provider.add_user(realm, "bob")

    def test_remove_user(self, provider: DBUserStorageProvider, realm, seeded_users):
        user = provider.get_user_by_username(realm, "alice")

        assert provider.remove_user(realm, user)
        assert provider.get_user_by_username(realm, "alice") is None
        assert provider.get_users_count(realm) == 1

    def test_remove_missing_user(self, provider: DBUserStorageProvider, realm, seeded_users):
        ghost = CachedUser(id=_storage_id(999), username="ghost")

        assert not provider.remove_user(realm, ghost)
        assert provider.get_users_count(realm) == 2

    def test_remove_declined_by_configuration(self, provider_factory, realm, seeded_users):
        provider = provider_factory(allow_keycloak_delete=False)
        user = provider.get_user_by_username(realm, "alice")

        assert not provider.remove_user(realm, user)
        assert provider.get_user_by_username(realm, "alice") is not None


class TestLifecycle:
    def test_hooks_do_not_raise(self, provider: DBUserStorageProvider, realm):
        provider.pre_remove_realm(realm)
        provider.pre_remove_group(realm, "group-1")
        provider.pre_remove_role(realm, "role-1")
        provider.close()
