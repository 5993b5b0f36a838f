"""User storage provider backed by a relational directory.

``DBUserStorageProvider`` is the object the host calls: user lookup, listing
and search with paging, counts, password validation and update, and user
creation and removal. It holds no mutable state of its own; concurrent calls
share only the frozen configuration and the pooled engine.
"""

from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

from dbuserprovider.core.models.host import (
    CacheSnapshot,
    CredentialInput,
    FederatedStorage,
    HostUser,
    RealmContext,
)
from dbuserprovider.core.models.paging import PagingWindow, normalize
from dbuserprovider.core.models.storage_id import external_id
from dbuserprovider.core.repositories.user_repo import UserRepository
from dbuserprovider.core.services.cache_reconciliation import CacheReconciliationPolicy
from dbuserprovider.core.services.credentials import CredentialService
from dbuserprovider.core.services.database.db_session import DbSessionService
from dbuserprovider.entities.user.adapter import IdentityRecord, UserAdapter, wrap
from dbuserprovider.runtime.config.config_data import ProviderConfig


class DBUserStorageProvider:
    """Host-facing facade over the directory repository.

    Args:
        config: Provider configuration, captured for the provider's lifetime
        db: Session factory for the directory
        federated_storage: Host attribute storage used when wrapping users
        reconciliation: Cache policy; defaults to one driven by
            ``allow_database_to_overwrite_keycloak``
    """

    def __init__(
        self,
        config: ProviderConfig,
        db: DbSessionService,
        federated_storage: FederatedStorage,
        reconciliation: CacheReconciliationPolicy | None = None,
    ):
        self._config = config
        self._federated_storage = federated_storage
        self._repository = UserRepository(db, config.queries, config.hash_function)
        self._credentials = CredentialService(self._repository)
        self._reconciliation = reconciliation or CacheReconciliationPolicy(
            enabled=config.allow_database_to_overwrite_keycloak
        )

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def repository(self) -> UserRepository:
        return self._repository

    def _to_user(self, realm: RealmContext, record: IdentityRecord) -> UserAdapter:
        return wrap(
            record,
            realm=realm,
            component_id=self._config.component_id,
            federated_storage=self._federated_storage,
            overwrite=self._config.allow_database_to_overwrite_keycloak,
        )

    def _to_users(
        self, realm: RealmContext, records: list[IdentityRecord]
    ) -> list[UserAdapter]:
        return [self._to_user(realm, record) for record in records]

    # Credentials

    def supports_credential_type(self, credential_type: str) -> bool:
        return self._credentials.supports_credential_type(credential_type)

    def is_configured_for(
        self, realm: RealmContext, user: HostUser, credential_type: str
    ) -> bool:
        return self.supports_credential_type(credential_type)

    def is_valid(
        self,
        realm: RealmContext,
        user: HostUser,
        credential: CredentialInput,
        snapshot: CacheSnapshot | None = None,
    ) -> bool:
        """Validate a credential, reconciling a cached user with the directory first.

        Args:
            realm: Realm of the login
            user: User handle, possibly served from the host cache
            credential: Presented credential
            snapshot: Host cache entry behind ``user``, if any

        Returns:
            True if the credential is valid for the user as currently stored
        """
        logger.info("isValid user credential: userId={}", user.id)

        if not self.supports_credential_type(credential.type):
            return False

        outcome = self._reconciliation.reconcile(
            user, snapshot, lambda user_id: self.get_user_by_id(realm, user_id)
        )
        if outcome.username is None:
            return False
        return self._credentials.validate(outcome.username, credential)

    def update_credential(
        self, realm: RealmContext, user: HostUser, credential: CredentialInput
    ) -> bool:
        logger.info("updating credential: realm={} user={}", realm.id, user.username)
        return self._credentials.update(user.username, credential)

    def disable_credential_type(
        self, realm: RealmContext, user: HostUser, credential_type: str
    ) -> None:
        pass

    def get_disableable_credential_types(
        self, realm: RealmContext, user: HostUser
    ) -> set[str]:
        return set()

    # Lookup

    def get_user_by_id(self, realm: RealmContext, user_id: str) -> UserAdapter | None:
        logger.info("lookup user by id: realm={} userId={}", realm.id, user_id)

        record = self._repository.find_user_by_id(external_id(user_id))
        if record is None:
            logger.debug("findUserById returned nothing, expect login error")
            return None
        return self._to_user(realm, record)

    def get_user_by_username(
        self, realm: RealmContext, username: str
    ) -> UserAdapter | None:
        logger.info("lookup user by username: realm={} username={}", realm.id, username)

        record = self._repository.find_user_by_username(username)
        if record is None:
            return None
        return self._to_user(realm, record)

    def get_user_by_email(self, realm: RealmContext, email: str) -> UserAdapter | None:
        """Look up by email; the directory is searched by username with the same value."""
        logger.info("lookup user by email: realm={} email={}", realm.id, email)
        return self.get_user_by_username(realm, email)

    # Counts

    def get_users_count(
        self,
        realm: RealmContext,
        search: str | None = None,
        *,
        group_ids: set[str] | None = None,
        params: Mapping[str, str] | None = None,
        include_service_account: bool = True,
    ) -> int:
        """Count users, by search term or unfiltered.

        Group and parameter filters are not supported and count everyone.
        """
        return self._repository.get_users_count(search)

    # Listing and search

    def _search(
        self, realm: RealmContext, search: str | None, window: PagingWindow | None
    ) -> list[UserAdapter]:
        return self._to_users(realm, self._repository.find_users(search, window))

    def get_users(
        self,
        realm: RealmContext,
        first_result: int | None = None,
        max_results: int | None = None,
    ) -> list[UserAdapter]:
        logger.info(
            "list users: realm={} firstResult={} maxResults={}",
            realm.id,
            first_result,
            max_results,
        )
        return self._search(realm, None, normalize(first_result, max_results))

    def search_for_user(
        self,
        realm: RealmContext,
        search: str | Mapping[str, str] | None,
        first_result: int | None = None,
        max_results: int | None = None,
    ) -> list[UserAdapter]:
        """Search by term, or by the first value of a parameter map."""
        if isinstance(search, Mapping):
            search = next(iter(search.values()), None)

        logger.info(
            "search for users: realm={} search={} firstResult={} maxResults={}",
            realm.id,
            search,
            first_result,
            max_results,
        )
        return self._search(realm, search, normalize(first_result, max_results))

    def get_group_members(
        self,
        realm: RealmContext,
        group_id: str,
        first_result: int | None = None,
        max_results: int | None = None,
    ) -> list[UserAdapter]:
        logger.info("search for group members: realm={} groupId={}", realm.id, group_id)
        return []

    def search_for_user_by_user_attribute(
        self, realm: RealmContext, attr_name: str, attr_value: str
    ) -> list[UserAdapter]:
        logger.info(
            "search for users by attribute: realm={} attrName={} attrValue={}",
            realm.id,
            attr_name,
            attr_value,
        )
        return []

    # Registration

    def add_user(self, realm: RealmContext, username: str) -> UserAdapter:
        """Create a minimal directory row and return it as a host user.

        Raises:
            ConstraintViolation: The username already exists
        """
        inserted_id = self._repository.add_user(username)
        logger.info("added user: realm={} userId={} username={}", realm.id, inserted_id, username)
        return self._to_user(realm, {"id": inserted_id, "username": username})

    def remove_user(self, realm: RealmContext, user: HostUser) -> bool:
        if not self._config.allow_keycloak_delete:
            logger.info("delete declined by configuration: realm={} userId={}", realm.id, user.id)
            return False

        removed = self._repository.remove_user(external_id(user.id))
        if removed:
            logger.info(
                "deleted keycloak user: realm={} userId={} username={}",
                realm.id,
                user.id,
                user.username,
            )
        return removed

    # Lifecycle

    def pre_remove_realm(self, realm: RealmContext) -> None:
        logger.info("pre-remove realm: {}", realm.id)

    def pre_remove_group(self, realm: RealmContext, group_id: str) -> None:
        logger.info("pre-remove group: realm={} groupId={}", realm.id, group_id)

    def pre_remove_role(self, realm: RealmContext, role_id: str) -> None:
        logger.info("pre-remove role: realm={} roleId={}", realm.id, role_id)

    def close(self) -> None:
        logger.debug("closing")
