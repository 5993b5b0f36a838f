"""Builds providers that share one directory engine."""

from __future__ import annotations

from pathlib import Path

from loguru import logger
from sqlalchemy.engine import Engine

from dbuserprovider.core.exceptions import ConfigurationError, RepositoryError
from dbuserprovider.core.models.host import FederatedStorage
from dbuserprovider.core.repositories.user_repo import UserRepository
from dbuserprovider.core.services.database.db_session import DbSessionService
from dbuserprovider.provider import DBUserStorageProvider
from dbuserprovider.runtime.config.config_data import ConfigData
from dbuserprovider.runtime.config.config_template import (
    DEFAULT_CONFIG_PATH,
    load_templated_yaml,
)


class DBUserStorageProviderFactory:
    """Owns the engine for one configured directory and hands out providers.

    Providers are cheap: one may be created per host request.
    """

    def __init__(self, config: ConfigData, engine: Engine | None = None):
        self._config = config
        self._db = DbSessionService(config.database, engine=engine)

    @classmethod
    def from_yaml(cls, path: Path = DEFAULT_CONFIG_PATH) -> DBUserStorageProviderFactory:
        return cls(load_templated_yaml(path))

    @property
    def config(self) -> ConfigData:
        return self._config

    @property
    def db(self) -> DbSessionService:
        return self._db

    def create(self, federated_storage: FederatedStorage) -> DBUserStorageProvider:
        return DBUserStorageProvider(self._config.provider, self._db, federated_storage)

    def validate_configuration(self) -> int:
        """Run the count query to prove the directory and queries are usable.

        Returns:
            Number of users in the directory

        Raises:
            ConfigurationError: The directory cannot be queried
        """
        provider = self._config.provider
        repository = UserRepository(self._db, provider.queries, provider.hash_function)
        try:
            count = repository.get_users_count()
        except RepositoryError as e:
            raise ConfigurationError(
                f"Unable to query directory {self._config.database.sanitized_connection_string}: {e}"
            ) from e

        logger.info("Directory reachable, {} users", count)
        return count

    def close(self) -> None:
        self._db.dispose()
