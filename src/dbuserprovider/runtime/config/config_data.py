"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
Every model is frozen: a provider captures its configuration once at construction.
"""

from __future__ import annotations

from typing import Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

SUPPORTED_HASH_FUNCTIONS = (
    "MD5",
    "SHA-1",
    "SHA-256",
    "SHA-384",
    "SHA-512",
    "PBKDF2-SHA256",
    "Blowfish",
    "Argon2",
)


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database connection and pool configuration."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(
        default="sqlite:///./directory.db",
        description="SQLAlchemy URL of the external user directory",
    )
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=5, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    connect_timeout: int = Field(
        default=10, description="Driver connect timeout in seconds"
    )
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )

    @property
    def connection_string(self) -> str:
        """Construct the connection string, filling in the password from the environment if configured."""
        from sqlalchemy.engine import make_url

        base_url = make_url(self.url)
        if not self.password_env_var:
            return base_url.render_as_string(hide_password=False)

        import os

        password = os.getenv(self.password_env_var)
        if password is None:
            raise ValueError(f"Environment variable {self.password_env_var} not set")

        if base_url.password:
            logger.warning(
                "Database URL contains a password but password_env_var is set; "
                "using the password from the environment."
            )
        return base_url.set(password=password).render_as_string(hide_password=False)

    @property
    def sanitized_connection_string(self) -> str:
        """Connection string safe to write to logs."""
        from sqlalchemy.engine import make_url

        return make_url(self.url).render_as_string(hide_password=True)

    @property
    def dialect(self) -> str:
        from sqlalchemy.engine import make_url

        return make_url(self.url).get_backend_name()


class QueryConfig(BaseModel):
    """SQL statements used to read and write the directory.

    Statements use named bind parameters. Read queries must return at least
    ``id`` and ``username`` columns; every other column becomes an attribute.
    """

    model_config = ConfigDict(frozen=True)

    count: str = Field(
        default="select count(*) from users",
        description="Total number of users",
    )
    list_all: str = Field(
        default="select id, username, email, first_name, last_name from users",
        description="All users",
    )
    find_by_id: str = Field(
        default="select id, username, email, first_name, last_name from users where id = :id",
        description="A single user by external id (:id)",
    )
    find_by_username: str = Field(
        default="select id, username, email, first_name, last_name from users where username = :username",
        description="A single user by username (:username)",
    )
    find_by_search_term: str = Field(
        default="select id, username, email, first_name, last_name from users "
        "where upper(username) like upper(:search) escape '!' or upper(email) like upper(:search) escape '!'",
        description="Users matching a search pattern (:search, LIKE with escape '!')",
    )
    find_password_hash: str = Field(
        default="select password_hash from users where username = :username",
        description="Stored password hash (:username)",
    )
    update_password_hash: str = Field(
        default="update users set password_hash = :password_hash where username = :username",
        description="Overwrite the stored password hash (:username, :password_hash)",
    )
    insert_user: str = Field(
        default="insert into users (username) values (:username)",
        description="Insert a minimal user row (:username)",
    )
    delete_user: str = Field(
        default="delete from users where id = :id",
        description="Delete a single user by external id (:id)",
    )

    @field_validator("*")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("query must not be blank")
        return value.strip()


class ProviderConfig(BaseModel):
    """Per-instance provider configuration captured at construction."""

    model_config = ConfigDict(frozen=True)

    component_id: str = Field(
        default="dbuserprovider",
        description="Identifier the host uses to build storage ids",
    )
    hash_function: str = Field(
        default="Argon2", description="Algorithm used for stored password hashes"
    )
    allow_database_to_overwrite_keycloak: bool = Field(
        default=False,
        description="Database values override host-stored attributes and cached users are reconciled",
    )
    allow_keycloak_delete: bool = Field(
        default=True, description="Allow the host to delete users from the directory"
    )
    queries: QueryConfig = Field(
        default_factory=QueryConfig, description="Directory SQL statements"
    )

    @field_validator("hash_function")
    @classmethod
    def _known_hash_function(cls, value: str) -> str:
        if value not in SUPPORTED_HASH_FUNCTIONS:
            raise ValueError(
                f"Unsupported hash function '{value}'; expected one of {', '.join(SUPPORTED_HASH_FUNCTIONS)}"
            )
        return value


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    provider: ProviderConfig = Field(
        default_factory=ProviderConfig, description="Provider configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
