"""Interfaces of the host identity provider that the provider consumes.

The host owns realms, cached users and federated attribute storage; the
provider only sees them through these protocols.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

PASSWORD = "password"


class RealmContext(Protocol):
    """The realm a host call is made in."""

    @property
    def id(self) -> str: ...


class HostUser(Protocol):
    """A user handle as the host sees it, possibly served from its cache."""

    @property
    def id(self) -> str: ...

    @property
    def username(self) -> str | None: ...

    @property
    def email(self) -> str | None: ...


class CacheSnapshot(Protocol):
    """Host-owned cache entry backing a ``HostUser``.

    The provider never creates or refreshes a snapshot; it reads its age and
    may ask the host to drop it.
    """

    def age(self) -> timedelta: ...

    def invalidate(self) -> None: ...


class FederatedStorage(Protocol):
    """Attribute store the host keeps for federated users."""

    def get_attributes(self, realm_id: str, user_id: str) -> dict[str, list[str]]: ...

    def set_attribute(
        self, realm_id: str, user_id: str, name: str, values: list[str]
    ) -> None: ...


class CredentialInput(BaseModel):
    """A credential presented by the host: a kind tag plus its secret."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(description="Credential kind, e.g. 'password'")
    value: str = Field(repr=False, description="Secret presented by the user")

    @classmethod
    def password(cls, value: str) -> CredentialInput:
        return cls(type=PASSWORD, value=value)
