"""Host-facing view of a directory user."""

from collections.abc import Mapping

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from dbuserprovider.core.models.host import FederatedStorage, RealmContext
from dbuserprovider.core.models.storage_id import keycloak_id

IdentityRecord = dict[str, str | None]

_FIRST_NAME_KEYS = ("firstName", "first_name")
_LAST_NAME_KEYS = ("lastName", "last_name")


class UserAdapter(BaseModel):
    """A directory row presented as a host user.

    Built fresh for each lookup; attribute values are the merge of what the
    directory returned and what the host already stores for the user.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Host storage id (f:<component>:<external id>)")
    external_id: str = Field(description="Primary key in the directory")
    username: str | None = Field(description="Directory username")
    realm_id: str = Field(description="Realm the user was looked up in")
    attributes: dict[str, list[str]] = Field(default_factory=dict)

    def get_first_attribute(self, *names: str) -> str | None:
        for name in names:
            values = self.attributes.get(name)
            if values:
                return values[0]
        return None

    @property
    def email(self) -> str | None:
        return self.get_first_attribute("email")

    @property
    def first_name(self) -> str | None:
        return self.get_first_attribute(*_FIRST_NAME_KEYS)

    @property
    def last_name(self) -> str | None:
        return self.get_first_attribute(*_LAST_NAME_KEYS)


def _trim_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def wrap(
    record: Mapping[str, str | None],
    *,
    realm: RealmContext,
    component_id: str,
    federated_storage: FederatedStorage,
    overwrite: bool,
) -> UserAdapter:
    """Convert a directory record into a host user.

    With ``overwrite`` every attribute in the record replaces the host's stored
    value. Without it the host's stored values win and the record only fills in
    attributes the host does not hold yet.

    Never raises for missing attributes; failures of the host's attribute
    storage are logged and the directory values are used as-is.
    """
    external = str(record["id"])
    username = _trim_to_none(record.get("username"))
    user_id = keycloak_id(component_id, external)

    try:
        stored = federated_storage.get_attributes(realm.id, user_id)
    except Exception:
        logger.exception("Reading federated attributes failed, username={}", username)
        stored = {}

    attributes = {name: list(values) for name, values in stored.items()}
    for name, raw in record.items():
        existing = stored.get(name) or []
        if existing and not overwrite:
            continue

        value = _trim_to_none(raw)
        values = [value] if value is not None else []
        attributes[name] = values
        if values == existing:
            continue

        try:
            federated_storage.set_attribute(realm.id, user_id, name, values)
        except Exception:
            logger.exception(
                "Writing federated attribute failed, username={} attribute={}",
                username,
                name,
            )

    return UserAdapter(
        id=user_id,
        external_id=external,
        username=username,
        realm_id=realm.id,
        attributes=attributes,
    )
