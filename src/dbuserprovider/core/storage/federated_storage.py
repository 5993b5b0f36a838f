"""In-memory federated attribute storage.

The host normally supplies its own attribute store; this implementation backs
the CLI and tests.
"""

from __future__ import annotations

from dbuserprovider.core.models.host import FederatedStorage


class InMemoryFederatedStorage(FederatedStorage):
    """Attribute storage held in a dict keyed by (realm, user)."""

    def __init__(self):
        self._data: dict[tuple[str, str], dict[str, list[str]]] = {}

    def get_attributes(self, realm_id: str, user_id: str) -> dict[str, list[str]]:
        attributes = self._data.get((realm_id, user_id), {})
        return {name: list(values) for name, values in attributes.items()}

    def set_attribute(
        self, realm_id: str, user_id: str, name: str, values: list[str]
    ) -> None:
        self._data.setdefault((realm_id, user_id), {})[name] = list(values)
