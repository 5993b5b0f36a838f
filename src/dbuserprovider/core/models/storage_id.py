"""Host storage ids for federated users: ``f:<component_id>:<external_id>``."""

PREFIX = "f:"


def keycloak_id(component_id: str, external_id: str) -> str:
    return f"{PREFIX}{component_id}:{external_id}"


def external_id(storage_id: str) -> str:
    """Strip the federation prefix; ids without one are already external."""
    if not storage_id.startswith(PREFIX):
        return storage_id
    _, _, rest = storage_id[len(PREFIX):].partition(":")
    return rest
