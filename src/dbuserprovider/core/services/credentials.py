"""Password credential validation and update."""

from loguru import logger

from dbuserprovider.core.models.host import PASSWORD, CredentialInput
from dbuserprovider.core.repositories.user_repo import UserRepository


class CredentialService:
    """Checks and replaces directory passwords.

    Only the password credential kind is supported; any other kind is declined
    (False) without touching the directory, so the host can defer to the next
    provider.
    """

    supported_types = frozenset({PASSWORD})

    def __init__(self, repository: UserRepository):
        self._repository = repository

    def supports_credential_type(self, credential_type: str | None) -> bool:
        return credential_type in self.supported_types

    def validate(self, username: str | None, credential: CredentialInput) -> bool:
        if not self.supports_credential_type(credential.type):
            logger.debug("Declining credential type {}", credential.type)
            return False
        return self._repository.validate_credentials(username, credential.value)

    def update(self, username: str | None, credential: CredentialInput) -> bool:
        if not self.supports_credential_type(credential.type):
            logger.debug("Declining credential type {}", credential.type)
            return False
        return self._repository.update_credentials(username, credential.value)
