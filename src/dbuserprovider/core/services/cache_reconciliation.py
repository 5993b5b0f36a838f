"""Coherency between the host's cached users and the directory.

Before a password is checked for a user the host served from its cache, the
cached copy may be out of date: the user may have been renamed, changed email,
or been deleted in the directory. The directory is only consulted once the
cached snapshot is older than ``CACHE_FRESHNESS_THRESHOLD``.
"""

from collections.abc import Callable
from datetime import timedelta
from enum import Enum

from loguru import logger
from pydantic import BaseModel, ConfigDict

from dbuserprovider.core.models.host import CacheSnapshot, HostUser

# Maximum snapshot age trusted without re-reading the directory
CACHE_FRESHNESS_THRESHOLD = timedelta(milliseconds=500)


class Freshness(str, Enum):
    SKIPPED = "skipped"
    FRESH = "fresh"
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    GONE = "gone"


class Reconciliation(BaseModel):
    """Outcome of reconciling one cached user.

    ``username`` is the name to validate the credential against, or None when
    the user no longer exists and validation must fail.
    """

    model_config = ConfigDict(frozen=True)

    state: Freshness
    username: str | None
    invalidated: bool = False


class CacheReconciliationPolicy:
    """Decides whether a cached user must be re-read and invalidated.

    Args:
        enabled: ``allow_database_to_overwrite_keycloak``; when off the cached
            user is always trusted
        threshold: Maximum snapshot age trusted without re-reading
    """

    def __init__(
        self, enabled: bool, threshold: timedelta = CACHE_FRESHNESS_THRESHOLD
    ):
        self._enabled = enabled
        self._threshold = threshold

    @property
    def threshold(self) -> timedelta:
        return self._threshold

    def reconcile(
        self,
        user: HostUser,
        snapshot: CacheSnapshot | None,
        fetch: Callable[[str], HostUser | None],
    ) -> Reconciliation:
        """Reconcile ``user`` with the directory before credential validation.

        Args:
            user: The user handle the host passed in (cached username/email)
            snapshot: Host cache entry behind ``user``, or None if not cached
            fetch: Re-reads a user from the directory by host id

        Returns:
            The username to validate against and what happened to the cache
        """
        if not self._enabled or snapshot is None:
            return Reconciliation(state=Freshness.SKIPPED, username=user.username)

        age = snapshot.age()
        if age <= self._threshold:
            return Reconciliation(state=Freshness.FRESH, username=user.username)

        current = fetch(user.id)
        if current is None:
            logger.info("Cached user {} no longer exists in directory, invalidating", user.id)
            snapshot.invalidate()
            return Reconciliation(state=Freshness.GONE, username=None, invalidated=True)

        # Only the identity keys are compared; other attributes refresh on next load
        if user.username != current.username or user.email != current.email:
            logger.info(
                "Cached user {} differs from directory (age={}ms), invalidating",
                user.id,
                int(age.total_seconds() * 1000),
            )
            snapshot.invalidate()
            return Reconciliation(
                state=Freshness.CHANGED, username=current.username, invalidated=True
            )

        return Reconciliation(state=Freshness.UNCHANGED, username=current.username)
