"""Stand-ins for the host's realm, cached users and cache entries."""

from dataclasses import dataclass, field
from datetime import timedelta
from unittest.mock import Mock

import pytest


@dataclass(frozen=True)
class Realm:
    id: str


@dataclass(frozen=True)
class CachedUser:
    """A user as the host's cache remembers it."""

    id: str
    username: str | None
    email: str | None = None


@dataclass
class FakeSnapshot:
    """Cache entry with a fixed age and a recording invalidate()."""

    age_ms: int
    invalidate: Mock = field(default_factory=Mock)

    def age(self) -> timedelta:
        return timedelta(milliseconds=self.age_ms)


@pytest.fixture
def realm() -> Realm:
    return Realm(id="test-realm")
