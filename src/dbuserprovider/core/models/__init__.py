"""Value types and host-facing interfaces."""

from .host import (
    PASSWORD,
    CacheSnapshot,
    CredentialInput,
    FederatedStorage,
    HostUser,
    RealmContext,
)
from .paging import UNBOUNDED, PagingWindow, normalize

__all__ = [
    "PASSWORD",
    "CacheSnapshot",
    "CredentialInput",
    "FederatedStorage",
    "HostUser",
    "RealmContext",
    "UNBOUNDED",
    "PagingWindow",
    "normalize",
]
