"""Entities exposed by the provider."""

from .user import IdentityRecord, UserAdapter, UserTable, wrap

__all__ = ["IdentityRecord", "UserAdapter", "UserTable", "wrap"]
