"""Directory user package.

- UserAdapter / wrap: host-facing view of a directory row
- UserTable: reference schema for the default queries
"""

from .adapter import IdentityRecord, UserAdapter, wrap
from .table import UserTable

__all__ = ["IdentityRecord", "UserAdapter", "UserTable", "wrap"]
