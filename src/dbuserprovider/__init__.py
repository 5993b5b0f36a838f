"""Relational database user storage provider.

Exposes users held in an external SQL directory to a host identity provider:
lookup, search and paging, password validation and update, and user creation
and removal, while keeping the host's cached users coherent with the database.
"""

__version__ = "0.1.0"
