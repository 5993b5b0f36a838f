"""Data-access layer for the external user directory.

Every statement comes from ``QueryConfig`` and is executed with bound
parameters. Reads return fresh ``IdentityRecord`` dicts; writes run in their
own transaction.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import literal_column, select, text
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from dbuserprovider.core.exceptions import (
    ConnectionFailure,
    ConstraintViolation,
    RepositoryError,
    WriteError,
)
from dbuserprovider.core.models.paging import PagingWindow
from dbuserprovider.core.security.hashing import hash_password, verify_password
from dbuserprovider.core.services.database.db_session import DbSessionService
from dbuserprovider.entities.user.adapter import IdentityRecord
from dbuserprovider.runtime.config.config_data import QueryConfig

# Column every read query must return; also the stable sort key for paging
ID_COLUMN = "id"

# LIKE escape character declared by the search query (`escape '!'`)
SEARCH_ESCAPE = "!"


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError as e:
        raise ConstraintViolation(operation, str(e.orig)) from e
    except (OperationalError, InterfaceError, PoolTimeoutError) as e:
        raise ConnectionFailure(operation, str(e)) from e
    except SQLAlchemyError as e:
        raise RepositoryError(operation, str(e)) from e


def search_pattern(search: str | None) -> str | None:
    """Turn a host search term into a LIKE pattern; None means "everyone".

    ``*`` is the host's wildcard and matches any run of characters. LIKE
    metacharacters in the term are escaped with ``SEARCH_ESCAPE`` and match
    literally.
    """
    if search is None:
        return None
    term = search.strip()
    if term in ("", "*"):
        return None
    for special in (SEARCH_ESCAPE, "%", "_"):
        term = term.replace(special, SEARCH_ESCAPE + special)
    return f"%{term.replace('*', '%')}%"


def _read_map(row) -> IdentityRecord:
    return {
        str(key): (None if value is None else str(value))
        for key, value in row.items()
    }


class UserRepository:
    """Parameterized queries against the directory."""

    def __init__(self, db: DbSessionService, queries: QueryConfig, hash_function: str):
        self._db = db
        self._queries = queries
        self._hash_function = hash_function

    def _fetch_one(self, operation: str, sql: str, params: dict) -> IdentityRecord | None:
        with _translate_errors(operation), self._db.session_scope() as session:
            row = session.exec(text(sql), params=params).mappings().first()
        if row is None:
            logger.debug("{} found nothing for {}", operation, list(params))
            return None
        return _read_map(row)

    def find_user_by_id(self, external_id: str) -> IdentityRecord | None:
        return self._fetch_one(
            "find_user_by_id", self._queries.find_by_id, {"id": external_id}
        )

    def find_user_by_username(self, username: str) -> IdentityRecord | None:
        return self._fetch_one(
            "find_user_by_username",
            self._queries.find_by_username,
            {"username": username},
        )

    def get_users_count(self, search: str | None = None) -> int:
        """Count all users, or those matching ``search``."""
        pattern = search_pattern(search)
        if pattern is None:
            sql, params = self._queries.count, {}
        else:
            sql = f"select count(*) from ({self._queries.find_by_search_term}) matches"
            params = {"search": pattern}

        with _translate_errors("get_users_count"), self._db.session_scope() as session:
            return int(session.exec(text(sql), params=params).scalar_one())

    def find_users(
        self, search: str | None = None, window: PagingWindow | None = None
    ) -> list[IdentityRecord]:
        """List users, optionally filtered by ``search`` and restricted to ``window``.

        Rows are ordered by id so that consecutive windows over unchanged data
        neither skip nor repeat users.
        """
        pattern = search_pattern(search)
        if pattern is None:
            sql, params = self._queries.list_all, {}
        else:
            sql, params = self._queries.find_by_search_term, {"search": pattern}

        statement = (
            select(literal_column("*"))
            .select_from(text(f"({sql}) directory_users"))
            .order_by(literal_column(ID_COLUMN))
        )
        if window is not None:
            if window.offset:
                statement = statement.offset(window.offset)
            if window.limit is not None:
                statement = statement.limit(window.limit)

        with _translate_errors("find_users"), self._db.session_scope() as session:
            rows = session.exec(statement, params=params).mappings().all()
        return [_read_map(row) for row in rows]

    def find_password_hash(self, username: str) -> str | None:
        with _translate_errors("find_password_hash"), self._db.session_scope() as session:
            return session.exec(
                text(self._queries.find_password_hash), params={"username": username}
            ).scalar_one_or_none()

    def validate_credentials(self, username: str | None, password: str) -> bool:
        """True iff ``username`` has a stored hash and ``password`` verifies against it."""
        if not username:
            return False
        stored = self.find_password_hash(username)
        return verify_password(self._hash_function, stored, password)

    def update_credentials(self, username: str | None, password: str) -> bool:
        """Replace the stored hash for ``username``.

        Returns False when there is no such user or the configured hash function
        cannot hash the password.
        """
        if not username:
            return False
        try:
            password_hash = hash_password(self._hash_function, password)
        except ValueError as e:
            logger.warning("Password for {} rejected by {}: {}", username, self._hash_function, e)
            return False
        with _translate_errors("update_credentials"), self._db.session_scope() as session:
            result = session.exec(
                text(self._queries.update_password_hash),
                params={"username": username, "password_hash": password_hash},
            )
            return result.rowcount > 0

    def add_user(self, username: str) -> str:
        """Insert a minimal row for ``username`` and return its external id.

        Raises:
            ConstraintViolation: The directory rejected the row (e.g. duplicate)
            WriteError: The insert affected no rows
        """
        with _translate_errors("add_user"), self._db.session_scope() as session:
            result = session.exec(
                text(self._queries.insert_user), params={"username": username}
            )
            if result.returns_rows:
                inserted_id = result.scalar_one_or_none()
            else:
                if result.rowcount == 0:
                    raise WriteError("add_user", f"no row inserted for {username}")
                row = session.exec(
                    text(self._queries.find_by_username),
                    params={"username": username},
                ).mappings().first()
                inserted_id = row[ID_COLUMN] if row is not None else None

        if inserted_id is None:
            raise WriteError("add_user", f"no id returned for {username}")
        logger.debug("Inserted directory user id={}", inserted_id)
        return str(inserted_id)

    def remove_user(self, external_id: str) -> bool:
        """Delete the addressed user; False when no row was removed."""
        with _translate_errors("remove_user"), self._db.session_scope() as session:
            result = session.exec(
                text(self._queries.delete_user), params={"id": external_id}
            )
            return result.rowcount > 0
