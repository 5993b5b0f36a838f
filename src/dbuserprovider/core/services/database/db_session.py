"""Database engine and session factory for the external user directory."""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, create_engine

from dbuserprovider.runtime.config.config_data import DatabaseConfig


class DbSessionService:
    def __init__(self, db_config: DatabaseConfig, engine: Engine | None = None):
        """Initialize the directory engine and session factory.

        Args:
            db_config: Connection and pool configuration
            engine: Pre-built engine, used instead of creating one (tests)
        """
        self._config = db_config
        if engine is not None:
            self._engine = engine
            return

        logger.info("Setting up directory engine for {}", db_config.sanitized_connection_string)
        engine_kwargs = {
            "pool_pre_ping": True,  # Validate connections before use
            "echo": False,
            "connect_args": self._get_connect_args(db_config),
        }

        # In-memory SQLite pools reject overflow and timeout arguments
        if db_config.dialect != "sqlite":
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                }
            )

        self._engine = create_engine(db_config.connection_string, **engine_kwargs)

    def _get_connect_args(self, db_config: DatabaseConfig) -> dict:
        """Get database-specific connection arguments."""
        connect_args = {}

        if db_config.dialect == "postgresql":
            connect_args.update(
                {
                    "application_name": "dbuserprovider",
                    "connect_timeout": db_config.connect_timeout,
                }
            )
        elif db_config.dialect == "mysql":
            connect_args["connect_timeout"] = db_config.connect_timeout
        elif db_config.dialect == "sqlite":
            connect_args.update(
                {
                    "check_same_thread": False,
                    "timeout": db_config.connect_timeout,  # Lock timeout
                }
            )

        return connect_args

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the directory engine."""
        return Session(self._engine, expire_on_commit=False, autoflush=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Run a unit of work in one transaction: commit on success, roll back on error."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                "Directory transaction failed: {}: {}",
                type(e).__name__,
                e,
            )
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Perform a health check on the directory connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error("Directory health check failed: {}: {}", type(e).__name__, e)
            return False

    def get_pool_status(self) -> dict:
        """Get current connection pool status for monitoring."""
        pool = self._engine.pool
        return {
            "size": getattr(pool, "size", lambda: 0)(),
            "checked_in": getattr(pool, "checkedin", lambda: 0)(),
            "checked_out": getattr(pool, "checkedout", lambda: 0)(),
            "overflow": getattr(pool, "overflow", lambda: 0)(),
        }

    def dispose(self) -> None:
        """Close every pooled connection."""
        self._engine.dispose()
