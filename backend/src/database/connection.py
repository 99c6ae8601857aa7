"""
Wait Time Tracker - Database Connection Management
Provides SQLAlchemy connection pooling and ORM session management.

MySQL (via PyMySQL) is the production target. DATABASE_URL overrides the
DB_* settings, which is how local runs and tests point at SQLite.
"""

from contextlib import contextmanager
from sqlalchemy import create_engine, text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.engine import Engine, Connection, URL, make_url
from sqlalchemy.orm import Session
from typing import Generator, Optional

from utils.config import (
    DATABASE_URL, DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD,
    DB_POOL_SIZE, DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING,
    config
)
from utils.logger import logger, log_database_error


class DatabaseConnection:
    """
    Manages database connections with connection pooling.

    Features:
    - Connection pooling (10 connections + 20 overflow) for MySQL
    - Automatic connection recycling (every hour)
    - Health checks before connection use (pool_pre_ping)
    - Shared single connection for in-memory SQLite
    """

    def __init__(self, url: Optional[str] = None):
        self._url = url
        self._engine: Engine = None

    def _build_url(self):
        if self._url:
            return make_url(self._url)
        if DATABASE_URL:
            return make_url(DATABASE_URL)
        # URL.create() keeps the password out of logs
        return URL.create(
            drivername="mysql+pymysql",
            username=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            database=DB_NAME,
            query={
                "charset": "utf8mb4",
                "init_command": "SET time_zone='+00:00'",  # Force UTC for all connections
            },
        )

    def get_engine(self) -> Engine:
        """
        Get or create the SQLAlchemy engine.

        Returns:
            SQLAlchemy Engine instance

        Raises:
            DatabaseConnectionError: If the engine cannot be created
        """
        if self._engine is None:
            try:
                url = self._build_url()

                if url.get_backend_name() == 'sqlite':
                    # One shared connection so in-memory databases survive across sessions/threads
                    self._engine = create_engine(
                        url,
                        poolclass=StaticPool,
                        connect_args={"check_same_thread": False},
                        echo=False,
                    )
                else:
                    self._engine = create_engine(
                        url,
                        poolclass=QueuePool,
                        pool_size=DB_POOL_SIZE,
                        max_overflow=DB_POOL_MAX_OVERFLOW,
                        pool_recycle=DB_POOL_RECYCLE,
                        pool_pre_ping=DB_POOL_PRE_PING,
                        echo=False,
                        hide_parameters=True,
                    )

                logger.info("Database connection pool initialized", extra={
                    "backend": url.get_backend_name(),
                    "database": url.database,
                    "environment": config.environment
                })

            except Exception as e:
                log_database_error(e, "Failed to create database engine")
                raise DatabaseConnectionError(f"Failed to create database engine: {e}")

        return self._engine

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """
        Context manager for raw Core connections.

        Yields:
            SQLAlchemy Connection object
        """
        connection = self.get_engine().connect()
        try:
            yield connection
            connection.commit()
        except Exception as e:
            connection.rollback()
            log_database_error(e, "Transaction failed, rolled back")
            raise
        finally:
            connection.close()

    def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            with self.get_connection() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            return True
        except Exception as e:
            logger.error("Database connection test failed", extra={
                "error": str(e)
            })
            return False

    def close(self):
        """Close all connections in the pool."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection pool closed")


class DatabaseConnectionError(Exception):
    """Raised when database connection fails."""
    pass


# Global database connection instance
db = DatabaseConnection()


def test_database_connection() -> bool:
    """Test database connectivity."""
    return db.test_connection()


def init_schema() -> None:
    """Create every table registered on the declarative base (idempotent)."""
    from models import Base
    Base.metadata.create_all(db.get_engine())
    logger.info("Database schema initialized", extra={
        "tables": sorted(Base.metadata.tables.keys())
    })


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for ORM database sessions.

    Sessions are automatically committed on success or rolled back on error.

    Yields:
        SQLAlchemy Session object

    Example:
        >>> from database.repositories.metadata_repository import MetadataRepository
        >>> with get_db_session() as session:
        ...     repo = MetadataRepository(session)
        ...     ride = repo.get_by_ride_id(138)
    """
    from models.base import db_session, bind_session_factory

    bind_session_factory()
    session = db_session()

    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        log_database_error(e, "ORM transaction failed, rolled back")
        raise
    finally:
        session.close()
        db_session.remove()  # Remove scoped session to prevent connection leaks


def create_db_session() -> Session:
    """
    Create a new ORM session (for the scheduler thread and scripts).

    Unlike get_db_session(), the caller manages commit/rollback/close.

    Returns:
        SQLAlchemy Session object (must be manually closed)
    """
    from models.base import create_session
    return create_session()
