"""
SQLAlchemy ORM Base Configuration
Provides declarative base and session management for ORM models.

The engine lives in database.connection; the session factory binds to it
lazily so importing the models never opens a database connection.
"""

from sqlalchemy.orm import DeclarativeBase, scoped_session, sessionmaker


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


def _get_engine():
    """
    Get the SQLAlchemy engine from database.connection.

    Lazy import to avoid circular dependencies during module initialization.
    """
    from database.connection import db
    return db.get_engine()


# Session factory for manual session creation (scheduler thread, scripts)
SessionLocal = sessionmaker(
    expire_on_commit=False,  # Allow access to objects after commit
    autoflush=True,
)

# Scoped session for Flask request context (thread-local session management)
db_session = scoped_session(SessionLocal)


def bind_session_factory(force: bool = False) -> None:
    """Bind the session factory to the shared engine (once)."""
    if force or SessionLocal.kw.get('bind') is None:
        SessionLocal.configure(bind=_get_engine())


def create_session():
    """
    Factory for creating sessions outside Flask context (scheduler, scripts).

    Usage:
        session = create_session()
        try:
            # Do work
            session.commit()
        except Exception as e:
            session.rollback()
            raise
        finally:
            session.close()

    Returns:
        SQLAlchemy Session instance
    """
    bind_session_factory()
    return SessionLocal()
