"""
Wait Time Tracker - SQL Dialect Helpers
Small helpers that let repositories issue native upserts and recognise
duplicate-key failures on MySQL (production), PostgreSQL and SQLite (tests).
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

# MySQL ER_DUP_ENTRY
MYSQL_DUPLICATE_ENTRY = 1062
# PostgreSQL unique_violation
POSTGRES_UNIQUE_VIOLATION = '23505'


def dialect_name(session: Session) -> str:
    """Name of the dialect the session is bound to ('mysql', 'sqlite', ...)."""
    return session.get_bind().dialect.name


def dialect_insert(session: Session, model):
    """
    Build an INSERT construct that supports the dialect's native upsert.

    MySQL inserts expose on_duplicate_key_update(); SQLite and PostgreSQL
    inserts expose on_conflict_do_update().

    Args:
        session: Session whose bind decides the dialect
        model: ORM model class to insert into

    Returns:
        Dialect-specific Insert construct

    Raises:
        NotImplementedError: For dialects without a native upsert
    """
    name = dialect_name(session)
    if name == 'mysql':
        from sqlalchemy.dialects.mysql import insert
    elif name == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    elif name == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    else:
        raise NotImplementedError(f"Upsert not supported for dialect '{name}'")
    return insert(model)


def is_duplicate_key_error(error: Exception) -> bool:
    """
    Check whether an exception is a unique-constraint violation.

    Args:
        error: Exception raised by a flush or execute

    Returns:
        True for duplicate-key failures on any supported dialect
    """
    if not isinstance(error, IntegrityError):
        return False

    orig = error.orig
    args = getattr(orig, 'args', ())
    if args and args[0] == MYSQL_DUPLICATE_ENTRY:
        return True
    if getattr(orig, 'pgcode', None) == POSTGRES_UNIQUE_VIOLATION:
        return True
    return 'UNIQUE constraint failed' in str(orig)
