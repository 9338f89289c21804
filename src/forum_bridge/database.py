"""
Database engine and session utilities.

Both the source reader and the target platform client talk to their
databases through SQLAlchemy engines created here.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, event, pool, text
from sqlalchemy.orm import Session, sessionmaker

from forum_bridge.client.exceptions import ConfigurationError
from forum_bridge.utils.logging import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for each new SQLite connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_sqlite_memory(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in database_url


def create_database_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine with appropriate settings.

    Args:
        database_url: Database connection URL
        echo: Whether to log SQL statements

    Returns:
        SQLAlchemy Engine instance

    Raises:
        ConfigurationError: If the URL is empty or the dialect is unavailable
    """
    if not database_url:
        raise ConfigurationError("Database URL cannot be empty")

    try:
        if database_url.startswith("sqlite"):
            # In-memory databases live as long as their single connection
            poolclass = pool.StaticPool if _is_sqlite_memory(database_url) else pool.NullPool
            engine = create_engine(
                database_url,
                echo=echo,
                poolclass=poolclass,
                connect_args={"check_same_thread": False},
            )
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        else:
            engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

        logger.debug("database_engine_created", dialect=engine.dialect.name)
        return engine

    except Exception as e:
        logger.error("database_engine_failed", error=str(e))
        raise ConfigurationError(f"Failed to create database engine: {e}") from e


def validate_database_connection(engine: Engine) -> bool:
    """
    Check that a connection can be established.

    Returns:
        True if a trivial query succeeds, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    except Exception as e:
        logger.error("database_connection_validation_failed", error=str(e))
        return False


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Commits on success, rolls back on exception and always closes the
    session. Exceptions propagate unchanged so callers can classify them.
    """
    session = session_factory()

    try:
        yield session
        session.commit()

    except Exception:
        session.rollback()
        raise

    finally:
        session.close()
