"""Database connection and session management.

The engine and session factory are module-level singletons created by
init_database() at startup. Delivery code obtains short-lived sessions via
get_session(); each worker thread uses its own session.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker

from pushdesk.logging import get_logger

from .exceptions import DatabaseConnectionError

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None

logger = get_logger(__name__, component="database")


def init_database(database_url: str) -> None:
    """Create the engine, verify connectivity and create missing tables.

    Call once during startup. Calling it again replaces the previous engine.

    Args:
        database_url: SQLAlchemy URL (e.g. "sqlite:///./data/pushdesk.db")

    Raises:
        DatabaseConnectionError: If the URL is invalid or the database is unreachable

    Example:
        >>> init_database("sqlite:///./data/pushdesk.db")
    """
    global _engine, _session_factory

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    logger.info(
        "Initializing database",
        extra={"event": "database.initializing", "database_url": _redact_url(database_url)},
    )

    try:
        is_sqlite = database_url.startswith("sqlite")
        if is_sqlite:
            _ensure_sqlite_directory(database_url)

        engine = create_engine(
            database_url,
            pool_pre_ping=True,
            # Delivery fans out post-processing writes across threads
            connect_args={"check_same_thread": False, "timeout": 30} if is_sqlite else {},
        )
        if is_sqlite:
            _configure_sqlite(engine)

        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()

        from .schema import create_schema

        create_schema(engine)

    except DatabaseConnectionError:
        raise
    except Exception as e:
        error_msg = f"Failed to initialize database: {e}"
        logger.error(error_msg, exc_info=True)
        raise DatabaseConnectionError(error_msg) from e

    if _engine is not None:
        _engine.dispose()

    _engine = engine
    _session_factory = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)

    logger.info(
        "Database initialized",
        extra={"event": "database.initialised", "database_url": _redact_url(database_url)},
    )


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    try:
        database = make_url(database_url).database
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    if not database or database == ":memory:":
        return

    parent = Path(database).parent
    if not parent.exists():
        logger.info(f"Creating database directory: {parent}")
        parent.mkdir(parents=True, exist_ok=True)


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def _redact_url(url: str) -> str:
    """Hide the password in a database URL before logging it."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<invalid url>"


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error.

    Raises:
        DatabaseConnectionError: If init_database() has not been called

    Example:
        >>> with get_session() as session:
        ...     EndpointRepository(session).clear_endpoints({"stale-token"})
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_session()"
        )

    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.warning(
            f"Database session rolled back: {e}",
            extra={"event": "database.session.rolled_back", "error_type": type(e).__name__},
        )
        raise
    finally:
        session.close()


def get_engine() -> Engine:
    """Return the active engine.

    Raises:
        DatabaseConnectionError: If init_database() has not been called
    """
    if _engine is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_engine()"
        )
    return _engine


def close_database() -> None:
    """Dispose of the engine; safe to call more than once."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connections closed", extra={"event": "database.closed"})
