"""Persistence layer for the endpoint store and the audit log.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - EndpointRepository: recipient lookups and bulk endpoint clearing
    - AuditRepository: append-only delivery audit records

    # Exceptions
    - PersistenceError, DatabaseConnectionError, DataIntegrityError

Example usage:
    >>> from pushdesk.persistence import init_database, get_session, AuditRepository
    >>> init_database("sqlite:///./data/pushdesk.db")
    >>> with get_session() as session:
    ...     recent = AuditRepository(session).list_recent(limit=5)
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError
from .repositories import AuditRepository, EndpointRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "EndpointRepository",
    "AuditRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
