"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError so callers can catch
every storage failure with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialised or reached.

    Examples:
    - Empty or malformed database URL
    - Database file not writable
    - Session requested before init_database()
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a write violates a database constraint."""

    pass
