"""Data access layer (repositories) for persistence operations.

Repositories wrap a caller-owned Session, translate SQLAlchemy errors into
PersistenceError subclasses, and return domain models rather than ORM rows.
They never commit; get_session() does that for the caller.
"""

import logging
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pushdesk.domain.models import AuditRecord, Recipient

from .exceptions import DataIntegrityError, PersistenceError
from .schema import NotificationHistoryModel, UserModel

logger = logging.getLogger(__name__)

# Keeps IN (...) lists well under SQLite's bound-parameter limit.
IN_CLAUSE_CHUNK = 500


def _chunked(items: List[str], size: int) -> Iterator[List[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class EndpointRepository:
    """Repository over the users table, the store of push endpoints."""

    def __init__(self, session: Session):
        self.session = session

    def iter_with_endpoint(
        self, account_type: Optional[str] = None, page_size: int = 1000
    ) -> Iterator[List[Recipient]]:
        """Yield pages of recipients whose endpoint is not NULL.

        Pages are ordered by uid and fetched with keyset pagination, so
        concurrent inserts never cause a row to be skipped or repeated.

        Args:
            account_type: Restrict to this account type (None for everyone)
            page_size: Maximum recipients per page

        Yields:
            Non-empty lists of Recipient domain models

        Raises:
            PersistenceError: If a database error occurs
        """
        last_uid: Optional[str] = None
        while True:
            stmt = select(UserModel).where(UserModel.token.is_not(None))
            if account_type is not None:
                stmt = stmt.where(UserModel.account_type == account_type)
            if last_uid is not None:
                stmt = stmt.where(UserModel.uid > last_uid)
            stmt = stmt.order_by(UserModel.uid).limit(page_size)

            try:
                rows = self.session.execute(stmt).scalars().all()
            except SQLAlchemyError as e:
                logger.error(f"Error paging recipients (after uid={last_uid}): {e}", exc_info=True)
                raise PersistenceError(f"Failed to fetch recipients: {e}") from e

            if not rows:
                return

            yield [row.to_domain() for row in rows]

            if len(rows) < page_size:
                return
            last_uid = rows[-1].uid

    def find_by_identities(
        self, identities: Iterable[str], chunk_size: int = IN_CLAUSE_CHUNK
    ) -> List[Recipient]:
        """Look up recipients by identity, in the order the identities were given.

        Unknown identities are omitted from the result.

        Raises:
            PersistenceError: If a database error occurs
        """
        wanted = list(dict.fromkeys(identities))
        found = {}
        try:
            for chunk in _chunked(wanted, chunk_size):
                stmt = select(UserModel).where(UserModel.uid.in_(chunk))
                for row in self.session.execute(stmt).scalars():
                    found[row.uid] = row.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error looking up {len(wanted)} recipients: {e}", exc_info=True)
            raise PersistenceError(f"Failed to look up recipients: {e}") from e

        return [found[identity] for identity in wanted if identity in found]

    def save(self, recipient: Recipient) -> Recipient:
        """Insert or update a recipient and its endpoint.

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If another database error occurs
        """
        try:
            row = self.session.get(UserModel, recipient.identity)
            if row is None:
                row = UserModel(uid=recipient.identity)
                self.session.add(row)
            row.account_type = recipient.account_type
            row.token = recipient.endpoint
            self.session.flush()
            return row.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error saving recipient {recipient.identity}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to save recipient due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error saving recipient {recipient.identity}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save recipient: {e}") from e

    def clear_endpoints(self, endpoints: Iterable[str], chunk_size: int = IN_CLAUSE_CHUNK) -> int:
        """Set token to NULL wherever it currently equals one of the endpoints.

        Matching is by endpoint value, not identity, so a recipient that has
        registered a fresh endpoint in the meantime is left alone. Clearing an
        endpoint that is already gone matches no rows; the operation is
        idempotent and safe to run from concurrent requests.

        Args:
            endpoints: Endpoint values to retire

        Returns:
            Number of rows actually cleared

        Raises:
            PersistenceError: If a database error occurs
        """
        values = sorted(set(endpoints))
        if not values:
            return 0

        cleared = 0
        try:
            for chunk in _chunked(values, chunk_size):
                stmt = (
                    update(UserModel)
                    .where(UserModel.token.in_(chunk))
                    .values(token=None)
                    .execution_options(synchronize_session=False)
                )
                cleared += self.session.execute(stmt).rowcount or 0
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error clearing {len(values)} endpoints: {e}", exc_info=True)
            raise PersistenceError(f"Failed to clear endpoints: {e}") from e

        return cleared


class AuditRepository:
    """Append-only repository over notification_history."""

    def __init__(self, session: Session):
        self.session = session

    def insert(self, record: AuditRecord) -> AuditRecord:
        """Persist a new audit record and return it with its assigned id.

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If another database error occurs
        """
        try:
            row = NotificationHistoryModel.from_domain(record)
            self.session.add(row)
            self.session.flush()
            return row.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error inserting audit record: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to insert audit record due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error inserting audit record: {e}", exc_info=True)
            raise PersistenceError(f"Failed to insert audit record: {e}") from e

    def get(self, record_id: int) -> Optional[AuditRecord]:
        """Return one audit record by id, or None.

        Raises:
            PersistenceError: If a database error occurs
        """
        try:
            row = self.session.get(NotificationHistoryModel, record_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving audit record {record_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve audit record: {e}") from e
        return row.to_domain() if row is not None else None

    def list_recent(self, limit: int = 5) -> List[AuditRecord]:
        """Return the newest audit records first.

        Raises:
            PersistenceError: If a database error occurs
        """
        try:
            stmt = (
                select(NotificationHistoryModel)
                .order_by(NotificationHistoryModel.sent_at.desc(), NotificationHistoryModel.id.desc())
                .limit(limit)
            )
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing audit records: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list audit records: {e}") from e
        return [row.to_domain() for row in rows]
