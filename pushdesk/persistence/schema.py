"""Database schema definition and ORM models.

Two tables back the delivery subsystem:
- users: recipient identity, account type and current push endpoint
  (the Endpoint Store)
- notification_history: one append-only row per delivery request
  (the Audit Store)
"""

import logging

from sqlalchemy import JSON, Boolean, Column, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from pushdesk.domain.models import AuditRecord, Recipient
from pushdesk.utils.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

Base = declarative_base()


class UserModel(Base):
    """ORM model for the users table.

    The token column holds the push endpoint; NULL means no usable endpoint.
    """

    __tablename__ = "users"

    uid = Column(String(128), primary_key=True, nullable=False)
    account_type = Column(String(50), nullable=True)
    token = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_users_account_type", "account_type"),
        Index("idx_users_token", "token"),
    )

    def to_domain(self) -> Recipient:
        return Recipient(identity=self.uid, endpoint=self.token, account_type=self.account_type)


class NotificationHistoryModel(Base):
    """ORM model for the notification_history table (audit log)."""

    __tablename__ = "notification_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(65), nullable=False)
    message = Column(String(240), nullable=False)
    target = Column(String(255), nullable=False)
    recipient_uids = Column(JSON, nullable=False, default=list)
    sent_by = Column(String(128), nullable=True)
    delivered_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    targeted_count = Column(Integer, nullable=False, default=0)
    partial = Column(Boolean, nullable=False, default=False)
    # ISO 8601 string, see pushdesk.utils.timestamps
    sent_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_notification_history_sent_at", "sent_at"),)

    def to_domain(self) -> AuditRecord:
        return AuditRecord(
            id=self.id,
            title=self.title,
            body=self.message,
            target_summary=self.target,
            recipient_identities=list(self.recipient_uids or []),
            delivered_count=self.delivered_count,
            failed_count=self.failed_count,
            targeted_count=self.targeted_count,
            partial=bool(self.partial),
            sent_by=self.sent_by,
            created_at=parse_timestamp(self.sent_at),
        )

    @classmethod
    def from_domain(cls, record: AuditRecord) -> "NotificationHistoryModel":
        return cls(
            title=record.title,
            message=record.body,
            target=record.target_summary,
            recipient_uids=list(record.recipient_identities),
            sent_by=record.sent_by,
            delivered_count=record.delivered_count,
            failed_count=record.failed_count,
            targeted_count=record.targeted_count,
            partial=record.partial,
            sent_at=format_timestamp(record.created_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes that do not exist yet (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(sorted(tables))}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
