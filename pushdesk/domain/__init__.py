"""Domain models for delivery requests, recipients and audit records."""

from .models import AuditRecord, DeliveryRequest, Recipient, TargetKind, TargetSelector

__all__ = [
    "AuditRecord",
    "DeliveryRequest",
    "Recipient",
    "TargetKind",
    "TargetSelector",
]
