"""Core domain models for push delivery.

This module defines the data structures shared by the delivery pipeline and
the persistence layer:
- TargetSelector: who a delivery request is aimed at
- DeliveryRequest: validated, truncated, immutable admin request
- Recipient: a recipient identity and its current endpoint
- AuditRecord: append-only summary of one delivery request
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from pushdesk.utils.text import clamp_text, is_blank
from pushdesk.utils.timestamps import ensure_utc

# Display limits recommended by the push provider.
TITLE_MAX_LENGTH = 65
BODY_MAX_LENGTH = 240

# Keeps the whole message well under the provider's 4 KB payload limit.
URL_MAX_LENGTH = 1024


class TargetKind(str, Enum):
    """How a delivery request selects its recipients."""

    ALL = "all"
    SEGMENT = "segment"
    EXPLICIT = "explicit"


class TargetSelector(BaseModel):
    """Targeting criteria for a delivery request.

    - ALL: every recipient with an endpoint
    - SEGMENT: recipients in a named, configured segment
    - EXPLICIT: a list of recipient identities (de-duplicated, order kept)
    """

    kind: TargetKind
    segment: Optional[str] = None
    identities: Tuple[str, ...] = ()

    model_config = {"frozen": True}

    @field_validator("segment")
    @classmethod
    def strip_segment(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace from the segment name."""
        if v is None:
            return None
        return v.strip() or None

    @field_validator("identities", mode="before")
    @classmethod
    def normalize_identities(cls, v: Any) -> Any:
        """Strip identities, drop blanks and duplicates, keep first-seen order."""
        if isinstance(v, str) or v is None:
            return v
        if not all(isinstance(identity, str) for identity in v):
            return v
        stripped = (identity.strip() for identity in v)
        return tuple(dict.fromkeys(identity for identity in stripped if identity))

    @model_validator(mode="after")
    def validate_shape(self):
        """Each kind carries exactly the fields it needs."""
        if self.kind == TargetKind.SEGMENT and not self.segment:
            raise ValueError("Segment target requires a segment name")
        if self.kind == TargetKind.EXPLICIT and not self.identities:
            raise ValueError("Please select at least one recipient")
        if self.kind != TargetKind.SEGMENT and self.segment:
            raise ValueError(f"{self.kind.value} target cannot name a segment")
        if self.kind != TargetKind.EXPLICIT and self.identities:
            raise ValueError(f"{self.kind.value} target cannot list identities")
        return self

    @classmethod
    def everyone(cls) -> "TargetSelector":
        return cls(kind=TargetKind.ALL)

    @classmethod
    def for_segment(cls, name: str) -> "TargetSelector":
        return cls(kind=TargetKind.SEGMENT, segment=name)

    @classmethod
    def explicit(cls, identities: List[str]) -> "TargetSelector":
        return cls(kind=TargetKind.EXPLICIT, identities=tuple(identities))

    @classmethod
    def parse(cls, text: str) -> "TargetSelector":
        """Parse the CLI form: 'all', 'segment:<name>' or 'explicit:<id>,<id>'.

        Raises:
            ValueError: If the text is not one of the accepted forms
        """
        raw = (text or "").strip()
        kind, _, argument = raw.partition(":")
        kind = kind.strip().lower()

        if kind == TargetKind.ALL.value and not argument:
            return cls.everyone()
        if kind == TargetKind.SEGMENT.value:
            return cls.for_segment(argument)
        if kind == TargetKind.EXPLICIT.value:
            return cls.explicit(argument.split(","))

        raise ValueError(
            f"Invalid target '{text}'. Use 'all', 'segment:<name>' or 'explicit:<id>,<id>'"
        )

    def summary(self) -> str:
        """Short description stored on the audit record."""
        if self.kind == TargetKind.SEGMENT:
            return f"segment:{self.segment}"
        return self.kind.value


class DeliveryRequest(BaseModel):
    """An accepted admin request to push one notification.

    Title and body must contain non-whitespace text; they are stripped and
    then silently truncated to the provider display limits. Limits can be
    lowered through the validation context keys ``title_max_length`` and
    ``body_max_length``.
    """

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    body: str = Field(..., min_length=1, max_length=BODY_MAX_LENGTH)
    target: TargetSelector
    sent_by: Optional[str] = Field(None, description="Admin identity that issued the request")
    image_url: Optional[str] = Field(
        None, max_length=URL_MAX_LENGTH, description="Optional notification image"
    )
    action_url: Optional[str] = Field(
        None, max_length=URL_MAX_LENGTH, description="Sent to clients as click_action"
    )

    model_config = {"frozen": True}

    @field_validator("title", "body", mode="before")
    @classmethod
    def require_and_truncate(cls, v: Any, info: ValidationInfo) -> Any:
        """Reject blank text, then strip and clamp to the display limit."""
        if v is not None and not isinstance(v, str):
            return v
        if is_blank(v):
            raise ValueError(f"{info.field_name.capitalize()} is required")

        context = info.context or {}
        if info.field_name == "title":
            limit = min(context.get("title_max_length", TITLE_MAX_LENGTH), TITLE_MAX_LENGTH)
        else:
            limit = min(context.get("body_max_length", BODY_MAX_LENGTH), BODY_MAX_LENGTH)
        return clamp_text(v.strip(), limit)

    @field_validator("sent_by", "image_url", "action_url")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank optional strings as absent."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: Optional[str]) -> Optional[str]:
        """Images must be fetched by devices over HTTPS."""
        if v is not None and not v.lower().startswith("https://"):
            raise ValueError("image_url must be an https:// URL")
        return v


class Recipient(BaseModel):
    """A recipient identity paired with its current delivery endpoint."""

    identity: str = Field(..., min_length=1)
    endpoint: Optional[str] = None
    account_type: Optional[str] = None

    model_config = {"frozen": True}

    def has_usable_endpoint(self, min_length: int) -> bool:
        """True when the endpoint is present and not obviously malformed.

        The endpoint is checked exactly as stored, since that is the value
        sent to the provider and matched when retiring it. Surrounding
        whitespace makes it unusable.
        """
        if self.endpoint is None or self.endpoint != self.endpoint.strip():
            return False
        return len(self.endpoint) >= min_length


class AuditRecord(BaseModel):
    """Immutable record of one delivery request and its aggregate outcome."""

    id: Optional[int] = Field(None, description="Assigned by the audit store on insert")
    title: str
    body: str
    target_summary: str
    recipient_identities: List[str] = Field(default_factory=list)
    delivered_count: int = Field(0, ge=0)
    failed_count: int = Field(0, ge=0)
    targeted_count: int = Field(0, ge=0)
    partial: bool = False
    sent_by: Optional[str] = None
    created_at: datetime

    model_config = {"frozen": True}

    @field_validator("created_at")
    @classmethod
    def ensure_created_at_utc(cls, v: datetime) -> datetime:
        """Store creation time as UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_counts(self):
        """Delivered plus failed always equals the number targeted."""
        if self.delivered_count + self.failed_count != self.targeted_count:
            raise ValueError(
                f"delivered ({self.delivered_count}) + failed ({self.failed_count}) "
                f"must equal targeted ({self.targeted_count})"
            )
        return self
