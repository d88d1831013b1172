"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

# Provider ceiling for a single multicast call.
PROVIDER_MAX_BATCH = 500


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class SegmentConfig(BaseModel):
    """A named recipient segment, selected by account type."""

    name: str = Field(..., min_length=1, description="Segment name used in target selectors")
    account_type: str = Field(
        ..., min_length=1, description="Value of the recipient account_type attribute"
    )

    @field_validator("name", "account_type")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace; reject whitespace-only values."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


def _default_segments() -> List[SegmentConfig]:
    return [
        SegmentConfig(name="seekers", account_type="seeker"),
        SegmentConfig(name="companies", account_type="employer"),
    ]


class DeliveryConfig(BaseModel):
    """Batching, concurrency and payload limits for push delivery."""

    max_batch_size: int = Field(
        PROVIDER_MAX_BATCH,
        ge=1,
        le=PROVIDER_MAX_BATCH,
        description="Endpoints per provider call (provider ceiling is 500)",
    )
    max_concurrency: int = Field(
        4, ge=1, le=32, description="Maximum provider calls in flight at once"
    )
    min_endpoint_length: int = Field(
        11, ge=1, description="Endpoints shorter than this are treated as malformed"
    )
    title_max_length: int = Field(65, ge=1, le=65, description="Title is truncated to this length")
    body_max_length: int = Field(240, ge=1, le=240, description="Body is truncated to this length")
    page_size: int = Field(
        1000, ge=1, le=10000, description="Rows per page when resolving recipients"
    )
    delivery_timeout: Optional[str] = Field(
        None, description="Overall dispatch deadline per request (e.g. '5m', 'PT30S')"
    )

    # Computed field
    delivery_timeout_seconds: Optional[int] = None

    @field_validator("delivery_timeout")
    @classmethod
    def validate_delivery_timeout(cls, v: Optional[str]) -> Optional[str]:
        """Parse the timeout and keep it between 1 second and 1 hour."""
        if v is None:
            return None
        try:
            validate_duration_range(parse_duration(v), min_seconds=1, max_seconds=3600)
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_timeout_seconds(self):
        """Fill delivery_timeout_seconds from delivery_timeout."""
        self.delivery_timeout_seconds = (
            parse_duration(self.delivery_timeout) if self.delivery_timeout else None
        )
        return self


class RetryConfig(BaseModel):
    """Whole-batch retry policy. Disabled (max_retries=0) by default."""

    max_retries: int = Field(
        0, ge=0, le=10, description="Retries for a batch whose provider call failed outright"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier for retries"
    )
    retry_initial_delay: float = Field(
        1.0, ge=0.0, le=60.0, description="Initial retry delay in seconds"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for pushdesk."""

    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    segments: List[SegmentConfig] = Field(default_factory=_default_segments)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_unique_segments(self):
        """Reject duplicate segment names."""
        seen = set()
        for segment in self.segments:
            if segment.name in seen:
                raise ValueError(f"Duplicate segment: '{segment.name}' appears multiple times")
            seen.add(segment.name)
        return self
