"""Configuration management module for pushdesk."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config_file
from .models import (
    PROVIDER_MAX_BATCH,
    AppConfig,
    DeliveryConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RetryConfig,
    SegmentConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "DeliveryConfig",
    "RetryConfig",
    "SegmentConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    "PROVIDER_MAX_BATCH",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
