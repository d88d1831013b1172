"""Environment variable loading and validation."""

import os
from typing import List, Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/pushdesk.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        firebase_project_id: Optional[str] = None,
        firebase_client_email: Optional[str] = None,
        firebase_private_key: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.firebase_project_id = firebase_project_id
        self.firebase_client_email = firebase_client_email
        self.firebase_private_key = firebase_private_key
        self.log_level = log_level
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.environment = environment or "local"

    @property
    def has_firebase_credentials(self) -> bool:
        """True when all three service-account fields are present."""
        return bool(
            self.firebase_project_id and self.firebase_client_email and self.firebase_private_key
        )

    def require_firebase_credentials(self) -> None:
        """Raise ConfigurationError unless Firebase credentials are complete."""
        missing = []
        if not self.firebase_project_id:
            missing.append("Missing required environment variable: FIREBASE_PROJECT_ID")
        if not self.firebase_client_email:
            missing.append("Missing required environment variable: FIREBASE_CLIENT_EMAIL")
        if not self.firebase_private_key:
            missing.append("Missing required environment variable: FIREBASE_PRIVATE_KEY")

        if missing:
            raise ConfigurationError(
                "Firebase credentials are not configured",
                errors=missing,
                suggestions=[
                    "Copy .env.example to .env and fill in the service account fields",
                    "The FIREBASE_ADMIN_ prefix is accepted as an alternative",
                ],
            )


def _getenv_alias(name: str) -> Optional[str]:
    """Read FIREBASE_<name>, falling back to FIREBASE_ADMIN_<name>."""
    return os.getenv(f"FIREBASE_{name}") or os.getenv(f"FIREBASE_ADMIN_{name}")


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Optional environment variables:
    - FIREBASE_PROJECT_ID / FIREBASE_ADMIN_PROJECT_ID: Firebase project
    - FIREBASE_CLIENT_EMAIL / FIREBASE_ADMIN_CLIENT_EMAIL: service account email
    - FIREBASE_PRIVATE_KEY / FIREBASE_ADMIN_PRIVATE_KEY: service account key
      (literal "\\n" sequences are expanded to newlines)
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/pushdesk.db)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment label for logs (default: local)

    Firebase credentials are validated for consistency here (all or none);
    completeness is checked only when a Firebase provider is built.

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is invalid
    """
    errors: List[str] = []

    project_id = _getenv_alias("PROJECT_ID")
    client_email = _getenv_alias("CLIENT_EMAIL")
    private_key = _getenv_alias("PRIVATE_KEY")
    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")
    environment = os.getenv("ENVIRONMENT")

    if private_key:
        private_key = private_key.replace("\\n", "\n")

    provided = [bool(project_id), bool(client_email), bool(private_key)]
    if any(provided) and not all(provided):
        errors.append(
            "Firebase credentials are incomplete. FIREBASE_PROJECT_ID, "
            "FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY must be set together."
        )

    if client_email and "@" not in client_email:
        errors.append(f"Invalid FIREBASE_CLIENT_EMAIL: '{client_email}'")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if database_url is not None and not database_url.strip():
        errors.append("DATABASE_URL is set but empty")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Unset variables you do not use instead of leaving them empty",
            ],
        )

    return EnvironmentConfig(
        firebase_project_id=project_id,
        firebase_client_email=client_email,
        firebase_private_key=private_key,
        log_level=log_level.upper() if log_level else None,
        database_url=database_url,
        environment=environment,
    )
