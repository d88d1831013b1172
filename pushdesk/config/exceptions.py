"""Custom exceptions for configuration management."""

from typing import List, Optional

from pydantic import ValidationError


class ConfigurationError(Exception):
    """
    Exception raised when configuration validation fails.

    Carries every validation error found (not just the first) plus
    suggestions for fixing them, and renders them as a numbered report.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        super().__init__(message)

    def __str__(self) -> str:
        lines = [self.message]
        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))
        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)
        return "\n".join(lines)

    @classmethod
    def from_validation_error(
        cls, exc: ValidationError, suggestions: Optional[List[str]] = None
    ) -> "ConfigurationError":
        """Translate a pydantic ValidationError into readable field errors.

        Args:
            exc: Error raised by model validation
            suggestions: Suggestions to attach to the resulting error

        Returns:
            ConfigurationError with one entry per pydantic error
        """
        errors = []
        for error in exc.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"]) or "config"
            if error["type"] == "missing":
                errors.append(f"Missing required field: {field_path}")
            elif error["type"].endswith("_type"):
                expected = error["type"][: -len("_type")]
                errors.append(
                    f"Invalid type for '{field_path}': expected {expected}, got {error.get('input')!r}"
                )
            else:
                errors.append(f"{field_path}: {error['msg']}")

        return cls(
            "Configuration validation failed",
            errors=errors,
            suggestions=suggestions,
        )
