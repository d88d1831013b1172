"""Duration parsing utilities for configuration."""

import re

_ISO_PATTERN = re.compile(
    r"^P(?:(?P<d>\d+)D)?(?:T(?:(?P<h>\d+)H)?(?:(?P<m>\d+)M)?(?:(?P<s>\d+(?:\.\d+)?)S)?)?$"
)
_HUMAN_PATTERN = re.compile(r"(\d+)([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to whole seconds.

    Accepts human-readable values ("30s", "5m", "1h30m", "2d") and ISO-8601
    durations ("PT30S", "PT5M", "P1DT2H").

    Raises:
        DurationParseError: If the string is empty, malformed, or zero

    Examples:
        >>> parse_duration("5m")
        300
        >>> parse_duration("PT1H30M")
        5400
    """
    cleaned = re.sub(r"\s+", "", duration_str or "").lower()
    if not cleaned:
        raise DurationParseError("Duration string cannot be empty")

    if cleaned.startswith("p"):
        match = _ISO_PATTERN.match(cleaned.upper())
        if not match or cleaned.upper() in ("P", "PT"):
            raise DurationParseError(
                f"Invalid ISO-8601 duration format: '{duration_str}'. "
                "Expected format like 'PT30S', 'PT5M' or 'P1DT2H'"
            )
        parts = match.groupdict()
        total = (
            int(parts["d"] or 0) * 86400
            + int(parts["h"] or 0) * 3600
            + int(parts["m"] or 0) * 60
            + int(float(parts["s"] or 0))
        )
    else:
        pieces = _HUMAN_PATTERN.findall(cleaned)
        if not pieces or "".join(num + unit for num, unit in pieces) != cleaned:
            raise DurationParseError(
                f"Invalid duration format: '{duration_str}'. "
                "Use digits followed by s, m, h or d (e.g. '30s', '5m', '1h30m')"
            )
        total = sum(int(num) * _UNIT_SECONDS[unit] for num, unit in pieces)

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total


def validate_duration_range(duration_seconds: int, min_seconds: int, max_seconds: int) -> None:
    """
    Check that a parsed duration lies within [min_seconds, max_seconds].

    Raises:
        DurationParseError: If the duration is outside the range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"Duration too short: {_describe(duration_seconds)}. Minimum is {_describe(min_seconds)}."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"Duration too long: {_describe(duration_seconds)}. Maximum is {_describe(max_seconds)}."
        )


def _describe(seconds: int) -> str:
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"
