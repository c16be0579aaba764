"""Severity levels for code suggestions."""

from __future__ import annotations

from enum import StrEnum


class SeverityLevel(StrEnum):
    """Qualitative risk level of a suggestion, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_RANK: dict[SeverityLevel, int] = {
    SeverityLevel.LOW: 1,
    SeverityLevel.MEDIUM: 2,
    SeverityLevel.HIGH: 3,
    SeverityLevel.CRITICAL: 4,
}

# Bucket order used when concatenating severity-limited results.
SEVERITY_ORDER_DESC: tuple[SeverityLevel, ...] = (
    SeverityLevel.CRITICAL,
    SeverityLevel.HIGH,
    SeverityLevel.MEDIUM,
    SeverityLevel.LOW,
)


def normalize_severity(value: str | SeverityLevel | None) -> SeverityLevel | None:
    """Convert a raw severity string to a SeverityLevel.

    Args:
        value: Raw severity, case-insensitive. May be None or empty.

    Returns:
        The matching SeverityLevel, or None when the value is unset or
        not one of the four known levels.
    """
    if value is None:
        return None
    try:
        return SeverityLevel(str(value).strip().lower())
    except ValueError:
        return None


def severity_rank(value: str | SeverityLevel | None) -> int:
    """Return the numeric rank of a severity, 0 when unknown."""
    level = normalize_severity(value)
    if level is None:
        return 0
    return SEVERITY_RANK[level]
