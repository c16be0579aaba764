"""Enumerations for suggestion grouping and quantity limiting."""

from __future__ import annotations

from enum import StrEnum


class GroupingMode(StrEnum):
    """How clustered suggestions are grouped for delivery.

    ``SMART`` and ``FULL`` both exempt related suggestions from limiting;
    ``FULL`` additionally folds related suggestions into their parent
    comment at delivery time.
    """

    NONE = "none"
    SMART = "smart"
    FULL = "full"

    @property
    def is_clustering(self) -> bool:
        """Return True when related suggestions are grouped under parents."""
        return self in (GroupingMode.SMART, GroupingMode.FULL)


class LimitationType(StrEnum):
    """Which quantity limiting strategy applies."""

    FILE = "file"
    PR = "pr"
    SEVERITY = "severity"
