"""Review cadence policy and the per-PR cadence state."""

from __future__ import annotations

from enum import StrEnum


class ReviewCadenceType(StrEnum):
    """When automatic reviews re-run on new commits."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"
    AUTO_PAUSE = "auto_pause"


class ReviewCadenceState(StrEnum):
    """Cadence state recorded for a pull request after a gate decision."""

    AUTOMATIC = "automatic"
    MANUAL_PENDING = "manual_pending"
    PAUSED = "paused"
    COMMAND = "command"
