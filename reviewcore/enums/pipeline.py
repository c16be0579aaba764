"""Enumerations used by pipeline stages and their collaborators."""

from __future__ import annotations

from enum import StrEnum


class StageVisibility(StrEnum):
    """Whether a stage is reported to users or only to operators."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class TriggerOrigin(StrEnum):
    """What started a pipeline run."""

    WEBHOOK = "webhook"
    COMMAND = "command"
    SCHEDULE = "schedule"


class PullRequestReviewState(StrEnum):
    """Aggregate review state of a pull request on the platform."""

    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"
    PENDING = "pending"


class CheckConclusion(StrEnum):
    """Final conclusion reported on a platform check run."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"
    NEUTRAL = "neutral"


class CommentType(StrEnum):
    """Scope of a posted review comment."""

    LINE = "line"
    PR_LEVEL = "pr_level"
