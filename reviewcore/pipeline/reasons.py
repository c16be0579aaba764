"""User-facing skip reasons and message formatting for pipeline stages."""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class PipelineReason:
    """Why a stage skipped, with an optional next step for the user.

    Attributes:
        message: Short title of the reason.
        action: What the user can change to avoid the skip.
        description: Longer explanation when there is no action.
    """

    message: str
    action: str | None = None
    description: str | None = None


class _ConfigReasons:
    DISABLED = PipelineReason(
        message="Automated Review is disabled",
        action="Enable 'Automated Code Review' in General Settings",
    )
    IGNORED_TITLE = PipelineReason(
        message="Title Ignored",
        action="Remove keywords defined in 'Ignore title keywords' setting",
    )
    DRAFT = PipelineReason(
        message="Draft PR Skipped",
        action=(
            "Enable 'Running on Draft Pull Requests' in settings or mark as Ready"
        ),
    )
    BRANCH_MISMATCH = PipelineReason(
        message="Branch Mismatch",
        action="Review only runs on specific target branches",
    )


class _FileReasons:
    NO_CHANGES = PipelineReason(message="No Files Changed")
    ALL_IGNORED = PipelineReason(
        message="All Files Ignored",
        action="Check your 'Ignored files' patterns in settings",
    )
    TOO_MANY = PipelineReason(
        message="Too Many Files",
        action="Reduce PR size for better review quality",
    )


class _CommitReasons:
    NO_NEW = PipelineReason(
        message="No New Commits",
        description="We already reviewed the latest changes",
    )
    ONLY_MERGE = PipelineReason(
        message="Only Merge Commits",
        description="Merge commits are skipped to avoid noise",
    )


class _PrerequisiteReasons:
    CLOSED = PipelineReason(message="PR is Closed")
    LOCKED = PipelineReason(message="PR is Locked")


class PipelineReasons:
    """Catalogue of skip reasons grouped by what was checked."""

    CONFIG = _ConfigReasons
    FILES = _FileReasons
    COMMITS = _CommitReasons
    PREREQUISITES = _PrerequisiteReasons


class StageMessageHelper:
    """Formats status messages combining user text and technical detail."""

    @staticmethod
    def skipped_with_reason(
        reason: PipelineReason,
        tech_detail: str | None = None,
    ) -> str:
        """Format a catalogued reason.

        Args:
            reason: Catalogued reason.
            tech_detail: Extra detail appended in parentheses.

        Returns:
            ``message - action (tech_detail)`` with absent parts omitted.
        """
        result = reason.message
        if reason.action:
            result += f" - {reason.action}"
        if tech_detail:
            result += f" ({tech_detail})"
        return result

    @staticmethod
    def skipped(user_message: str, technical_reason: str | None = None) -> str:
        """Format a free-form skip message."""
        if not technical_reason:
            return user_message
        return f"{user_message} (Tech: {technical_reason})"

    @staticmethod
    def error(user_message: str, error: object = None) -> str:
        """Format an error message with the error's details."""
        if error is None or error == "":
            return user_message
        if isinstance(error, (BaseException, str)):
            details = str(error)
        else:
            try:
                details = json.dumps(error)
            except (TypeError, ValueError):
                details = str(error)
        return f"{user_message} (Error: {details})"
