"""Submit the bot's review verdict on the pull request."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.pipeline import PullRequestReviewState
from reviewcore.enums.severity_level import SeverityLevel, normalize_severity
from reviewcore.exceptions import CollaboratorError
from reviewcore.pipeline.stage import PipelineStage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reviewcore.models.results import CommentResult
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import PullRequestManagerService


def critical_comments(comments: Sequence[CommentResult]) -> list[CommentResult]:
    """Return the comments that delivered a critical suggestion."""
    return [
        c
        for c in comments
        if c.suggestion is not None
        and normalize_severity(c.suggestion.severity) == SeverityLevel.CRITICAL
    ]


class RequestChangesOrApproveStage(PipelineStage):
    """Request changes on critical findings, approve clean pull requests."""

    stage_name = "RequestChangesOrApproveStage"

    def __init__(self, pull_request_manager: PullRequestManagerService) -> None:
        self._pull_request_manager = pull_request_manager

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        config = context.code_review_config
        pr_number = context.pull_request.number
        if context.line_comments is None or config is None:
            logger.warning(
                f"No line comments available for PR#{pr_number}, skipping "
                f"request changes/approve",
            )
            return context

        if config.is_request_changes_active:
            context = self._request_changes_if_critical(context)
        if config.pull_request_approval_active and not context.line_comments:
            context = self._approve(context)
        return context

    def _request_changes_if_critical(self, context: PipelineContext) -> PipelineContext:
        pr_number = context.pull_request.number
        critical = critical_comments(context.line_comments or [])
        if not critical:
            return context

        logger.info(
            f"Requesting changes for PR#{pr_number} due to {len(critical)} "
            f"critical comments",
        )
        try:
            self._pull_request_manager.request_changes(
                context.organization_and_team,
                context.repository,
                pr_number,
                critical,
            )
        except CollaboratorError as e:
            logger.error(f"Error requesting changes for PR#{pr_number}: {e}")
            return context.with_error(self.stage_name, e, substage="request_changes")
        return context

    def _approve(self, context: PipelineContext) -> PipelineContext:
        pr_number = context.pull_request.number
        try:
            state = self._pull_request_manager.get_review_state(
                context.organization_and_team,
                context.repository,
                pr_number,
            )
            if state == PullRequestReviewState.APPROVED:
                logger.info(f"PR#{pr_number} is already approved, skipping approval")
                return context
            if state == PullRequestReviewState.CHANGES_REQUESTED:
                logger.info(
                    f"Clearing previous requested changes by approving PR#{pr_number}",
                )
            else:
                logger.info(f"Approving PR#{pr_number}, no new issues were found")
            self._pull_request_manager.approve(
                context.organization_and_team,
                context.repository,
                pr_number,
            )
        except CollaboratorError as e:
            logger.error(f"Error approving PR#{pr_number}: {e}")
            return context.with_error(self.stage_name, e, substage="approve")
        return context
