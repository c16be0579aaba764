"""Gate on the pull request state and its author."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.automation import AutomationMessage
from reviewcore.enums.pipeline import StageVisibility
from reviewcore.pipeline.reasons import PipelineReasons, StageMessageHelper
from reviewcore.pipeline.stage import PipelineStage

if TYPE_CHECKING:
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import CodeReviewSettingsService

_CLOSED_STATES = frozenset({"closed", "merged"})


class ValidatePrerequisitesStage(PipelineStage):
    """Skip closed or locked pull requests and ignored authors."""

    stage_name = "ValidatePrerequisitesStage"
    visibility = StageVisibility.PRIMARY
    critical = True

    def __init__(self, settings: CodeReviewSettingsService) -> None:
        self._settings = settings

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        pull_request = context.pull_request

        message: str | None = None
        if pull_request.state in _CLOSED_STATES:
            message = StageMessageHelper.skipped_with_reason(
                PipelineReasons.PREREQUISITES.CLOSED,
                f"state={pull_request.state}",
            )
        elif pull_request.locked:
            message = StageMessageHelper.skipped_with_reason(
                PipelineReasons.PREREQUISITES.LOCKED,
            )

        if message is not None:
            logger.warning(
                f"Prerequisites failed for PR#{pull_request.number}: {message}",
            )
            return self.skip(context, message)

        if pull_request.author_id and self._settings.is_user_ignored(
            context.organization_and_team,
            pull_request.author_id,
        ):
            logger.info(
                f"Author {pull_request.author_id} of PR#{pull_request.number} "
                f"is ignored",
            )
            return self.skip(context, AutomationMessage.USER_IGNORED)

        return context
