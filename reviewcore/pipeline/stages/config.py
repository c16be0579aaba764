"""Stages that resolve the review configuration and gate on it.

``ValidateConfigStage`` applies the baseline rules (automation switch,
ignored title keywords, target branch, drafts) and then the review
cadence policy, which may pause a pull request after a burst of pushes.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.config import PipelineSettings
from reviewcore.enums.automation import AutomationMessage
from reviewcore.enums.pipeline import StageVisibility, TriggerOrigin
from reviewcore.enums.review_cadence import ReviewCadenceState, ReviewCadenceType
from reviewcore.exceptions import CollaboratorError, CollaboratorTimeoutError
from reviewcore.models.results import AutomaticReviewStatus, CadenceDecision
from reviewcore.pipeline.reasons import PipelineReasons, StageMessageHelper
from reviewcore.pipeline.stage import PipelineStage
from reviewcore.retry import call_with_retry
from reviewcore.utils.glob import should_review_branch

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import TypeVar

    from reviewcore.config import CodeReviewConfig
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import (
        AutomationExecutionService,
        CodeReviewSettingsService,
        CommentManagerService,
        PullRequestManagerService,
    )

    T = TypeVar("T")

PAUSE_COMMENT_BODY = "Auto-paused - comment @kody start-review when you're ready."


class ResolveConfigStage(PipelineStage):
    """Load the repository configuration into the context."""

    stage_name = "ResolveConfigStage"
    critical = True

    def __init__(
        self,
        settings: CodeReviewSettingsService,
        pull_request_manager: PullRequestManagerService,
    ) -> None:
        self._settings = settings
        self._pull_request_manager = pull_request_manager

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        pr_number = context.pull_request.number
        try:
            last_sha = (
                context.last_execution.last_analyzed_commit
                if context.last_execution
                else None
            )
            files = self._pull_request_manager.get_changed_files(
                context.organization_and_team,
                context.repository,
                context.pull_request,
                last_sha,
            )
            if not files:
                logger.warning(f"No files found in PR#{pr_number}")
                return self.skip(context, AutomationMessage.NO_FILES_IN_PR)

            config = self._settings.get_config(
                context.organization_and_team,
                context.repository,
                files,
            )
        except Exception as e:
            logger.error(f"Error in {self.stage_name} for PR#{pr_number}: {e}")
            return self.skip(
                context,
                StageMessageHelper.error(AutomationMessage.FAILED_RESOLVE_CONFIG, e),
            )

        return self.update_context(
            context,
            code_review_config=config,
            changed_files=list(files),
        )


def check_basic_rules(
    context: PipelineContext,
    config: CodeReviewConfig,
) -> str | None:
    """Apply the baseline review rules.

    Args:
        context: Current context.
        config: Resolved configuration.

    Returns:
        The skip message, or None when the review may proceed.
    """
    if context.origin == TriggerOrigin.COMMAND:
        return None

    if not config.automated_review_active:
        return StageMessageHelper.skipped_with_reason(PipelineReasons.CONFIG.DISABLED)

    title = context.pull_request.title.lower()
    for keyword in config.ignored_title_keywords:
        if keyword and keyword.lower() in title:
            return StageMessageHelper.skipped_with_reason(
                PipelineReasons.CONFIG.IGNORED_TITLE,
                f'Title matches ignored keyword: "{keyword}"',
            )

    target = context.pull_request.base_branch
    default_branch = config.base_branch_default or context.repository.default_branch
    if not should_review_branch(target, config.base_branches, default_branch):
        expression = ", ".join(config.base_branches)
        return StageMessageHelper.skipped_with_reason(
            PipelineReasons.CONFIG.BRANCH_MISMATCH,
            f"Target branch '{target}' does not match configured "
            f"patterns: [{expression}]",
        )

    if context.pull_request.is_draft and not config.run_on_draft:
        return StageMessageHelper.skipped_with_reason(
            PipelineReasons.CONFIG.DRAFT,
            "run_on_draft=false",
        )

    return None


class ValidateConfigStage(PipelineStage):
    """Decide from configuration and cadence whether the review runs."""

    stage_name = "ValidateConfigStage"
    visibility = StageVisibility.PRIMARY
    critical = True

    def __init__(
        self,
        automation_executions: AutomationExecutionService,
        comment_manager: CommentManagerService,
        settings: PipelineSettings | None = None,
    ) -> None:
        self._automation_executions = automation_executions
        self._comment_manager = comment_manager
        self._settings = settings or PipelineSettings()

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        config = context.code_review_config
        pr_number = context.pull_request.number
        if config is None:
            logger.error(f"No config found in context for PR#{pr_number}")
            return self.skip(context, AutomationMessage.NO_CONFIG_IN_CONTEXT)

        try:
            decision = self.evaluate_review_cadence(context, config)
        except Exception as e:
            logger.error(f"Error in {self.stage_name} for PR#{pr_number}: {e}")
            return self.skip(context, AutomationMessage.CONFIG_VALIDATION_ERROR)

        if not decision.should_process:
            logger.warning(f"PR#{pr_number}: {decision.reason}")
            if decision.should_save_skipped:
                return self.skip(
                    context,
                    decision.reason,
                    automatic_review_status=decision.automatic_review_status,
                )
            return self.skip(context, decision.reason)

        logger.debug(f"PR#{pr_number}: {decision.reason}")
        return self.update_context(
            context,
            automatic_review_status=decision.automatic_review_status,
        )

    def evaluate_review_cadence(
        self,
        context: PipelineContext,
        config: CodeReviewConfig,
    ) -> CadenceDecision:
        """Apply the baseline rules and then the cadence policy.

        Args:
            context: Current context.
            config: Resolved configuration.

        Returns:
            Whether to proceed, with the cadence state to record.
        """
        message = check_basic_rules(context, config)
        if message is not None:
            return CadenceDecision(should_process=False, reason=message)

        if context.origin == TriggerOrigin.COMMAND:
            return CadenceDecision(
                should_process=True,
                reason=AutomationMessage.PROCESSING_MANUAL,
                automatic_review_status=AutomaticReviewStatus(
                    previous_status=self._current_state(context),
                    current_status=ReviewCadenceState.COMMAND,
                    reason_for_change="Review triggered by start-review command",
                ),
            )

        cadence = config.review_cadence.type
        if cadence == ReviewCadenceType.MANUAL:
            return self._manual_mode(context)
        if cadence == ReviewCadenceType.AUTO_PAUSE:
            return self._auto_pause_mode(context, config)
        return CadenceDecision(
            should_process=True,
            reason=AutomationMessage.PROCESSING_AUTOMATIC,
            automatic_review_status=_unchanged_automatic(),
        )

    def _manual_mode(self, context: PipelineContext) -> CadenceDecision:
        if not self._has_previous_review(context):
            return CadenceDecision(
                should_process=True,
                reason=AutomationMessage.FIRST_REVIEW_MANUAL,
                automatic_review_status=_unchanged_automatic(),
            )
        return CadenceDecision(
            should_process=False,
            reason=AutomationMessage.MANUAL_REQUIRED_TO_START,
            should_save_skipped=True,
            automatic_review_status=AutomaticReviewStatus(
                previous_status=self._current_state(context),
                current_status=ReviewCadenceState.PAUSED,
            ),
        )

    def _auto_pause_mode(
        self,
        context: PipelineContext,
        config: CodeReviewConfig,
    ) -> CadenceDecision:
        if not self._has_previous_review(context):
            return CadenceDecision(
                should_process=True,
                reason=AutomationMessage.FIRST_REVIEW_AUTO_PAUSE,
                automatic_review_status=_unchanged_automatic(),
            )

        if self._current_state(context) == ReviewCadenceState.PAUSED:
            return CadenceDecision(
                should_process=False,
                reason=AutomationMessage.PR_PAUSED_NEED_RESUME,
                should_save_skipped=True,
                automatic_review_status=AutomaticReviewStatus(
                    previous_status=ReviewCadenceState.PAUSED,
                    current_status=ReviewCadenceState.PAUSED,
                ),
            )

        if self.should_pause_for_burst(context, config):
            return CadenceDecision(
                should_process=False,
                reason=AutomationMessage.PR_PAUSED_BURST_PUSHES,
                should_save_skipped=True,
                automatic_review_status=AutomaticReviewStatus(
                    previous_status=ReviewCadenceState.AUTOMATIC,
                    current_status=ReviewCadenceState.PAUSED,
                    reason_for_change="Multiple pushes detected in short time window",
                    pause_comment_id=self._create_pause_comment(context),
                ),
            )

        return CadenceDecision(
            should_process=True,
            reason=AutomationMessage.PROCESSING_AUTO_PAUSE,
            automatic_review_status=_unchanged_automatic(),
        )

    def should_pause_for_burst(
        self,
        context: PipelineContext,
        config: CodeReviewConfig,
    ) -> bool:
        """Return True when enough successful runs fall inside the window.

        Dry runs never pause. A lookup that fails or times out counts as
        no burst.
        """
        if context.dry_run:
            return False

        cadence = config.review_cadence
        since = datetime.now(UTC) - timedelta(minutes=cadence.time_window)
        count = self._with_timeout(
            lambda: self._automation_executions.count_successful_executions_since(
                context.organization_and_team,
                context.repository,
                context.pull_request.number,
                since,
            ),
            default=0,
            what="burst detection",
        )
        return count >= cadence.pushes_to_trigger

    def _has_previous_review(self, context: PipelineContext) -> bool:
        if context.last_execution is not None:
            return True
        previous = self._with_timeout(
            lambda: self._automation_executions.find_last_successful_execution(
                context.organization_and_team,
                context.repository,
                context.pull_request.number,
            ),
            default=None,
            what="onboarding lookup",
        )
        return previous is not None

    def _current_state(self, context: PipelineContext) -> ReviewCadenceState:
        state = self._automation_executions.get_review_cadence_state(
            context.organization_and_team,
            context.repository,
            context.pull_request.number,
        )
        return state or ReviewCadenceState.AUTOMATIC

    def _create_pause_comment(self, context: PipelineContext) -> str | None:
        try:
            return call_with_retry(
                self._comment_manager.post_general_comment,
                context.organization_and_team,
                context.repository,
                context.pull_request,
                PAUSE_COMMENT_BODY,
                max_retries=self._settings.max_retries,
                base_delay=self._settings.retry_base_delay,
                max_delay=self._settings.retry_max_delay,
            )
        except CollaboratorError as e:
            logger.error(
                f"Failed to create pause comment for "
                f"PR#{context.pull_request.number}: {e}",
            )
            return None

    def _with_timeout(self, func: Callable[[], T], *, default: T, what: str) -> T:
        timeout = self._settings.signal_timeout_seconds
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(func)
        try:
            return future.result(timeout=timeout)
        except (FutureTimeoutError, CollaboratorTimeoutError):
            logger.warning(f"{what} timed out after {timeout}s, proceeding")
            return default
        except CollaboratorError as e:
            logger.error(f"{what} failed: {e}")
            return default
        finally:
            executor.shutdown(wait=False)


def _unchanged_automatic() -> AutomaticReviewStatus:
    return AutomaticReviewStatus(
        previous_status=ReviewCadenceState.AUTOMATIC,
        current_status=ReviewCadenceState.AUTOMATIC,
    )
