"""Platform check run that mirrors the pipeline status."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.config import PipelineSettings
from reviewcore.enums.pipeline import CheckConclusion
from reviewcore.exceptions import CollaboratorError
from reviewcore.pipeline.stage import PipelineStage
from reviewcore.retry import call_with_retry

if TYPE_CHECKING:
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import ChecksService

FAILURE_SUMMARY = (
    "An error occurred during the code review process. "
    "Please check the logs for details."
)
NO_ISSUES_SUMMARY = "No issues found. Great work!"


def total_suggestion_count(context: PipelineContext) -> int:
    """Count file-level, PR-level, and cross-file suggestions."""
    return (
        len(context.valid_suggestions)
        + len(context.valid_suggestions_by_pr)
        + len(context.valid_cross_file_suggestions)
    )


def build_check_summary(context: PipelineContext) -> tuple[CheckConclusion, str]:
    """Return the conclusion and summary to close the check run with."""
    if context.pipeline_error:
        return CheckConclusion.FAILURE, FAILURE_SUMMARY

    total = total_suggestion_count(context)
    if total:
        plural = "" if total == 1 else "s"
        return (
            CheckConclusion.SUCCESS,
            f"Found {total} suggestion{plural}. Check the comments for details.",
        )

    skipped = context.skipped_reason
    if skipped is not None and skipped.message:
        return CheckConclusion.SUCCESS, skipped.message
    if context.status_info.message:
        return CheckConclusion.SUCCESS, context.status_info.message
    return CheckConclusion.SUCCESS, NO_ISSUES_SUMMARY


class CreateCheckRunStage(PipelineStage):
    """Open an in-progress check run on the head commit."""

    stage_name = "CreateCheckRunStage"

    def __init__(
        self,
        checks: ChecksService,
        settings: PipelineSettings | None = None,
    ) -> None:
        self._checks = checks
        self._settings = settings or PipelineSettings()

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        if not context.pull_request.head_sha:
            logger.warning(
                f"Missing head SHA, cannot create check run for "
                f"PR#{context.pull_request.number}",
            )
            return context

        try:
            check_run_id = call_with_retry(
                self._checks.create_check_run,
                context.organization_and_team,
                context.repository,
                context.pull_request,
                max_retries=self._settings.max_retries,
                base_delay=self._settings.retry_base_delay,
                max_delay=self._settings.retry_max_delay,
            )
        except CollaboratorError as e:
            logger.error(f"Error creating check run: {e}")
            return context

        if not check_run_id:
            return context
        return self.update_context(context, check_run_id=check_run_id)


class FinalizeCheckRunStage(PipelineStage):
    """Close the check run. Runs even when the pipeline was halted."""

    stage_name = "FinalizeCheckRunStage"
    runs_when_halted = True

    def __init__(
        self,
        checks: ChecksService,
        settings: PipelineSettings | None = None,
    ) -> None:
        self._checks = checks
        self._settings = settings or PipelineSettings()

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        if not context.check_run_id:
            logger.debug("No check run id found, skipping finalization")
            return context

        conclusion, summary = build_check_summary(context)
        try:
            call_with_retry(
                self._checks.finalize_check_run,
                context.organization_and_team,
                context.repository,
                context.check_run_id,
                conclusion,
                summary,
                max_retries=self._settings.max_retries,
                base_delay=self._settings.retry_base_delay,
                max_delay=self._settings.retry_max_delay,
            )
        except CollaboratorError as e:
            logger.error(f"Error finalizing check run {context.check_run_id}: {e}")
            return context

        logger.info(
            f"Finalized check run {context.check_run_id} ({conclusion}): {summary}",
        )
        return context
