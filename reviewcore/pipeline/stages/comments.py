"""Stages that post and update review comments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.config import PipelineSettings
from reviewcore.enums.pipeline import StageVisibility
from reviewcore.enums.suggestion import ClusteringType
from reviewcore.exceptions import CollaboratorError
from reviewcore.models.results import LineComment
from reviewcore.pipeline.stage import PipelineStage
from reviewcore.retry import call_with_retry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import Any

    from reviewcore.models.results import CommentResult, SortedSuggestions
    from reviewcore.models.suggestion import CodeSuggestion
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import CommentManagerService, PullRequestsService
    from reviewcore.suggestions.service import SuggestionService

# Ranges spanning this many lines or more are anchored on their first line.
MAX_MULTILINE_SPAN = 15


def has_required_identity(context: PipelineContext, stage_name: str) -> bool:
    """Return True when tenant, pull request, and repository are known.

    Logs an error naming the first missing piece.
    """
    org = context.organization_and_team
    if not org.organization_id:
        logger.error(f"[{stage_name}] Missing organization_and_team in context")
        return False
    if not context.pull_request.number:
        logger.error(f"[{stage_name}] Missing pull request data in context")
        return False
    if not context.repository.id or not context.repository.name:
        logger.error(
            f"[{stage_name}] Missing repository data in context for "
            f"PR#{context.pull_request.number}",
        )
        return False
    return True


def calculate_start_line(suggestion: CodeSuggestion) -> int | None:
    """First line of a multi-line comment, or None for a single line."""
    start = suggestion.relevant_lines_start
    end = suggestion.relevant_lines_end
    if start is None or start == end:
        return None
    if end is not None and start + MAX_MULTILINE_SPAN > end:
        return start
    return None


def calculate_end_line(suggestion: CodeSuggestion) -> int | None:
    """Line a comment is anchored on.

    Single-line ranges use their end line; ranges of
    ``MAX_MULTILINE_SPAN`` lines or more collapse to their start line.
    """
    start = suggestion.relevant_lines_start
    end = suggestion.relevant_lines_end
    if start is None or start == end:
        return end
    if end is not None and start + MAX_MULTILINE_SPAN > end:
        return end
    return start


def build_line_comments(suggestions: Sequence[CodeSuggestion]) -> list[LineComment]:
    """Line comments for every suggestion that is not a related cluster member."""
    return [
        LineComment(
            path=s.relevant_file,
            line=calculate_end_line(s),
            start_line=calculate_start_line(s),
            suggestion=s,
        )
        for s in suggestions
        if s.clustering_type != ClusteringType.RELATED
    ]


class _CommentStage(PipelineStage):
    """Shared plumbing for stages that call the comment manager."""

    def __init__(
        self,
        comment_manager: CommentManagerService,
        settings: PipelineSettings | None = None,
    ) -> None:
        self._comment_manager = comment_manager
        self._settings = settings or PipelineSettings()

    def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        return call_with_retry(
            func,
            *args,
            max_retries=self._settings.max_retries,
            base_delay=self._settings.retry_base_delay,
            max_delay=self._settings.retry_max_delay,
        )

    @staticmethod
    def _language(context: PipelineContext) -> str:
        config = context.code_review_config
        return config.language_result_prompt if config else "en-US"


class InitialCommentStage(_CommentStage):
    """Post the "review started" comment."""

    stage_name = "InitialCommentStage"

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        try:
            comment_id = self._call(
                self._comment_manager.create_initial_comment,
                context.organization_and_team,
                context.repository,
                context.pull_request,
                self._language(context),
            )
        except CollaboratorError as e:
            logger.warning(
                f"Failed to create initial comment for "
                f"PR#{context.pull_request.number}: {e}",
            )
            return context.with_error(self.stage_name, e)
        return self.update_context(context, initial_comment_id=comment_id)


class CreatePrLevelCommentsStage(_CommentStage):
    """Post PR-level suggestions and persist their records."""

    stage_name = "CreatePrLevelCommentsStage"
    visibility = StageVisibility.PRIMARY

    def __init__(
        self,
        comment_manager: CommentManagerService,
        pull_requests: PullRequestsService,
        suggestion_service: SuggestionService,
        settings: PipelineSettings | None = None,
    ) -> None:
        super().__init__(comment_manager, settings)
        self._pull_requests = pull_requests
        self._suggestion_service = suggestion_service

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        if not has_required_identity(context, self.stage_name):
            return context

        suggestions = context.valid_suggestions_by_pr
        pr_number = context.pull_request.number
        if not suggestions:
            logger.debug(f"No PR-level suggestions to process for PR#{pr_number}")
            return context

        try:
            results = self._call(
                self._comment_manager.create_pr_level_comments,
                context.organization_and_team,
                context.repository,
                context.pull_request,
                list(suggestions),
                self._language(context),
            )
        except CollaboratorError as e:
            logger.error(f"Error creating PR-level comments for PR#{pr_number}: {e}")
            return context.with_error(self.stage_name, e)

        logger.info(f"Created {len(results)} PR-level comments for PR#{pr_number}")
        context = self.update_context(context, pr_level_comment_results=list(results))

        if context.dry_run:
            return context
        records = self._suggestion_service.to_pr_level_suggestions(results)
        if not records:
            return context
        try:
            self._pull_requests.save_pr_level_suggestions(
                context.organization_and_team,
                context.repository,
                context.pull_request,
                records,
            )
        except CollaboratorError as e:
            logger.error(f"Error saving PR-level suggestions for PR#{pr_number}: {e}")
            return context.with_error(self.stage_name, e, substage="persist")
        return context


class CreateFileCommentsStage(_CommentStage):
    """Prioritize file suggestions, post them as line comments, persist."""

    stage_name = "CreateFileCommentsStage"
    visibility = StageVisibility.PRIMARY

    def __init__(
        self,
        comment_manager: CommentManagerService,
        pull_requests: PullRequestsService,
        suggestion_service: SuggestionService,
        settings: PipelineSettings | None = None,
    ) -> None:
        super().__init__(comment_manager, settings)
        self._pull_requests = pull_requests
        self._suggestion_service = suggestion_service

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        if not has_required_identity(context, self.stage_name):
            return context

        pr_number = context.pull_request.number
        head_commit = self._head_commit(context)
        if not context.valid_suggestions:
            logger.debug(f"No file-level suggestions to process for PR#{pr_number}")
            return self.update_context(
                context,
                line_comments=[],
                last_analyzed_commit=head_commit,
            )

        config = context.code_review_config
        if config is None:
            logger.error(f"No config found in context for PR#{pr_number}")
            return context

        ordered = self._suggestion_service.sort_and_prioritize(
            context.organization_and_team,
            config,
            pr_number,
            context.valid_suggestions,
            context.discarded_suggestions,
        )
        comments = build_line_comments(ordered.sorted_prioritized_suggestions)

        try:
            results: list[CommentResult] = self._call(
                self._comment_manager.create_line_comments,
                context.organization_and_team,
                context.repository,
                context.pull_request,
                comments,
                config.language_result_prompt,
            )
        except CollaboratorError as e:
            logger.error(f"Error creating line comments for PR#{pr_number}: {e}")
            context = context.with_error(self.stage_name, e, substage="line_comments")
            results = []
            previous = context.last_execution
            head_commit = previous.last_analyzed_commit if previous else None

        logger.info(f"Created {len(results)} line comments for PR#{pr_number}")
        context = self.update_context(
            context,
            line_comments=results,
            last_analyzed_commit=head_commit,
        )
        if context.dry_run:
            return context
        return self._save_suggestions(context, comments, ordered, results)

    def _save_suggestions(
        self,
        context: PipelineContext,
        comments: Sequence[LineComment],
        ordered: SortedSuggestions,
        results: Sequence[CommentResult],
    ) -> PipelineContext:
        delivered = self._suggestion_service.verify_suggestions_sent(
            [c.suggestion for c in comments],
            results,
        )
        delivered_ids = {s.id for s in delivered}
        held_back = [
            s
            for s in ordered.sorted_prioritized_suggestions
            if s.id not in delivered_ids
        ]
        try:
            self._pull_requests.save_suggestions(
                context.organization_and_team,
                context.repository,
                context.pull_request,
                [*delivered, *held_back, *ordered.all_discarded_suggestions],
            )
        except CollaboratorError as e:
            logger.error(
                f"Error saving suggestions for PR#{context.pull_request.number}: {e}",
            )
            return context.with_error(self.stage_name, e, substage="persist")
        return context

    @staticmethod
    def _head_commit(context: PipelineContext) -> str | None:
        if context.pr_commits:
            return context.pr_commits[-1].sha
        return context.pull_request.head_sha or None


class UpdateCommentsAndGenerateSummaryStage(_CommentStage):
    """Replace the initial comment with the review summary."""

    stage_name = "UpdateCommentsAndGenerateSummaryStage"

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        config = context.code_review_config
        if config is None or context.line_comments is None:
            return context

        try:
            self._call(
                self._comment_manager.update_summary_comment,
                context.organization_and_team,
                context.repository,
                context.pull_request,
                context.initial_comment_id,
                [*context.line_comments, *context.pr_level_comment_results],
                config,
            )
        except CollaboratorError as e:
            logger.error(
                f"Error updating summary comment for "
                f"PR#{context.pull_request.number}: {e}",
            )
            return context.with_error(self.stage_name, e)
        return context
