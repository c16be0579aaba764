"""Code-review pipeline assembly and its entry point."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reviewcore.config import PipelineSettings
from reviewcore.pipeline.executor import PipelineExecutor
from reviewcore.pipeline.stages import (
    CreateCheckRunStage,
    CreateFileCommentsStage,
    CreatePrLevelCommentsStage,
    FetchChangedFilesStage,
    FinalizeCheckRunStage,
    InitialCommentStage,
    LoadExternalContextStage,
    ProcessFilesPrLevelReviewStage,
    ProcessFilesReviewStage,
    RequestChangesOrApproveStage,
    ResolveConfigStage,
    UpdateCommentsAndGenerateSummaryStage,
    ValidateConfigStage,
    ValidateNewCommitsStage,
    ValidatePrerequisitesStage,
    ValidateSuggestionsStage,
)
from reviewcore.suggestions.service import SuggestionService

if TYPE_CHECKING:
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.pipeline.stage import PipelineStage
    from reviewcore.services.base import ReviewServices


class CodeReviewPipelineStrategy:
    """Builds the ordered stage list of a code review.

    Args:
        services: Collaborators the stages call.
        settings: Engine-wide limits and timeouts.
        suggestion_service: Prioritization service. Defaults to one
            backed by ``services.comment_manager``,
            ``services.ai_analysis`` and ``services.pull_requests``.
    """

    pipeline_name = "CodeReviewPipeline"

    def __init__(
        self,
        services: ReviewServices,
        settings: PipelineSettings | None = None,
        suggestion_service: SuggestionService | None = None,
    ) -> None:
        self.services = services
        self.settings = settings or PipelineSettings()
        self.suggestion_service = suggestion_service or SuggestionService(
            services.comment_manager,
            ai_analysis=services.ai_analysis,
            pull_requests=services.pull_requests,
        )

    def configure_stages(self) -> list[PipelineStage]:
        """Return the stages in execution order."""
        services = self.services
        settings = self.settings
        return [
            ValidateNewCommitsStage(
                services.automation_executions,
                services.pull_request_manager,
            ),
            ValidatePrerequisitesStage(services.settings),
            ResolveConfigStage(services.settings, services.pull_request_manager),
            ValidateConfigStage(
                services.automation_executions,
                services.comment_manager,
                settings,
            ),
            CreateCheckRunStage(services.checks, settings),
            FetchChangedFilesStage(services.pull_request_manager, settings),
            LoadExternalContextStage(services.external_context),
            InitialCommentStage(services.comment_manager, settings),
            ProcessFilesPrLevelReviewStage(services.ai_analysis),
            ProcessFilesReviewStage(
                services.ai_analysis,
                settings,
                services.pull_requests,
                self.suggestion_service,
            ),
            CreatePrLevelCommentsStage(
                services.comment_manager,
                services.pull_requests,
                self.suggestion_service,
                settings,
            ),
            ValidateSuggestionsStage(services.ai_analysis),
            CreateFileCommentsStage(
                services.comment_manager,
                services.pull_requests,
                self.suggestion_service,
                settings,
            ),
            UpdateCommentsAndGenerateSummaryStage(services.comment_manager, settings),
            RequestChangesOrApproveStage(services.pull_request_manager),
            FinalizeCheckRunStage(services.checks, settings),
        ]


class PipelineOrchestrator:
    """Single entry point callers use to review a pull request."""

    def __init__(
        self,
        strategy: CodeReviewPipelineStrategy,
        executor: PipelineExecutor | None = None,
    ) -> None:
        self._strategy = strategy
        self._executor = executor or PipelineExecutor()

    def run(self, initial_context: PipelineContext) -> PipelineContext:
        """Run the code-review pipeline.

        Args:
            initial_context: Context holding the tenant, repository,
                pull request, and trigger origin.

        Returns:
            The final context with status, suggestions, and errors.
        """
        return self._executor.execute(
            initial_context,
            self._strategy.configure_stages(),
            self._strategy.pipeline_name,
        )
