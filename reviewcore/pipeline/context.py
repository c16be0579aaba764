"""Pipeline context threaded through every stage.

The context is a frozen dataclass. Stages never modify it; they derive
a new value with ``evolve`` (or the ``with_*`` helpers), which copies
only the fields that change and shares the rest.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from reviewcore.config import CodeReviewConfig
from reviewcore.enums.automation import AutomationMessage, AutomationStatus
from reviewcore.enums.pipeline import TriggerOrigin
from reviewcore.models.pull_request import (
    Commit,
    ExecutionRecord,
    FileChange,
    OrganizationAndTeamData,
    PullRequest,
    PullRequestStats,
    Repository,
)
from reviewcore.models.results import (
    AutomaticReviewStatus,
    CommentResult,
    PrAnalysisResult,
)
from reviewcore.models.suggestion import CodeSuggestion


@dataclass(frozen=True)
class StatusInfo:
    """Run status as seen by the executor.

    Attributes:
        status: Current run status.
        message: Human-readable reason for the status.
        jump_to_stage: Stage to resume at when the status is skipped.
    """

    status: AutomationStatus = AutomationStatus.PENDING
    message: str = ""
    jump_to_stage: str | None = None


@dataclass(frozen=True)
class SkippedReason:
    """Skip recorded when the executor resumes at a jump target."""

    status: AutomationStatus
    message: str
    stage_name: str
    jump_to_stage: str | None = None


@dataclass(frozen=True)
class StageError:
    """A recoverable failure recorded during a run.

    Attributes:
        stage: Stage the failure happened in.
        error: Error message.
        substage: Narrower location, such as a file name.
        metadata: Extra details for operators.
    """

    stage: str
    error: str
    substage: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PipelineContext:
    """State of one code-review pipeline run.

    Identity fields are supplied by the caller; everything else is
    filled in by the stages.
    """

    organization_and_team: OrganizationAndTeamData
    repository: Repository
    pull_request: PullRequest
    origin: TriggerOrigin = TriggerOrigin.WEBHOOK
    platform_type: str = "github"
    team_automation_id: str = ""
    dry_run: bool = False

    code_review_config: CodeReviewConfig | None = None
    automatic_review_status: AutomaticReviewStatus | None = None

    pr_commits: list[Commit] = field(default_factory=list)
    last_execution: ExecutionRecord | None = None

    changed_files: list[FileChange] = field(default_factory=list)
    ignored_files: list[str] = field(default_factory=list)
    pull_request_stats: PullRequestStats | None = None
    external_context: dict[str, Any] = field(default_factory=dict)
    initial_comment_id: str | None = None

    file_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)
    valid_suggestions: list[CodeSuggestion] = field(default_factory=list)
    discarded_suggestions: list[CodeSuggestion] = field(default_factory=list)
    pr_analysis_results: PrAnalysisResult = field(default_factory=PrAnalysisResult)

    line_comments: list[CommentResult] | None = None
    pr_level_comment_results: list[CommentResult] = field(default_factory=list)
    last_analyzed_commit: str | None = None

    check_run_id: str | None = None
    pipeline_error: bool = False

    status_info: StatusInfo = field(default_factory=StatusInfo)
    skipped_reason: SkippedReason | None = None
    errors: tuple[StageError, ...] = ()
    pipeline_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def valid_suggestions_by_pr(self) -> list[CodeSuggestion]:
        """Return the PR-level suggestions."""
        return self.pr_analysis_results.valid_suggestions_by_pr

    @property
    def valid_cross_file_suggestions(self) -> list[CodeSuggestion]:
        """Return the cross-file suggestions."""
        return self.pr_analysis_results.valid_cross_file_suggestions

    def evolve(self, **changes: Any) -> PipelineContext:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def with_status(
        self,
        status: AutomationStatus,
        message: AutomationMessage | str = "",
        jump_to_stage: str | None = None,
    ) -> PipelineContext:
        """Return a copy with a new status.

        Args:
            status: New run status.
            message: Reason for the status.
            jump_to_stage: Stage to resume at, for skipped runs.

        Returns:
            The updated context.
        """
        return replace(
            self,
            status_info=StatusInfo(
                status=status,
                message=str(message),
                jump_to_stage=jump_to_stage,
            ),
        )

    def with_error(
        self,
        stage: str,
        error: BaseException | str,
        *,
        substage: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> PipelineContext:
        """Return a copy with one more recorded error.

        Errors are only ever appended.
        """
        record = StageError(
            stage=stage,
            error=str(error),
            substage=substage,
            metadata=dict(metadata or {}),
        )
        return replace(self, errors=(*self.errors, record))
