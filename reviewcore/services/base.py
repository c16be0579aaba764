"""Abstract collaborator interfaces the review engine calls into.

Concrete adapters (platform clients, persistence, LLM analysis) live
outside this package. Each adapter raises ``CollaboratorError`` for
transient failures and ``CollaboratorTimeoutError`` when a call times
out.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from reviewcore.models.results import PrAnalysisResult

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from reviewcore.config import CodeReviewConfig
    from reviewcore.enums.pipeline import CheckConclusion, PullRequestReviewState
    from reviewcore.enums.review_cadence import ReviewCadenceState
    from reviewcore.enums.suggestion import ImplementationStatus
    from reviewcore.models.pull_request import (
        Commit,
        ExecutionRecord,
        FileChange,
        OrganizationAndTeamData,
        PullRequest,
        Repository,
    )
    from reviewcore.models.results import (
        CommentResult,
        LineComment,
        PrLevelSuggestion,
    )
    from reviewcore.models.suggestion import CodeSuggestion


@dataclass
class AIAnalysisResult:
    """Suggestions returned by one AI analysis call.

    Attributes:
        code_suggestions: Suggestions produced for the analyzed scope.
        discarded_suggestions: Suggestions the analysis itself rejected
            (for example by a safeguard pass).
        metadata: Free-form analysis metadata (model, token usage).
    """

    code_suggestions: list[CodeSuggestion] = field(default_factory=list)
    discarded_suggestions: list[CodeSuggestion] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ImplementedSuggestion:
    """Verdict on whether a saved suggestion was applied by new commits."""

    id: str
    implementation_status: ImplementationStatus


class AIAnalysisService(ABC):
    """Runs LLM and rule-based analysis passes."""

    @abstractmethod
    def analyze_file(
        self,
        organization_and_team: OrganizationAndTeamData,
        pull_request: PullRequest,
        file: FileChange,
        config: CodeReviewConfig,
    ) -> AIAnalysisResult | None:
        """Analyze one changed file.

        Args:
            organization_and_team: Tenant of the run.
            pull_request: Pull request under review.
            file: Changed file with its patch.
            config: Active review configuration.

        Returns:
            The suggestions for the file, or None when the analysis
            produced nothing.

        Raises:
            CollaboratorError: If the analysis call fails.
        """
        ...

    @abstractmethod
    def analyze_pull_request(
        self,
        organization_and_team: OrganizationAndTeamData,
        pull_request: PullRequest,
        files: Sequence[FileChange],
        config: CodeReviewConfig,
    ) -> PrAnalysisResult:
        """Run the PR-level and cross-file analysis passes."""
        ...

    @abstractmethod
    def validate_implemented_suggestions(
        self,
        organization_and_team: OrganizationAndTeamData,
        pr_number: int,
        code_patch: str,
        suggestions: list[CodeSuggestion],
    ) -> list[ImplementedSuggestion]:
        """Judge which saved suggestions the new code applies.

        Args:
            organization_and_team: Tenant of the run.
            pr_number: Pull request number.
            code_patch: Patches of the changed files, each prefixed
                with a ``File: <name>`` line.
            suggestions: Previously delivered suggestions to check.

        Returns:
            One verdict per suggestion the analysis could judge.
        """
        ...

    @abstractmethod
    def validate_committable_suggestions(
        self,
        organization_and_team: OrganizationAndTeamData,
        pr_number: int,
        files: list[FileChange],
        suggestions: list[CodeSuggestion],
    ) -> dict[str, str]:
        """Apply suggestions to their files and keep the ones that still parse.

        Returns:
            Validated replacement code keyed by suggestion id.
        """
        ...


class CommentManagerService(ABC):
    """Posts and updates review comments on the platform."""

    @abstractmethod
    def cluster_suggestions(
        self,
        organization_and_team: OrganizationAndTeamData,
        pr_number: int,
        suggestions: list[CodeSuggestion],
    ) -> list[CodeSuggestion]:
        """Attach clustering information to repeated suggestions."""
        ...

    @abstractmethod
    def enrich_parent_suggestions_with_related(
        self,
        suggestions: list[CodeSuggestion],
    ) -> list[CodeSuggestion]:
        """Fold related suggestions into their parent's content."""
        ...

    @abstractmethod
    def create_initial_comment(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        language: str,
    ) -> str | None:
        """Post the "review started" comment and return its id."""
        ...

    @abstractmethod
    def create_line_comments(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        comments: list[LineComment],
        language: str,
    ) -> list[CommentResult]:
        """Post the line comments. Returns one result per posted comment."""
        ...

    @abstractmethod
    def create_pr_level_comments(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        suggestions: list[CodeSuggestion],
        language: str,
    ) -> list[CommentResult]:
        """Post one PR-level comment per suggestion."""
        ...

    @abstractmethod
    def update_summary_comment(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        initial_comment_id: str | None,
        line_comments: list[CommentResult],
        config: CodeReviewConfig,
    ) -> None:
        """Replace the initial comment with the review summary."""
        ...

    @abstractmethod
    def post_general_comment(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        body: str,
    ) -> str | None:
        """Post a plain pull request comment and return its id."""
        ...


class PullRequestsService(ABC):
    """Persists pull request review state."""

    @abstractmethod
    def save_suggestions(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        suggestions: list[CodeSuggestion],
    ) -> None:
        """Append suggestion records with their final statuses."""
        ...

    @abstractmethod
    def save_pr_level_suggestions(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        suggestions: list[PrLevelSuggestion],
    ) -> None:
        """Append delivered PR-level suggestion records."""
        ...

    @abstractmethod
    def find_suggestions_by_file(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pr_number: int,
        filename: str,
    ) -> list[CodeSuggestion]:
        """Return the suggestions saved for one file of the pull request."""
        ...

    @abstractmethod
    def update_suggestion(self, suggestion_id: str, changes: dict[str, Any]) -> None:
        """Update fields of a saved suggestion."""
        ...


class AutomationExecutionService(ABC):
    """Queries previous pipeline runs."""

    @abstractmethod
    def find_last_successful_execution(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pr_number: int,
    ) -> ExecutionRecord | None:
        """Return the most recent successful run for the pull request."""
        ...

    @abstractmethod
    def count_successful_executions_since(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pr_number: int,
        since: datetime,
    ) -> int:
        """Count successful runs for the pull request after ``since``."""
        ...

    @abstractmethod
    def get_review_cadence_state(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pr_number: int,
    ) -> ReviewCadenceState | None:
        """Return the cadence state recorded for the pull request."""
        ...


class PullRequestManagerService(ABC):
    """Reads from and acts on the source-control platform."""

    @abstractmethod
    def get_changed_files(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        last_analyzed_commit: str | None,
    ) -> list[FileChange]:
        """Return files changed since ``last_analyzed_commit`` (all when None)."""
        ...

    @abstractmethod
    def get_commits(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
    ) -> list[Commit]:
        """Return the pull request commits, oldest first."""
        ...

    @abstractmethod
    def get_review_state(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pr_number: int,
    ) -> PullRequestReviewState:
        """Return the bot's current review state on the pull request."""
        ...

    @abstractmethod
    def request_changes(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pr_number: int,
        critical_comments: list[CommentResult],
    ) -> None:
        """Submit a "changes requested" review."""
        ...

    @abstractmethod
    def approve(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pr_number: int,
    ) -> None:
        """Submit an approving review."""
        ...


class CodeReviewSettingsService(ABC):
    """Resolves review configuration and user settings."""

    @abstractmethod
    def get_config(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        files: list[FileChange],
    ) -> CodeReviewConfig:
        """Resolve the configuration for a repository.

        Raises:
            ConfigurationError: If no valid configuration can be built.
        """
        ...

    @abstractmethod
    def is_user_ignored(
        self,
        organization_and_team: OrganizationAndTeamData,
        user_id: str,
    ) -> bool:
        """Return True when the author's pull requests are never reviewed."""
        ...


class ChecksService(ABC):
    """Manages the platform check run that mirrors the pipeline status."""

    @abstractmethod
    def create_check_run(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
    ) -> str | None:
        """Open an in-progress check run and return its id."""
        ...

    @abstractmethod
    def finalize_check_run(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        check_run_id: str,
        conclusion: CheckConclusion,
        summary: str,
    ) -> None:
        """Close the check run with a conclusion and summary."""
        ...


class ExternalContextService(ABC):
    """Loads repository context used by the analysis passes."""

    @abstractmethod
    def load_context(
        self,
        organization_and_team: OrganizationAndTeamData,
        repository: Repository,
        pull_request: PullRequest,
        config: CodeReviewConfig,
    ) -> dict[str, Any]:
        """Return context documents keyed by source."""
        ...


@dataclass
class ReviewServices:
    """Collaborators injected into the code-review pipeline stages."""

    ai_analysis: AIAnalysisService
    comment_manager: CommentManagerService
    pull_requests: PullRequestsService
    automation_executions: AutomationExecutionService
    pull_request_manager: PullRequestManagerService
    settings: CodeReviewSettingsService
    checks: ChecksService
    external_context: ExternalContextService
