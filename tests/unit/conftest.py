"""Shared fixtures and collaborator doubles for reviewcore tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from reviewcore.config import CodeReviewConfig, PipelineSettings
from reviewcore.enums.pipeline import CommentType
from reviewcore.enums.suggestion import ClusteringType, DeliveryStatus
from reviewcore.exceptions import CollaboratorError
from reviewcore.models.pull_request import (
    FileChange,
    OrganizationAndTeamData,
    PullRequest,
    Repository,
)
from reviewcore.models.results import CommentResult, LineComment
from reviewcore.models.suggestion import ClusteringInformation, CodeSuggestion
from reviewcore.pipeline.context import PipelineContext
from reviewcore.services.base import (
    AIAnalysisService,
    AutomationExecutionService,
    ChecksService,
    CodeReviewSettingsService,
    CommentManagerService,
    ExternalContextService,
    PullRequestManagerService,
    PullRequestsService,
    ReviewServices,
)

# Patch adding lines 10-14 and 41-42 of src/app.py.
SAMPLE_PATCH = (
    "@@ -8,3 +8,8 @@ def handler():\n"
    " context\n"
    " context\n"
    "+added 10\n"
    "+added 11\n"
    "+added 12\n"
    "+added 13\n"
    "+added 14\n"
    " context\n"
    "@@ -40,1 +40,3 @@ def other():\n"
    " context\n"
    "+added 41\n"
    "+added 42\n"
)


def make_suggestion(
    suggestion_id: str,
    *,
    file: str = "src/app.py",
    label: str = "security",
    severity: str = "high",
    start: int | None = 10,
    end: int | None = 12,
    **kwargs: Any,
) -> CodeSuggestion:
    """Build a suggestion with sensible defaults."""
    return CodeSuggestion(
        id=suggestion_id,
        relevant_file=file,
        relevant_lines_start=start,
        relevant_lines_end=end,
        label=label,
        severity=severity,
        suggestion_content=f"Suggestion {suggestion_id}",
        **kwargs,
    )


def parent_info(*related_ids: str) -> ClusteringInformation:
    """Clustering information for a parent listing its related ids."""
    return ClusteringInformation(
        type=ClusteringType.PARENT,
        related_suggestions_ids=tuple(related_ids),
    )


def related_info(parent_id: str) -> ClusteringInformation:
    """Clustering information for a related suggestion."""
    return ClusteringInformation(
        type=ClusteringType.RELATED,
        parent_suggestion_id=parent_id,
    )


class MockCommentManager(CommentManagerService):
    """Comment manager that records calls and reports every comment sent."""

    def __init__(self, *, fail_line_comments: bool = False) -> None:
        """Initialize the mock comment manager.

        Args:
            fail_line_comments: Raise from ``create_line_comments``.
        """
        self.calls: list[tuple[str, Any]] = []
        self.fail_line_comments = fail_line_comments

    def cluster_suggestions(self, organization_and_team, pr_number, suggestions):
        """Return the suggestions unchanged."""
        self.calls.append(("cluster_suggestions", list(suggestions)))
        return list(suggestions)

    def enrich_parent_suggestions_with_related(self, suggestions):
        """Return the suggestions unchanged."""
        self.calls.append(("enrich", list(suggestions)))
        return list(suggestions)

    def create_initial_comment(
        self,
        organization_and_team,
        repository,
        pull_request,
        language,
    ):
        """Return a fixed comment id."""
        self.calls.append(("create_initial_comment", language))
        return "initial-1"

    def create_line_comments(
        self,
        organization_and_team,
        repository,
        pull_request,
        comments: list[LineComment],
        language,
    ):
        """Report every comment as sent."""
        self.calls.append(("create_line_comments", list(comments)))
        if self.fail_line_comments:
            raise CollaboratorError("platform unavailable")
        return [
            CommentResult(
                suggestion_id=c.suggestion.id,
                delivery_status=DeliveryStatus.SENT,
                comment_id=f"c-{c.suggestion.id}",
                suggestion=c.suggestion,
            )
            for c in comments
        ]

    def create_pr_level_comments(
        self,
        organization_and_team,
        repository,
        pull_request,
        suggestions,
        language,
    ):
        """Report every PR-level comment as sent."""
        self.calls.append(("create_pr_level_comments", list(suggestions)))
        return [
            CommentResult(
                suggestion_id=s.id,
                delivery_status=DeliveryStatus.SENT,
                comment_type=CommentType.PR_LEVEL,
                comment_id=f"pr-{s.id}",
                suggestion=s,
            )
            for s in suggestions
        ]

    def update_summary_comment(
        self,
        organization_and_team,
        repository,
        pull_request,
        initial_comment_id,
        line_comments,
        config,
    ):
        """Record the summary update."""
        self.calls.append(("update_summary_comment", list(line_comments)))

    def post_general_comment(
        self,
        organization_and_team,
        repository,
        pull_request,
        body,
    ):
        """Return a fixed comment id."""
        self.calls.append(("post_general_comment", body))
        return "general-1"

    def called(self, name: str) -> list[Any]:
        """Return the recorded arguments of every call to ``name``."""
        return [args for call, args in self.calls if call == name]


@pytest.fixture
def org() -> OrganizationAndTeamData:
    """Tenant identity."""
    return OrganizationAndTeamData(organization_id="org-1", team_id="team-1")


@pytest.fixture
def repository() -> Repository:
    """Repository under review."""
    return Repository(
        id="repo-1",
        name="service",
        full_name="acme/service",
        default_branch="main",
    )


@pytest.fixture
def pull_request() -> PullRequest:
    """Open pull request into main."""
    return PullRequest(
        number=42,
        title="Add request handler",
        base_branch="main",
        head_branch="feature/handler",
        author_id="user-1",
        head_sha="abc123",
    )


@pytest.fixture
def review_config() -> CodeReviewConfig:
    """Default review configuration."""
    return CodeReviewConfig()


@pytest.fixture
def settings() -> PipelineSettings:
    """Pipeline settings without retries so tests never sleep."""
    return PipelineSettings(max_retries=0, signal_timeout_seconds=1.0)


@pytest.fixture
def changed_file() -> FileChange:
    """A changed file carrying ``SAMPLE_PATCH``."""
    return FileChange(
        filename="src/app.py",
        additions=7,
        deletions=0,
        patch=SAMPLE_PATCH,
    )


@pytest.fixture
def context(org, repository, pull_request) -> PipelineContext:
    """Fresh context for PR#42."""
    return PipelineContext(
        organization_and_team=org,
        repository=repository,
        pull_request=pull_request,
    )


@pytest.fixture
def configured_context(context, review_config, changed_file) -> PipelineContext:
    """Context with a resolved configuration and one changed file."""
    return context.evolve(
        code_review_config=review_config,
        changed_files=[changed_file],
    )


@pytest.fixture
def comment_manager() -> MockCommentManager:
    """Recording comment manager."""
    return MockCommentManager()


@pytest.fixture
def services(comment_manager) -> ReviewServices:
    """Collaborators backed by MagicMock, plus the recording comment manager."""
    return ReviewServices(
        ai_analysis=MagicMock(spec=AIAnalysisService),
        comment_manager=comment_manager,
        pull_requests=MagicMock(spec=PullRequestsService),
        automation_executions=MagicMock(spec=AutomationExecutionService),
        pull_request_manager=MagicMock(spec=PullRequestManagerService),
        settings=MagicMock(spec=CodeReviewSettingsService),
        checks=MagicMock(spec=ChecksService),
        external_context=MagicMock(spec=ExternalContextService),
    )
