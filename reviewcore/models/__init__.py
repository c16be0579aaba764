"""Data models for suggestions, pull requests, and stage results."""

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
    CadenceDecision,
    CommentResult,
    FileAnalysisResult,
    LineComment,
    PrAnalysisResult,
    PrioritizationResult,
    PrLevelSuggestion,
    SortedSuggestions,
)
from reviewcore.models.suggestion import (
    ClusteringInformation,
    CodeSuggestion,
    SuggestionComment,
)

__all__ = [
    "AutomaticReviewStatus",
    "CadenceDecision",
    "ClusteringInformation",
    "CodeSuggestion",
    "CommentResult",
    "Commit",
    "ExecutionRecord",
    "FileAnalysisResult",
    "FileChange",
    "LineComment",
    "OrganizationAndTeamData",
    "PrAnalysisResult",
    "PrLevelSuggestion",
    "PrioritizationResult",
    "PullRequest",
    "PullRequestStats",
    "Repository",
    "SortedSuggestions",
    "SuggestionComment",
]
