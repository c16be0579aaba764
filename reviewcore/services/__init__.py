"""Collaborator interfaces consumed by the review pipeline."""

from reviewcore.services.base import (
    AIAnalysisResult,
    AIAnalysisService,
    AutomationExecutionService,
    ChecksService,
    CodeReviewSettingsService,
    CommentManagerService,
    ExternalContextService,
    PrAnalysisResult,
    PullRequestManagerService,
    PullRequestsService,
    ReviewServices,
)

__all__ = [
    "AIAnalysisResult",
    "AIAnalysisService",
    "AutomationExecutionService",
    "ChecksService",
    "CodeReviewSettingsService",
    "CommentManagerService",
    "ExternalContextService",
    "PrAnalysisResult",
    "PullRequestManagerService",
    "PullRequestsService",
    "ReviewServices",
]
