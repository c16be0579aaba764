"""Stages of the code-review pipeline."""

from reviewcore.pipeline.stages.analysis import (
    ProcessFilesPrLevelReviewStage,
    ProcessFilesReviewStage,
)
from reviewcore.pipeline.stages.checks import CreateCheckRunStage, FinalizeCheckRunStage
from reviewcore.pipeline.stages.comments import (
    CreateFileCommentsStage,
    CreatePrLevelCommentsStage,
    InitialCommentStage,
    UpdateCommentsAndGenerateSummaryStage,
)
from reviewcore.pipeline.stages.commits import ValidateNewCommitsStage
from reviewcore.pipeline.stages.config import ResolveConfigStage, ValidateConfigStage
from reviewcore.pipeline.stages.context_loading import LoadExternalContextStage
from reviewcore.pipeline.stages.files import FetchChangedFilesStage
from reviewcore.pipeline.stages.prerequisites import ValidatePrerequisitesStage
from reviewcore.pipeline.stages.review import RequestChangesOrApproveStage
from reviewcore.pipeline.stages.suggestion_validation import ValidateSuggestionsStage

__all__ = [
    "CreateCheckRunStage",
    "CreateFileCommentsStage",
    "CreatePrLevelCommentsStage",
    "FetchChangedFilesStage",
    "FinalizeCheckRunStage",
    "InitialCommentStage",
    "LoadExternalContextStage",
    "ProcessFilesPrLevelReviewStage",
    "ProcessFilesReviewStage",
    "RequestChangesOrApproveStage",
    "ResolveConfigStage",
    "UpdateCommentsAndGenerateSummaryStage",
    "ValidateConfigStage",
    "ValidateNewCommitsStage",
    "ValidatePrerequisitesStage",
    "ValidateSuggestionsStage",
]
