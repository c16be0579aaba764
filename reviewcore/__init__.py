"""Suggestion prioritization and pipeline orchestration for AI code review."""

from reviewcore.config import CodeReviewConfig, PipelineSettings
from reviewcore.pipeline import (
    CodeReviewPipelineStrategy,
    PipelineContext,
    PipelineExecutor,
    PipelineOrchestrator,
)
from reviewcore.suggestions import PrioritizationPolicy, SuggestionService

__version__ = "0.1.0"

__all__ = [
    "CodeReviewConfig",
    "CodeReviewPipelineStrategy",
    "PipelineContext",
    "PipelineExecutor",
    "PipelineOrchestrator",
    "PipelineSettings",
    "PrioritizationPolicy",
    "SuggestionService",
    "__version__",
]
