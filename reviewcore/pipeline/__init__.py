"""Pipeline context, stages, executor, and the code-review strategy."""

from reviewcore.pipeline.context import (
    PipelineContext,
    SkippedReason,
    StageError,
    StatusInfo,
)
from reviewcore.pipeline.executor import PipelineExecutor
from reviewcore.pipeline.reasons import (
    PipelineReason,
    PipelineReasons,
    StageMessageHelper,
)
from reviewcore.pipeline.stage import PipelineStage
from reviewcore.pipeline.strategy import (
    CodeReviewPipelineStrategy,
    PipelineOrchestrator,
)

__all__ = [
    "CodeReviewPipelineStrategy",
    "PipelineContext",
    "PipelineExecutor",
    "PipelineOrchestrator",
    "PipelineReason",
    "PipelineReasons",
    "PipelineStage",
    "SkippedReason",
    "StageError",
    "StageMessageHelper",
    "StatusInfo",
]
