"""Exception hierarchy for reviewcore.

All exceptions inherit from ReviewCoreError so callers can catch
everything raised by the engine with a single handler.
"""

from __future__ import annotations


class ReviewCoreError(Exception):
    """Base exception for all reviewcore errors."""


class ConfigurationError(ReviewCoreError):
    """Review configuration is missing or invalid.

    Raised when a raw configuration mapping cannot be validated into a
    ``CodeReviewConfig`` or when a stage needs configuration that was
    never resolved.
    """


class CollaboratorError(ReviewCoreError):
    """Error communicating with an external collaborator.

    Raised by service adapters (platform clients, persistence, AI
    analysis) for transient failures such as network or server errors.
    These are retried by ``with_retry``.
    """


class CollaboratorTimeoutError(CollaboratorError):
    """An external collaborator did not answer in time.

    Signal lookups treat this as "no signal" and proceed. It is never
    retried.
    """


class PrioritizationError(ReviewCoreError):
    """Ranking, limiting, or clustering could not complete.

    The prioritization policy recovers from this internally; it only
    escapes when a ranking helper is called directly.
    """


class PipelineError(ReviewCoreError):
    """Base exception for pipeline execution errors."""


class StageExecutionError(PipelineError):
    """A pipeline stage failed.

    ``PipelineStage.execute`` raises this for any exception escaping a
    stage, chained to the original error.

    Attributes:
        stage_name: Name of the stage that failed.
        reason: Description of the failure without the stage prefix.
    """

    def __init__(self, stage_name: str, message: str) -> None:
        """Initialize the error.

        Args:
            stage_name: Name of the stage that failed.
            message: Description of the failure.
        """
        super().__init__(f"{stage_name}: {message}")
        self.stage_name = stage_name
        self.reason = message
