"""Result records passed between the policy, stages, and collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from reviewcore.enums.automation import AutomationMessage
from reviewcore.enums.pipeline import CommentType
from reviewcore.enums.review_cadence import ReviewCadenceState
from reviewcore.enums.suggestion import DeliveryStatus, PriorityStatus
from reviewcore.models.suggestion import CodeSuggestion, SuggestionComment


@dataclass
class PrioritizationResult:
    """Partition produced by the prioritization policy.

    Attributes:
        prioritized_suggestions: Suggestions to deliver, in ranking order.
        discarded_suggestions: Suggestions removed by severity or quantity
            limits, stamped ``not_sent``.
    """

    prioritized_suggestions: list[CodeSuggestion] = field(default_factory=list)
    discarded_suggestions: list[CodeSuggestion] = field(default_factory=list)


@dataclass
class SortedSuggestions:
    """Delivery-ordered suggestions plus every discard collected so far."""

    sorted_prioritized_suggestions: list[CodeSuggestion] = field(
        default_factory=list,
    )
    all_discarded_suggestions: list[CodeSuggestion] = field(default_factory=list)


@dataclass(frozen=True)
class CommentResult:
    """Outcome of posting one comment.

    Attributes:
        suggestion_id: Id of the suggestion that was posted.
        delivery_status: Whether the platform accepted the comment.
        comment_type: Line or PR-level comment.
        comment_id: Platform id of the created comment.
        pull_request_review_id: Platform review the comment belongs to.
        suggestion: The suggestion that was posted.
    """

    suggestion_id: str
    delivery_status: DeliveryStatus
    comment_type: CommentType = CommentType.LINE
    comment_id: str | None = None
    pull_request_review_id: str | None = None
    suggestion: CodeSuggestion | None = None


@dataclass(frozen=True)
class PrLevelSuggestion:
    """A delivered suggestion scoped to the whole pull request."""

    id: str
    suggestion_content: str = ""
    one_sentence_summary: str = ""
    label: str = ""
    severity: str = ""
    priority_status: PriorityStatus = PriorityStatus.PRIORITIZED
    delivery_status: DeliveryStatus = DeliveryStatus.NOT_SENT
    comment: SuggestionComment | None = None


@dataclass
class FileAnalysisResult:
    """Suggestions produced for one file by the analysis pass.

    Attributes:
        filename: Analyzed file.
        valid_suggestions: Suggestions eligible for prioritization.
        discarded_suggestions: Suggestions rejected by the analysis or
            lying outside the diff.
        saved_suggestions: Suggestions persisted for the file by an
            earlier review of the same pull request.
        metadata: Free-form analysis metadata.
    """

    filename: str
    valid_suggestions: list[CodeSuggestion] = field(default_factory=list)
    discarded_suggestions: list[CodeSuggestion] = field(default_factory=list)
    saved_suggestions: list[CodeSuggestion] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AutomaticReviewStatus:
    """Cadence state transition recorded by the cadence gate."""

    previous_status: ReviewCadenceState | None = None
    current_status: ReviewCadenceState = ReviewCadenceState.AUTOMATIC
    reason_for_change: str = ""
    pause_comment_id: str | None = None


@dataclass(frozen=True)
class CadenceDecision:
    """Whether the cadence gate lets the run proceed.

    Attributes:
        should_process: True when the pipeline continues.
        reason: Message explaining the decision.
        should_save_skipped: Whether a skipped run is persisted.
        automatic_review_status: Cadence state transition.
    """

    should_process: bool
    reason: AutomationMessage | str
    should_save_skipped: bool = False
    automatic_review_status: AutomaticReviewStatus | None = None


@dataclass(frozen=True)
class LineComment:
    """A line comment ready to be posted.

    Attributes:
        path: File the comment is attached to.
        line: Last line of the commented range.
        start_line: First line of a multi-line range, None for a
            single-line comment.
        suggestion: The suggestion being delivered.
    """

    path: str
    line: int | None
    start_line: int | None
    suggestion: CodeSuggestion


@dataclass(frozen=True)
class PrAnalysisResult:
    """Suggestions from the PR-level and cross-file analysis passes."""

    valid_suggestions_by_pr: list[CodeSuggestion] = field(default_factory=list)
    valid_cross_file_suggestions: list[CodeSuggestion] = field(
        default_factory=list,
    )
