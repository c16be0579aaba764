"""Code suggestion data model.

A suggestion is created by an analysis pass and then only has its
ranking and delivery fields changed. Updates go through
``dataclasses.replace`` so a caller's input list is never modified.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any

from reviewcore.enums.suggestion import (
    ClusteringType,
    DeliveryStatus,
    ImplementationStatus,
    PriorityStatus,
)

# camelCase payload keys accepted by ``CodeSuggestion.from_dict``.
_CAMEL_TO_SNAKE: dict[str, str] = {
    "relevantFile": "relevant_file",
    "relevantLinesStart": "relevant_lines_start",
    "relevantLinesEnd": "relevant_lines_end",
    "existingCode": "existing_code",
    "improvedCode": "improved_code",
    "suggestionContent": "suggestion_content",
    "oneSentenceSummary": "one_sentence_summary",
    "rankScore": "rank_score",
    "priorityStatus": "priority_status",
    "deliveryStatus": "delivery_status",
    "clusteringInformation": "clustering_information",
    "implementationStatus": "implementation_status",
    "isCommittable": "is_committable",
    "validatedCode": "validated_code",
}


@dataclass(frozen=True)
class ClusteringInformation:
    """Position of a suggestion within a cluster.

    Attributes:
        type: Parent, related, or none.
        parent_suggestion_id: Parent id for related suggestions.
        related_suggestions_ids: Child ids listed on a parent.
    """

    type: ClusteringType = ClusteringType.NONE
    parent_suggestion_id: str | None = None
    related_suggestions_ids: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClusteringInformation:
        """Build from a camelCase or snake_case mapping."""
        raw_type = data.get("type") or ClusteringType.NONE
        try:
            clustering_type = ClusteringType(str(raw_type).lower())
        except ValueError:
            clustering_type = ClusteringType.NONE
        related = data.get("relatedSuggestionsIds") or data.get(
            "related_suggestions_ids",
        )
        return cls(
            type=clustering_type,
            parent_suggestion_id=data.get("parentSuggestionId")
            or data.get("parent_suggestion_id"),
            related_suggestions_ids=tuple(related or ()),
        )


@dataclass(frozen=True)
class SuggestionComment:
    """Platform comment a suggestion was delivered as."""

    id: str | None = None
    pull_request_review_id: str | None = None


@dataclass(frozen=True)
class CodeSuggestion:
    """One proposed code change tied to a file and line range.

    Attributes:
        id: Identifier, unique within one analysis run.
        relevant_file: Path of the file the suggestion applies to.
        relevant_lines_start: First line of the suggested change.
        relevant_lines_end: Last line of the suggested change.
        language: Language of the file.
        existing_code: Code being replaced.
        improved_code: Proposed replacement.
        suggestion_content: Full explanation of the suggestion.
        one_sentence_summary: Short summary for compact display.
        label: Category label, e.g. ``security`` or ``kody_rules``.
        severity: ``low``, ``medium``, ``high``, or ``critical``.
        rank_score: Category weight plus severity modifier. None until
            scored.
        priority_status: Set once by prioritization.
        delivery_status: Outcome of the delivery attempt.
        clustering_information: Cluster membership, if any.
        comment: Platform comment the suggestion was posted as.
        implementation_status: Whether a later commit applied the
            suggestion.
        is_committable: The suggestion passed validation and can be
            posted as a committable change.
        validated_code: Replacement code produced by that validation.
    """

    id: str = ""
    relevant_file: str = ""
    relevant_lines_start: int | None = None
    relevant_lines_end: int | None = None
    language: str = ""
    existing_code: str = ""
    improved_code: str = ""
    suggestion_content: str = ""
    one_sentence_summary: str = ""
    label: str = ""
    severity: str = ""
    rank_score: float | None = None
    priority_status: PriorityStatus | None = None
    delivery_status: DeliveryStatus | None = None
    clustering_information: ClusteringInformation | None = None
    comment: SuggestionComment | None = None
    implementation_status: ImplementationStatus | None = None
    is_committable: bool = False
    validated_code: str = ""

    @property
    def clustering_type(self) -> ClusteringType:
        """Return the clustering role, NONE when the suggestion is unclustered."""
        if self.clustering_information is None:
            return ClusteringType.NONE
        return self.clustering_information.type

    @property
    def parent_suggestion_id(self) -> str | None:
        """Return the parent id for related suggestions."""
        if self.clustering_information is None:
            return None
        return self.clustering_information.parent_suggestion_id

    def with_status(
        self,
        priority_status: PriorityStatus | None = None,
        delivery_status: DeliveryStatus | None = None,
    ) -> CodeSuggestion:
        """Return a copy with the given status fields replaced.

        Args:
            priority_status: New priority status, unchanged when None.
            delivery_status: New delivery status, unchanged when None.

        Returns:
            A new CodeSuggestion.
        """
        changes: dict[str, Any] = {}
        if priority_status is not None:
            changes["priority_status"] = priority_status
        if delivery_status is not None:
            changes["delivery_status"] = delivery_status
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodeSuggestion:
        """Build a suggestion from a camelCase or snake_case mapping.

        Unknown keys are ignored.

        Args:
            data: Raw suggestion payload.

        Returns:
            The parsed suggestion.
        """
        known = set(cls.__dataclass_fields__)
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_TO_SNAKE.get(key, key)
            if name in known:
                values[name] = value

        clustering = values.get("clustering_information")
        if isinstance(clustering, dict):
            values["clustering_information"] = ClusteringInformation.from_dict(
                clustering,
            )
        if values.get("priority_status"):
            values["priority_status"] = PriorityStatus(values["priority_status"])
        if values.get("delivery_status"):
            values["delivery_status"] = DeliveryStatus(values["delivery_status"])
        if values.get("implementation_status"):
            values["implementation_status"] = ImplementationStatus(
                values["implementation_status"],
            )
        comment = values.get("comment")
        if isinstance(comment, dict):
            values["comment"] = SuggestionComment(
                id=comment.get("id"),
                pull_request_review_id=comment.get("pullRequestReviewId")
                or comment.get("pull_request_review_id"),
            )
        if values.get("id") is not None:
            values["id"] = str(values["id"])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return asdict(self)
