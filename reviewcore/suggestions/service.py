"""Suggestion service used by the delivery stages.

Wraps the prioritization policy with delivery ordering, full-mode
cluster folding, and delivery bookkeeping. Incremental reviews also
check new suggestions and commits against suggestions saved earlier.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.pipeline import CommentType
from reviewcore.enums.suggestion import (
    ClusteringType,
    DeliveryStatus,
    ImplementationStatus,
    PriorityStatus,
)
from reviewcore.enums.suggestion_control import GroupingMode
from reviewcore.models.results import PrLevelSuggestion, SortedSuggestions
from reviewcore.models.suggestion import SuggestionComment
from reviewcore.suggestions.policy import PrioritizationPolicy
from reviewcore.suggestions.ranking import sort_by_file_path_and_severity
from reviewcore.utils.diff import extract_modified_ranges

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from reviewcore.config import CodeReviewConfig
    from reviewcore.models.pull_request import FileChange, OrganizationAndTeamData
    from reviewcore.models.results import CommentResult
    from reviewcore.models.suggestion import CodeSuggestion
    from reviewcore.services.base import (
        AIAnalysisService,
        CommentManagerService,
        ImplementedSuggestion,
        PullRequestsService,
    )


def filter_suggestions_by_diff(
    patch: str | None,
    suggestions: Iterable[CodeSuggestion],
    filename: str = "file",
) -> list[CodeSuggestion]:
    """Keep suggestions whose line range overlaps a changed range of the patch."""
    ranges = extract_modified_ranges(patch, filename)
    return [
        s
        for s in suggestions
        if any(r.overlaps(s.relevant_lines_start, s.relevant_lines_end) for r in ranges)
    ]


def remove_suggestions_related_to_saved_files(
    saved_suggestions: Iterable[CodeSuggestion],
    new_suggestions: Iterable[CodeSuggestion],
) -> list[CodeSuggestion]:
    """Drop new suggestions for files that already have saved suggestions."""
    files_with_saved = {s.relevant_file for s in saved_suggestions}
    return [s for s in new_suggestions if s.relevant_file not in files_with_saved]


def suggestions_to_verify(
    saved_suggestions: Iterable[CodeSuggestion],
    files: Iterable[FileChange],
) -> list[CodeSuggestion]:
    """Return delivered, not yet implemented suggestions on changed files."""
    changed = {f.filename for f in files}
    return [
        s
        for s in saved_suggestions
        if s.delivery_status == DeliveryStatus.SENT
        and s.implementation_status != ImplementationStatus.IMPLEMENTED
        and s.relevant_file in changed
    ]


def build_code_patch(files: Iterable[FileChange]) -> str:
    """Concatenate file patches, each introduced by a ``File:`` line."""
    return "\n\n".join(f"File: {f.filename}\n{f.patch}" for f in files if f.patch)


class SuggestionService:
    """Prioritize, order, and track delivery of a pull request's suggestions.

    Args:
        comment_manager: Collaborator used for clustering and full-mode
            folding of related suggestions into parents.
        policy: Prioritization policy. Defaults to one sharing
            ``comment_manager``.
        ai_analysis: Collaborator that judges whether saved suggestions
            were implemented.
        pull_requests: Persistence the implementation verdicts are
            written to.
    """

    def __init__(
        self,
        comment_manager: CommentManagerService | None = None,
        policy: PrioritizationPolicy | None = None,
        ai_analysis: AIAnalysisService | None = None,
        pull_requests: PullRequestsService | None = None,
    ) -> None:
        self._comment_manager = comment_manager
        self.policy = policy or PrioritizationPolicy(comment_manager)
        self._ai_analysis = ai_analysis
        self._pull_requests = pull_requests

    def sort_and_prioritize(
        self,
        organization_and_team: OrganizationAndTeamData,
        config: CodeReviewConfig,
        pr_number: int,
        valid_suggestions: Sequence[CodeSuggestion],
        discarded_by_safeguard: Sequence[CodeSuggestion] = (),
    ) -> SortedSuggestions:
        """Prioritize suggestions and put them in delivery order.

        Args:
            organization_and_team: Tenant of the run.
            config: Active review configuration.
            pr_number: Pull request number.
            valid_suggestions: Suggestions eligible for delivery.
            discarded_by_safeguard: Suggestions already rejected upstream.

        Returns:
            Delivery-ordered prioritized suggestions and every discard.
            On failure, the inputs unchanged.
        """
        control = config.suggestion_control
        try:
            all_discarded = list(discarded_by_safeguard)
            if not valid_suggestions:
                return SortedSuggestions([], all_discarded)

            result = self.policy.prioritize(
                organization_and_team,
                control,
                pr_number,
                valid_suggestions,
            )
            all_discarded.extend(result.discarded_suggestions)
            if not result.prioritized_suggestions:
                return SortedSuggestions([], all_discarded)

            ordered = sort_by_file_path_and_severity(
                result.prioritized_suggestions,
                control.grouping_mode,
            )

            if control.grouping_mode == GroupingMode.FULL:
                manager = self._comment_manager
                if manager is not None:
                    ordered = manager.enrich_parent_suggestions_with_related(ordered)
                ordered = [
                    s.with_status(
                        PriorityStatus.DISCARDED_BY_CLUSTERING,
                        DeliveryStatus.NOT_SENT,
                    )
                    if s.clustering_type == ClusteringType.RELATED
                    else s
                    for s in ordered
                ]

            return SortedSuggestions(ordered, all_discarded)
        except Exception as e:
            logger.error(
                f"Failed to sort and prioritize suggestions for PR#{pr_number}: {e}",
            )
            return SortedSuggestions(
                list(valid_suggestions),
                list(discarded_by_safeguard),
            )

    def verify_suggestions_sent(
        self,
        suggestions: Sequence[CodeSuggestion],
        comment_results: Sequence[CommentResult],
    ) -> list[CodeSuggestion]:
        """Stamp suggestions with the outcome of their comment.

        Suggestions whose comment was accepted get the platform comment
        id. Suggestions with no comment result are marked ``failed``.

        Args:
            suggestions: Suggestions that were due for delivery.
            comment_results: Results returned by the comment manager.

        Returns:
            Updated copies in input order.
        """
        by_id = {r.suggestion_id: r for r in comment_results}
        updated: list[CodeSuggestion] = []
        for suggestion in suggestions:
            result = by_id.get(suggestion.id)
            if result is None:
                updated.append(
                    replace(suggestion, delivery_status=DeliveryStatus.FAILED),
                )
                continue
            if result.comment_id and result.delivery_status != DeliveryStatus.FAILED:
                updated.append(
                    replace(
                        suggestion,
                        delivery_status=result.delivery_status,
                        comment=SuggestionComment(
                            id=result.comment_id,
                            pull_request_review_id=result.pull_request_review_id,
                        ),
                    ),
                )
                continue
            updated.append(replace(suggestion, delivery_status=result.delivery_status))
        return updated

    @staticmethod
    def to_pr_level_suggestions(
        comment_results: Iterable[CommentResult],
    ) -> list[PrLevelSuggestion]:
        """Convert PR-level comment results into persisted suggestion records."""
        records: list[PrLevelSuggestion] = []
        for result in comment_results:
            if result.comment_type != CommentType.PR_LEVEL or result.suggestion is None:
                continue
            suggestion = result.suggestion
            comment = (
                SuggestionComment(
                    id=result.comment_id,
                    pull_request_review_id=result.pull_request_review_id,
                )
                if result.comment_id
                else None
            )
            records.append(
                PrLevelSuggestion(
                    id=suggestion.id,
                    suggestion_content=suggestion.suggestion_content,
                    one_sentence_summary=suggestion.one_sentence_summary,
                    label=suggestion.label,
                    severity=suggestion.severity,
                    priority_status=PriorityStatus.PRIORITIZED,
                    delivery_status=result.delivery_status,
                    comment=comment,
                ),
            )
        return records

    def validate_implemented_suggestions(
        self,
        organization_and_team: OrganizationAndTeamData,
        pr_number: int,
        code_patch: str,
        saved_suggestions: Sequence[CodeSuggestion],
    ) -> list[ImplementedSuggestion]:
        """Record which saved suggestions the new commits implemented.

        Args:
            organization_and_team: Tenant of the run.
            pr_number: Pull request number.
            code_patch: Patches of the changed files (see
                ``build_code_patch``).
            saved_suggestions: Delivered suggestions to check.

        Returns:
            The verdicts of the analysis. Empty when nothing could be
            checked or the check failed.
        """
        if not saved_suggestions or not code_patch:
            return []
        if self._ai_analysis is None:
            logger.warning(
                f"No analysis service to verify implemented suggestions "
                f"for PR#{pr_number}",
            )
            return []

        try:
            verdicts = self._ai_analysis.validate_implemented_suggestions(
                organization_and_team,
                pr_number,
                code_patch,
                list(saved_suggestions),
            )
            saved_ids = {s.id for s in saved_suggestions}
            updated_at = datetime.now(timezone.utc).isoformat()
            for verdict in verdicts or []:
                if verdict.id not in saved_ids or self._pull_requests is None:
                    continue
                self._pull_requests.update_suggestion(
                    verdict.id,
                    {
                        "implementation_status": verdict.implementation_status,
                        "updated_at": updated_at,
                    },
                )
        except Exception as e:
            logger.error(
                f"Failed to validate implemented suggestions for PR#{pr_number}: {e}",
            )
            return []

        logger.info(
            f"Checked {len(saved_suggestions)} saved suggestion(s) for "
            f"PR#{pr_number}: {len(verdicts or [])} verdict(s)",
        )
        return list(verdicts or [])
