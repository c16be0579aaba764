"""Prioritization policy: decides which suggestions are delivered.

Combines severity normalization, severity filtering, and quantity
limiting under a ``SuggestionControlConfig``. Kody Rules suggestions can
be exempted from all filtering. The policy never raises: on any
unexpected failure every input suggestion is delivered.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.severity_level import SeverityLevel
from reviewcore.enums.suggestion import DeliveryStatus, PriorityStatus
from reviewcore.enums.suggestion_control import LimitationType
from reviewcore.models.results import PrioritizationResult
from reviewcore.suggestions.ranking import (
    apply_quantity_limit,
    assign_rank_scores,
    ensure_suggestion_ids,
    get_discarded_suggestions,
    is_kody_rule,
)
from reviewcore.suggestions.severity import (
    ClusterGraph,
    filter_by_severity_level,
    normalize_cluster_severity,
)

if TYPE_CHECKING:
    from reviewcore.config import SuggestionControlConfig
    from reviewcore.models.pull_request import OrganizationAndTeamData
    from reviewcore.models.suggestion import CodeSuggestion
    from reviewcore.services.base import CommentManagerService

# Error codes written to the log so operators can tell the paths apart.
KODY_RULES_EXEMPTION_FALLBACK = "KODY_RULES_EXEMPTION_FALLBACK"
PRIORITIZATION_FAILSAFE = "PRIORITIZATION_FAILSAFE"


class PrioritizationPolicy:
    """Reduce a pull request's raw suggestions to a delivery set.

    Args:
        comment_manager: Optional collaborator that clusters repeated
            suggestions before severity normalization. Without it, the
            clustering information already on the suggestions is used.
    """

    def __init__(self, comment_manager: CommentManagerService | None = None) -> None:
        self._comment_manager = comment_manager

    def prioritize(
        self,
        organization_and_team: OrganizationAndTeamData,
        suggestion_control: SuggestionControlConfig,
        pr_number: int,
        suggestions: Sequence[CodeSuggestion],
    ) -> PrioritizationResult:
        """Partition suggestions into prioritized and discarded.

        Args:
            organization_and_team: Tenant the pull request belongs to.
            suggestion_control: Active policy.
            pr_number: Pull request number, used for logging.
            suggestions: Every suggestion produced for the pull request.

        Returns:
            The prioritized suggestions and the suggestions discarded by
            severity or quantity. Suggestions that arrive without an id
            are given one, so every input lands in exactly one list.
        """
        suggestions = ensure_suggestion_ids(suggestions)
        try:
            has_kody_rules = any(is_kody_rule(s) for s in suggestions)
            if has_kody_rules and not suggestion_control.apply_filters_to_kody_rules:
                logger.info(
                    f"Kody Rules detected for PR#{pr_number}, exempting them "
                    f"from filters",
                )
                try:
                    return self._prioritize_with_kody_exemption(
                        organization_and_team,
                        suggestion_control,
                        pr_number,
                        suggestions,
                    )
                except Exception as e:
                    logger.error(
                        f"[{KODY_RULES_EXEMPTION_FALLBACK}] Kody Rules exemption "
                        f"failed for PR#{pr_number}, filtering all suggestions "
                        f"together: {e}",
                    )
                    return self._run_filters(
                        organization_and_team,
                        suggestion_control,
                        pr_number,
                        suggestions,
                    )

            return self._run_filters(
                organization_and_team,
                suggestion_control,
                pr_number,
                suggestions,
            )
        except Exception as e:
            logger.exception(
                f"[{PRIORITIZATION_FAILSAFE}] Prioritization failed for "
                f"PR#{pr_number}, delivering all {len(suggestions)} "
                f"suggestion(s): {e}",
            )
            return PrioritizationResult(
                prioritized_suggestions=[
                    s.with_status(PriorityStatus.PRIORITIZED) for s in suggestions
                ],
                discarded_suggestions=[],
            )

    def _prioritize_with_kody_exemption(
        self,
        organization_and_team: OrganizationAndTeamData,
        suggestion_control: SuggestionControlConfig,
        pr_number: int,
        suggestions: Sequence[CodeSuggestion],
    ) -> PrioritizationResult:
        kody_rules = [s for s in suggestions if is_kody_rule(s)]
        normal = [s for s in suggestions if not is_kody_rule(s)]

        result = PrioritizationResult()
        if normal:
            result = self._run_filters(
                organization_and_team,
                suggestion_control,
                pr_number,
                normal,
            )

        exempt = [
            s.with_status(PriorityStatus.PRIORITIZED, DeliveryStatus.NOT_SENT)
            for s in assign_rank_scores(kody_rules)
        ]
        logger.info(
            f"PR#{pr_number}: {len(exempt)} Kody Rules suggestion(s) exempt, "
            f"{len(result.prioritized_suggestions)}/{len(normal)} other "
            f"suggestion(s) prioritized",
        )
        return PrioritizationResult(
            prioritized_suggestions=[*result.prioritized_suggestions, *exempt],
            discarded_suggestions=result.discarded_suggestions,
        )

    def _run_filters(
        self,
        organization_and_team: OrganizationAndTeamData,
        suggestion_control: SuggestionControlConfig,
        pr_number: int,
        suggestions: Sequence[CodeSuggestion],
    ) -> PrioritizationResult:
        refined = assign_rank_scores(suggestions)

        if suggestion_control.grouping_mode.is_clustering:
            if self._comment_manager is not None:
                refined = self._comment_manager.cluster_suggestions(
                    organization_and_team,
                    pr_number,
                    refined,
                )
            refined = normalize_cluster_severity(refined, ClusterGraph.build(refined))

        # Severity limiting decides exclusion on its own; keep every level.
        severity_filter = (
            SeverityLevel.LOW
            if suggestion_control.limitation_type == LimitationType.SEVERITY
            else suggestion_control.severity_level_filter
        )
        by_severity, discarded_by_severity = filter_by_severity_level(
            refined,
            severity_filter,
        )
        if not by_severity:
            logger.info(
                f"PR#{pr_number}: no suggestion passed the {severity_filter} "
                f"severity filter",
            )
            return PrioritizationResult(
                prioritized_suggestions=[],
                discarded_suggestions=discarded_by_severity,
            )

        by_quantity = apply_quantity_limit(by_severity, suggestion_control)
        discarded_by_quantity = get_discarded_suggestions(
            by_severity,
            by_quantity,
            PriorityStatus.DISCARDED_BY_QUANTITY,
        )
        logger.info(
            f"PR#{pr_number}: prioritized {len(by_quantity)}, discarded "
            f"{len(discarded_by_severity)} by severity and "
            f"{len(discarded_by_quantity)} by quantity "
            f"({suggestion_control.limitation_type} limit)",
        )
        return PrioritizationResult(
            prioritized_suggestions=by_quantity,
            discarded_suggestions=[*discarded_by_severity, *discarded_by_quantity],
        )
