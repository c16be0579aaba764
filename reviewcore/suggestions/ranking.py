"""Scoring, ordering, and quantity limiting of code suggestions.

Everything here is a pure function over in-memory lists: inputs are
never modified, statuses are applied to copies.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.severity_level import (
    SEVERITY_ORDER_DESC,
    SeverityLevel,
    normalize_severity,
    severity_rank,
)
from reviewcore.enums.suggestion import (
    ClusteringType,
    DeliveryStatus,
    LabelType,
    PriorityStatus,
)
from reviewcore.enums.suggestion_control import GroupingMode, LimitationType
from reviewcore.exceptions import PrioritizationError

if TYPE_CHECKING:
    from reviewcore.config import (
        ReviewOptions,
        SeverityLimits,
        SuggestionControlConfig,
    )
    from reviewcore.models.suggestion import CodeSuggestion

# Lower value sorts first when rank scores tie.
CATEGORY_PRIORITY: dict[LabelType, int] = {
    LabelType.KODY_RULES: 1,
    LabelType.BREAKING_CHANGES: 2,
    LabelType.SECURITY: 3,
    LabelType.POTENTIAL_ISSUES: 4,
    LabelType.ERROR_HANDLING: 5,
    LabelType.PERFORMANCE_AND_OPTIMIZATION: 6,
    LabelType.MAINTAINABILITY: 7,
    LabelType.REFACTORING: 8,
    LabelType.CODE_STYLE: 9,
    LabelType.DOCUMENTATION_AND_COMMENTS: 10,
}
UNKNOWN_CATEGORY_PRIORITY = 999

CATEGORY_WEIGHTS: dict[LabelType, int] = {
    LabelType.KODY_RULES: 100,
    LabelType.BREAKING_CHANGES: 100,
    LabelType.SECURITY: 50,
    LabelType.POTENTIAL_ISSUES: 40,
    LabelType.ERROR_HANDLING: 30,
    LabelType.PERFORMANCE_AND_OPTIMIZATION: 25,
    LabelType.MAINTAINABILITY: 20,
    LabelType.REFACTORING: 15,
    LabelType.CODE_STYLE: 10,
    LabelType.DOCUMENTATION_AND_COMMENTS: 5,
}

SEVERITY_MODIFIERS: dict[SeverityLevel, int] = {
    SeverityLevel.CRITICAL: 50,
    SeverityLevel.HIGH: 30,
    SeverityLevel.MEDIUM: 20,
    SeverityLevel.LOW: 10,
}

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_label(label: str | None) -> str:
    """Lowercase a label and collapse whitespace runs to underscores."""
    return _WHITESPACE_RE.sub("_", (label or "").lower())


def parse_label(label: str | None) -> LabelType | None:
    """Return the LabelType for a raw label, or None when unknown."""
    try:
        return LabelType(normalize_label(label))
    except ValueError:
        return None


def is_kody_rule(suggestion: CodeSuggestion) -> bool:
    """Return True when the suggestion belongs to the Kody Rules category."""
    return normalize_label(suggestion.label) == LabelType.KODY_RULES.value


def category_priority(label: str | None) -> int:
    """Return the tie-break priority of a category, 999 when unknown."""
    category = parse_label(label)
    if category is None:
        return UNKNOWN_CATEGORY_PRIORITY
    return CATEGORY_PRIORITY[category]


def calculate_rank_score(suggestion: CodeSuggestion) -> float:
    """Score a suggestion from its category and severity.

    The score is ``category_weight + severity_modifier``. Unknown
    categories and severities contribute 0.

    Args:
        suggestion: Suggestion to score.

    Returns:
        The rank score.
    """
    category = parse_label(suggestion.label)
    severity = normalize_severity(suggestion.severity)
    if category is None:
        logger.debug(
            f"Unrecognized category {suggestion.label!r} on suggestion "
            f"{suggestion.id}, weight 0",
        )
    if severity is None:
        logger.debug(
            f"Unrecognized severity {suggestion.severity!r} on suggestion "
            f"{suggestion.id}, modifier 0",
        )
    weight = CATEGORY_WEIGHTS[category] if category is not None else 0
    modifier = SEVERITY_MODIFIERS[severity] if severity is not None else 0
    return float(weight + modifier)


def assign_rank_scores(
    suggestions: Iterable[CodeSuggestion],
) -> list[CodeSuggestion]:
    """Return copies of the suggestions with missing rank scores filled in."""
    return [
        s
        if s.rank_score is not None
        else replace(s, rank_score=calculate_rank_score(s))
        for s in suggestions
    ]


def ensure_suggestion_ids(
    suggestions: Iterable[CodeSuggestion],
) -> list[CodeSuggestion]:
    """Give every suggestion without an id a fresh uuid4."""
    return [s if s.id else replace(s, id=str(uuid.uuid4())) for s in suggestions]


def sort_by_priority(suggestions: Iterable[CodeSuggestion]) -> list[CodeSuggestion]:
    """Sort by rank score descending, then by category priority.

    The sort is stable: suggestions with equal score and category keep
    their input order.
    """
    return sorted(
        suggestions,
        key=lambda s: (-(s.rank_score or 0), category_priority(s.label)),
    )


def _mark_prioritized(suggestions: Iterable[CodeSuggestion]) -> list[CodeSuggestion]:
    return [
        s.with_status(PriorityStatus.PRIORITIZED, DeliveryStatus.NOT_SENT)
        for s in suggestions
    ]


def limit_by_file(
    suggestions: Sequence[CodeSuggestion],
    limit_per_file: int,
) -> list[CodeSuggestion]:
    """Keep the top suggestions of each file.

    Args:
        suggestions: Suggestions to limit.
        limit_per_file: Suggestions kept per file. 0 keeps all.

    Returns:
        Kept suggestions marked prioritized, grouped by file in first-seen
        file order.
    """
    groups: dict[str, list[CodeSuggestion]] = {}
    for suggestion in suggestions:
        groups.setdefault(suggestion.relevant_file, []).append(suggestion)

    kept: list[CodeSuggestion] = []
    for file_suggestions in groups.values():
        ordered = sort_by_priority(file_suggestions)
        kept.extend(ordered if limit_per_file == 0 else ordered[:limit_per_file])

    logger.debug(
        f"Limited by file: kept {len(kept)}/{len(suggestions)} across "
        f"{len(groups)} file(s), limit_per_file={limit_per_file}",
    )
    return _mark_prioritized(kept)


def limit_by_pr(
    suggestions: Sequence[CodeSuggestion],
    pr_limit: int,
) -> list[CodeSuggestion]:
    """Keep the top suggestions of the whole pull request.

    Args:
        suggestions: Suggestions to limit.
        pr_limit: Suggestions kept. 0 keeps all.

    Returns:
        Kept suggestions marked prioritized, in priority order.
    """
    ordered = sort_by_priority(suggestions)
    kept = ordered if pr_limit == 0 else ordered[:pr_limit]
    logger.debug(
        f"Limited by PR: kept {len(kept)}/{len(suggestions)}, pr_limit={pr_limit}",
    )
    return _mark_prioritized(kept)


def limit_by_severity(
    suggestions: Sequence[CodeSuggestion],
    severity_limits: SeverityLimits,
) -> list[CodeSuggestion]:
    """Keep the top suggestions of each severity bucket.

    Suggestions without a severity count as ``low``. Suggestions with an
    unrecognized severity fall in no bucket and are not kept.

    Args:
        suggestions: Suggestions to limit.
        severity_limits: Per-bucket limits. 0 keeps the whole bucket.

    Returns:
        Kept suggestions marked prioritized, ordered critical, high,
        medium, low and by rank score within each bucket.
    """
    buckets: dict[SeverityLevel, list[CodeSuggestion]] = {
        level: [] for level in SEVERITY_ORDER_DESC
    }
    for suggestion in suggestions:
        level = (
            normalize_severity(suggestion.severity)
            if suggestion.severity
            else SeverityLevel.LOW
        )
        if level is None:
            logger.debug(
                f"Suggestion {suggestion.id} has unrecognized severity "
                f"{suggestion.severity!r}, not bucketed",
            )
            continue
        buckets[level].append(suggestion)

    kept: list[CodeSuggestion] = []
    breakdown: list[str] = []
    for level in SEVERITY_ORDER_DESC:
        limit = severity_limits.limit_for(level)
        ordered = sorted(buckets[level], key=lambda s: -(s.rank_score or 0))
        selected = ordered if limit == 0 else ordered[:limit]
        kept.extend(selected)
        breakdown.append(f"{level}={len(selected)}/{len(ordered)}")

    logger.debug(f"Limited by severity: {', '.join(breakdown)}")
    return _mark_prioritized(kept)


def get_discarded_suggestions(
    before: Iterable[CodeSuggestion],
    after: Iterable[CodeSuggestion],
    reason: PriorityStatus,
) -> list[CodeSuggestion]:
    """Return suggestions of ``before`` whose id is missing from ``after``.

    Args:
        before: Suggestions going into a filter.
        after: Suggestions that survived it.
        reason: Discard status stamped on each removed suggestion.

    Returns:
        Removed suggestions marked with ``reason`` and ``not_sent``.
        Suggestions without an id are never reported.
    """
    kept_ids = {s.id for s in after if s.id}
    return [
        s.with_status(reason, DeliveryStatus.NOT_SENT)
        for s in before
        if s.id and s.id not in kept_ids
    ]


def split_related_suggestions(
    suggestions: Sequence[CodeSuggestion],
    grouping_mode: GroupingMode,
) -> tuple[list[CodeSuggestion], list[CodeSuggestion]]:
    """Separate related suggestions from the limiting pool.

    Args:
        suggestions: Suggestions about to be limited.
        grouping_mode: Active grouping mode.

    Returns:
        ``(pool, related)``. ``related`` is empty unless the grouping mode
        clusters suggestions.
    """
    if not grouping_mode.is_clustering:
        return list(suggestions), []
    pool = [s for s in suggestions if s.clustering_type != ClusteringType.RELATED]
    related = [s for s in suggestions if s.clustering_type == ClusteringType.RELATED]
    return pool, related


def readmit_related_suggestions(
    related: Sequence[CodeSuggestion],
    prioritized: Sequence[CodeSuggestion],
) -> list[CodeSuggestion]:
    """Add back related suggestions whose parent survived limiting.

    Args:
        related: Related suggestions held out of limiting.
        prioritized: Suggestions kept by the limiting strategy.

    Returns:
        ``prioritized`` followed by the re-admitted related suggestions,
        marked ``prioritized_by_clustering``.
    """
    prioritized_ids = {s.id for s in prioritized}
    readmitted = [
        s.with_status(PriorityStatus.PRIORITIZED_BY_CLUSTERING, DeliveryStatus.NOT_SENT)
        for s in related
        if s.parent_suggestion_id and s.parent_suggestion_id in prioritized_ids
    ]
    if len(readmitted) < len(related):
        logger.debug(
            f"{len(related) - len(readmitted)} related suggestion(s) dropped "
            f"with their parent",
        )
    return [*prioritized, *readmitted]


def apply_quantity_limit(
    suggestions: Sequence[CodeSuggestion],
    suggestion_control: SuggestionControlConfig,
) -> list[CodeSuggestion]:
    """Apply the configured limiting strategy with the clustering exemption.

    Related suggestions are held out of limiting in smart and full
    grouping modes and re-admitted only when their parent is kept.

    Args:
        suggestions: Suggestions that passed severity filtering.
        suggestion_control: Active policy.

    Returns:
        Suggestions to deliver.

    Raises:
        PrioritizationError: If the limitation type is not recognized.
    """
    pool, related = split_related_suggestions(
        suggestions,
        suggestion_control.grouping_mode,
    )

    limitation = suggestion_control.limitation_type
    if limitation == LimitationType.SEVERITY:
        kept = limit_by_severity(pool, suggestion_control.severity_limits)
    elif limitation == LimitationType.PR:
        kept = limit_by_pr(pool, suggestion_control.max_suggestions)
    elif limitation == LimitationType.FILE:
        kept = limit_by_file(pool, suggestion_control.max_suggestions)
    else:
        raise PrioritizationError(f"Unknown limitation type: {limitation!r}")

    if related:
        return readmit_related_suggestions(related, kept)
    return kept


def sort_by_file_path_and_severity(
    suggestions: Sequence[CodeSuggestion],
    grouping_mode: GroupingMode,
) -> list[CodeSuggestion]:
    """Order suggestions for delivery.

    In smart and full grouping modes parent suggestions come first,
    by severity descending. The remaining suggestions follow, by file
    path and then severity descending.

    Args:
        suggestions: Prioritized suggestions.
        grouping_mode: Active grouping mode.

    Returns:
        Suggestions in delivery order.
    """
    if not grouping_mode.is_clustering:
        return sorted(
            suggestions,
            key=lambda s: (s.relevant_file, -severity_rank(s.severity)),
        )

    parents = sorted(
        (s for s in suggestions if s.clustering_type == ClusteringType.PARENT),
        key=lambda s: -severity_rank(s.severity),
    )
    others = sorted(
        (s for s in suggestions if s.clustering_type != ClusteringType.PARENT),
        key=lambda s: (s.relevant_file, -severity_rank(s.severity)),
    )
    return [*parents, *others]


def filter_by_review_options(
    review_options: ReviewOptions,
    suggestions: Iterable[CodeSuggestion],
) -> list[CodeSuggestion]:
    """Drop suggestions whose category is switched off."""
    return [
        s for s in suggestions if review_options.is_enabled(normalize_label(s.label))
    ]
