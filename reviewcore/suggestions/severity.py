"""Cluster graph, severity normalization, and severity-level filtering."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.severity_level import (
    SeverityLevel,
    normalize_severity,
    severity_rank,
)
from reviewcore.enums.suggestion import ClusteringType, DeliveryStatus, PriorityStatus

if TYPE_CHECKING:
    from reviewcore.models.suggestion import CodeSuggestion

# Severities accepted by each minimum-severity filter.
SEVERITY_FILTER_TABLE: dict[SeverityLevel, frozenset[SeverityLevel]] = {
    SeverityLevel.CRITICAL: frozenset({SeverityLevel.CRITICAL}),
    SeverityLevel.HIGH: frozenset({SeverityLevel.CRITICAL, SeverityLevel.HIGH}),
    SeverityLevel.MEDIUM: frozenset(
        {SeverityLevel.CRITICAL, SeverityLevel.HIGH, SeverityLevel.MEDIUM},
    ),
    SeverityLevel.LOW: frozenset(SeverityLevel),
}


@dataclass
class ClusterGraph:
    """Parent to children adjacency of one suggestion set.

    Children come from both the parent's ``related_suggestions_ids`` and
    each related suggestion's ``parent_suggestion_id``. Only ids present
    in the set are kept, so orphaned related suggestions (whose parent
    is absent) belong to no cluster.

    Attributes:
        children: Parent id to the ids of its related suggestions.
        orphans: Ids of related suggestions whose parent is absent.
    """

    children: dict[str, set[str]] = field(default_factory=dict)
    orphans: set[str] = field(default_factory=set)

    @classmethod
    def build(cls, suggestions: Iterable[CodeSuggestion]) -> ClusterGraph:
        """Build the graph once for a suggestion set."""
        items = list(suggestions)
        present = {s.id for s in items if s.id}
        graph = cls()

        for s in items:
            if s.clustering_type == ClusteringType.PARENT and s.id:
                info = s.clustering_information
                listed = info.related_suggestions_ids if info else ()
                graph.children[s.id] = {rid for rid in listed if rid in present}

        for s in items:
            if s.clustering_type != ClusteringType.RELATED or not s.id:
                continue
            parent_id = s.parent_suggestion_id
            if parent_id and parent_id in graph.children:
                graph.children[parent_id].add(s.id)
            elif not any(s.id in kids for kids in graph.children.values()):
                graph.orphans.add(s.id)

        if graph.orphans:
            logger.debug(
                f"{len(graph.orphans)} related suggestion(s) without a parent "
                f"in this set",
            )
        return graph

    def groups(self) -> dict[str, set[str]]:
        """Return parent id to the full member set (parent included)."""
        return {parent: {parent, *kids} for parent, kids in self.children.items()}


def normalize_cluster_severity(
    suggestions: Sequence[CodeSuggestion],
    graph: ClusterGraph | None = None,
) -> list[CodeSuggestion]:
    """Give every member of a cluster the highest severity in it.

    Unset or unknown severities rank below ``low``; a group where no
    member has a known severity is normalized to ``low``. Suggestions
    outside any cluster keep their severity.

    Args:
        suggestions: Suggestions to normalize.
        graph: Prebuilt cluster graph. Built from ``suggestions`` when
            omitted.

    Returns:
        Copies of the suggestions in input order.
    """
    graph = graph or ClusterGraph.build(suggestions)
    by_id = {s.id: s for s in suggestions if s.id}
    target: dict[str, str] = {}

    for parent_id, members in graph.groups().items():
        highest = SeverityLevel.LOW.value
        for member_id in members:
            member = by_id.get(member_id)
            if member is None:
                continue
            level = normalize_severity(member.severity)
            if level is not None and severity_rank(level) > severity_rank(highest):
                highest = level.value
        for member_id in members:
            target[member_id] = highest
        logger.debug(f"Cluster {parent_id}: {len(members)} member(s) at {highest}")

    return [
        replace(s, severity=target[s.id])
        if s.id in target and s.severity != target[s.id]
        else s
        for s in suggestions
    ]


def filter_by_severity_level(
    suggestions: Iterable[CodeSuggestion],
    severity_level_filter: SeverityLevel,
) -> tuple[list[CodeSuggestion], list[CodeSuggestion]]:
    """Split suggestions by a minimum severity.

    Args:
        suggestions: Suggestions to filter.
        severity_level_filter: Minimum severity kept.

    Returns:
        ``(prioritized, discarded)``. Kept suggestions are marked
        ``prioritized``; the rest ``discarded_by_severity``. Both are
        ``not_sent``.
    """
    accepted = SEVERITY_FILTER_TABLE[SeverityLevel(severity_level_filter)]
    prioritized: list[CodeSuggestion] = []
    discarded: list[CodeSuggestion] = []
    for s in suggestions:
        if normalize_severity(s.severity) in accepted:
            prioritized.append(
                s.with_status(PriorityStatus.PRIORITIZED, DeliveryStatus.NOT_SENT),
            )
        else:
            discarded.append(
                s.with_status(
                    PriorityStatus.DISCARDED_BY_SEVERITY,
                    DeliveryStatus.NOT_SENT,
                ),
            )

    logger.debug(
        f"Severity filter {severity_level_filter}: kept {len(prioritized)}, "
        f"discarded {len(discarded)}",
    )
    return prioritized, discarded
