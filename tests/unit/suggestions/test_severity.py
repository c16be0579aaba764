"""Tests for cluster graphs, severity normalization, and severity filtering."""

from __future__ import annotations

import pytest
from assertpy import assert_that

from reviewcore.enums.severity_level import (
    SeverityLevel,
    normalize_severity,
    severity_rank,
)
from reviewcore.enums.suggestion import PriorityStatus
from reviewcore.suggestions.severity import (
    ClusterGraph,
    filter_by_severity_level,
    normalize_cluster_severity,
)
from tests.unit.conftest import make_suggestion, parent_info, related_info

# -- normalize_severity ----------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("High", SeverityLevel.HIGH),
        (" critical ", SeverityLevel.CRITICAL),
        (SeverityLevel.LOW, SeverityLevel.LOW),
        ("urgent", None),
        ("", None),
        (None, None),
    ],
    ids=["mixed-case", "padded", "enum", "unknown", "empty", "none"],
)
def test_normalize_severity(raw, expected) -> None:
    """Raw severities map to levels, unknown values to None."""
    assert_that(normalize_severity(raw)).is_equal_to(expected)


def test_severity_rank_unknown_is_zero() -> None:
    """Unknown severities rank below low."""
    assert_that(severity_rank("critical")).is_equal_to(4)
    assert_that(severity_rank("nope")).is_equal_to(0)


# -- ClusterGraph ----------------------------------------------------------


def test_cluster_graph_links_both_directions() -> None:
    """Children come from the parent list and from each related parent id."""
    items = [
        make_suggestion("p", clustering_information=parent_info("r1")),
        make_suggestion("r1", clustering_information=related_info("p")),
        make_suggestion("r2", clustering_information=related_info("p")),
    ]
    graph = ClusterGraph.build(items)
    assert_that(graph.children).is_equal_to({"p": {"r1", "r2"}})
    assert_that(graph.groups()).is_equal_to({"p": {"p", "r1", "r2"}})
    assert_that(graph.orphans).is_empty()


def test_cluster_graph_records_orphans() -> None:
    """Related suggestions whose parent is absent belong to no cluster."""
    items = [make_suggestion("r", clustering_information=related_info("gone"))]
    graph = ClusterGraph.build(items)
    assert_that(graph.children).is_empty()
    assert_that(graph.orphans).is_equal_to({"r"})


def test_cluster_graph_ignores_listed_ids_not_in_set() -> None:
    """Ids listed on a parent but absent from the set are dropped."""
    items = [make_suggestion("p", clustering_information=parent_info("missing"))]
    assert_that(ClusterGraph.build(items).children).is_equal_to({"p": set()})


# -- normalize_cluster_severity --------------------------------------------


def test_normalize_raises_cluster_to_highest_member() -> None:
    """Every member takes the highest severity in its cluster."""
    items = [
        make_suggestion("p", severity="low", clustering_information=parent_info()),
        make_suggestion(
            "r",
            severity="Critical",
            clustering_information=related_info("p"),
        ),
        make_suggestion("solo", severity="medium"),
    ]
    result = normalize_cluster_severity(items)
    assert_that([s.severity for s in result]).is_equal_to(
        ["critical", "critical", "medium"],
    )
    assert_that(items[0].severity).is_equal_to("low")


def test_normalize_cluster_without_known_severity_becomes_low() -> None:
    """A cluster with no recognized severity is normalized to low."""
    items = [
        make_suggestion("p", severity="", clustering_information=parent_info()),
        make_suggestion("r", severity="??", clustering_information=related_info("p")),
    ]
    result = normalize_cluster_severity(items)
    assert_that([s.severity for s in result]).is_equal_to(["low", "low"])


def test_normalize_leaves_orphans_alone() -> None:
    """Orphaned related suggestions keep their own severity."""
    items = [
        make_suggestion("r", severity="high", clustering_information=related_info("x")),
    ]
    assert_that(normalize_cluster_severity(items)[0].severity).is_equal_to("high")


# -- filter_by_severity_level ----------------------------------------------


@pytest.mark.parametrize(
    ("minimum", "kept"),
    [
        (SeverityLevel.CRITICAL, ["c"]),
        (SeverityLevel.HIGH, ["c", "h"]),
        (SeverityLevel.MEDIUM, ["c", "h", "m"]),
        (SeverityLevel.LOW, ["c", "h", "m", "l"]),
    ],
    ids=["critical", "high", "medium", "low"],
)
def test_filter_by_severity_level(minimum, kept) -> None:
    """The minimum severity keeps that level and everything above it."""
    items = [
        make_suggestion("c", severity="critical"),
        make_suggestion("h", severity="high"),
        make_suggestion("m", severity="medium"),
        make_suggestion("l", severity="low"),
        make_suggestion("u", severity="unknown"),
    ]
    prioritized, discarded = filter_by_severity_level(items, minimum)
    assert_that([s.id for s in prioritized]).is_equal_to(kept)
    assert_that(len(prioritized) + len(discarded)).is_equal_to(len(items))
    assert_that({s.priority_status for s in discarded}).is_equal_to(
        {PriorityStatus.DISCARDED_BY_SEVERITY},
    )
