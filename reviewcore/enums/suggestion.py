"""Enumerations describing suggestion classification and lifecycle."""

from __future__ import annotations

from enum import StrEnum


class LabelType(StrEnum):
    """Known suggestion categories."""

    KODY_RULES = "kody_rules"
    BREAKING_CHANGES = "breaking_changes"
    SECURITY = "security"
    POTENTIAL_ISSUES = "potential_issues"
    ERROR_HANDLING = "error_handling"
    PERFORMANCE_AND_OPTIMIZATION = "performance_and_optimization"
    MAINTAINABILITY = "maintainability"
    REFACTORING = "refactoring"
    CODE_STYLE = "code_style"
    DOCUMENTATION_AND_COMMENTS = "documentation_and_comments"


class PriorityStatus(StrEnum):
    """Outcome of prioritization for a single suggestion."""

    PRIORITIZED = "prioritized"
    PRIORITIZED_BY_CLUSTERING = "prioritized_by_clustering"
    DISCARDED_BY_QUANTITY = "discarded_by_quantity"
    DISCARDED_BY_SEVERITY = "discarded_by_severity"
    DISCARDED_BY_CLUSTERING = "discarded_by_clustering"


class DeliveryStatus(StrEnum):
    """Outcome of posting a suggestion to the platform."""

    NOT_SENT = "not_sent"
    SENT = "sent"
    FAILED = "failed"
    FAILED_LINES_MISMATCH = "failed_lines_mismatch"


class ClusteringType(StrEnum):
    """Role of a suggestion within a cluster of duplicated findings."""

    PARENT = "parent"
    RELATED = "related"
    NONE = "none"


class ImplementationStatus(StrEnum):
    """Whether a delivered suggestion was applied by a later commit."""

    IMPLEMENTED = "implemented"
    PARTIALLY_IMPLEMENTED = "partially_implemented"
    NOT_IMPLEMENTED = "not_implemented"
