"""Enumerations shared across the review engine."""

from reviewcore.enums.automation import AutomationMessage, AutomationStatus
from reviewcore.enums.pipeline import (
    CheckConclusion,
    CommentType,
    PullRequestReviewState,
    StageVisibility,
    TriggerOrigin,
)
from reviewcore.enums.review_cadence import ReviewCadenceState, ReviewCadenceType
from reviewcore.enums.severity_level import (
    SEVERITY_ORDER_DESC,
    SEVERITY_RANK,
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

__all__ = [
    "SEVERITY_ORDER_DESC",
    "SEVERITY_RANK",
    "AutomationMessage",
    "AutomationStatus",
    "CheckConclusion",
    "ClusteringType",
    "CommentType",
    "DeliveryStatus",
    "GroupingMode",
    "LabelType",
    "LimitationType",
    "PriorityStatus",
    "PullRequestReviewState",
    "ReviewCadenceState",
    "ReviewCadenceType",
    "SeverityLevel",
    "StageVisibility",
    "TriggerOrigin",
    "normalize_severity",
    "severity_rank",
]
