"""Suggestion ranking, severity normalization, and prioritization."""

from reviewcore.suggestions.policy import (
    KODY_RULES_EXEMPTION_FALLBACK,
    PRIORITIZATION_FAILSAFE,
    PrioritizationPolicy,
)
from reviewcore.suggestions.service import SuggestionService

__all__ = [
    "KODY_RULES_EXEMPTION_FALLBACK",
    "PRIORITIZATION_FAILSAFE",
    "PrioritizationPolicy",
    "SuggestionService",
]
