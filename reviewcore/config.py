"""Configuration models for reviewcore.

Defines the Pydantic models for the per-repository code-review
configuration and the engine-wide pipeline settings. Raw configuration
payloads use camelCase keys; both camelCase and snake_case names are
accepted.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from reviewcore.enums.review_cadence import ReviewCadenceType
from reviewcore.enums.severity_level import SeverityLevel
from reviewcore.enums.suggestion_control import GroupingMode, LimitationType
from reviewcore.exceptions import ConfigurationError

_MODEL_CONFIG = ConfigDict(
    frozen=False,
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


class SeverityLimits(BaseModel):
    """Maximum suggestions kept per severity bucket. 0 means unlimited.

    Attributes:
        model_config: Pydantic model configuration.
        low: Limit for low severity suggestions.
        medium: Limit for medium severity suggestions.
        high: Limit for high severity suggestions.
        critical: Limit for critical severity suggestions.
    """

    model_config = _MODEL_CONFIG

    low: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    high: int = Field(default=0, ge=0)
    critical: int = Field(default=0, ge=0)

    def limit_for(self, severity: SeverityLevel) -> int:
        """Return the limit configured for a severity bucket."""
        return int(getattr(self, severity.value))


class SuggestionControlConfig(BaseModel):
    """Policy that decides which suggestions are delivered.

    Attributes:
        model_config: Pydantic model configuration.
        grouping_mode: How clustered suggestions are grouped.
        limitation_type: Which quantity limit applies.
        max_suggestions: Limit per file or per PR. 0 means unlimited.
        severity_limits: Per-bucket limits for severity limiting.
        severity_level_filter: Minimum severity kept.
        apply_filters_to_kody_rules: Whether Kody Rules suggestions go
            through the same filters as everything else.
    """

    model_config = _MODEL_CONFIG

    grouping_mode: GroupingMode = GroupingMode.FULL
    limitation_type: LimitationType = LimitationType.FILE
    max_suggestions: int = Field(default=9, ge=0)
    severity_limits: SeverityLimits = Field(default_factory=SeverityLimits)
    severity_level_filter: SeverityLevel = SeverityLevel.MEDIUM
    apply_filters_to_kody_rules: bool = False


class ReviewCadenceConfig(BaseModel):
    """When automatic reviews re-run on new pushes.

    Attributes:
        model_config: Pydantic model configuration.
        type: Cadence policy.
        time_window: Burst detection window in minutes.
        pushes_to_trigger: Successful runs inside the window that pause
            an auto-pause pull request.
    """

    model_config = _MODEL_CONFIG

    type: ReviewCadenceType = ReviewCadenceType.AUTOMATIC
    time_window: int = Field(default=15, ge=1)
    pushes_to_trigger: int = Field(default=3, ge=1)


class ReviewOptions(BaseModel):
    """Per-category switches. Suggestions of disabled categories are dropped."""

    model_config = _MODEL_CONFIG

    kody_rules: bool = True
    breaking_changes: bool = True
    security: bool = True
    potential_issues: bool = True
    error_handling: bool = True
    performance_and_optimization: bool = True
    maintainability: bool = True
    refactoring: bool = True
    code_style: bool = True
    documentation_and_comments: bool = True

    def is_enabled(self, normalized_label: str) -> bool:
        """Return True when the category is switched on.

        Unknown categories are treated as disabled.
        """
        return normalized_label in type(self).model_fields and bool(
            getattr(self, normalized_label),
        )


class CodeReviewConfig(BaseModel):
    """Per-repository code-review configuration.

    Attributes:
        model_config: Pydantic model configuration.
        ignore_paths: Glob patterns of files never reviewed.
        ignored_title_keywords: Pull requests whose title contains any
            of these (case-insensitive) are skipped.
        base_branches: Target branch patterns reviews run on. Supports
            ``!`` exclusion, ``=`` exact match, ``contains:`` and globs.
        base_branch_default: Default branch of the repository, used when
            ``base_branches`` is empty.
        automated_review_active: Master switch for automatic reviews.
        review_cadence: Cadence policy.
        suggestion_control: Prioritization policy.
        review_options: Per-category switches.
        run_on_draft: Whether draft pull requests are reviewed.
        pull_request_approval_active: Approve when nothing is found.
        is_request_changes_active: Request changes on critical findings.
        language_result_prompt: Language of generated comments.
        enable_committable_suggestions: Validate simple suggestions so
            they can be posted as committable changes.
    """

    model_config = _MODEL_CONFIG

    ignore_paths: list[str] = Field(default_factory=list)
    ignored_title_keywords: list[str] = Field(default_factory=list)
    base_branches: list[str] = Field(default_factory=list)
    base_branch_default: str = ""
    automated_review_active: bool = True
    review_cadence: ReviewCadenceConfig = Field(default_factory=ReviewCadenceConfig)
    suggestion_control: SuggestionControlConfig = Field(
        default_factory=SuggestionControlConfig,
    )
    review_options: ReviewOptions = Field(default_factory=ReviewOptions)
    run_on_draft: bool = False
    pull_request_approval_active: bool = False
    is_request_changes_active: bool = False
    language_result_prompt: str = "en-US"
    enable_committable_suggestions: bool = False


class PipelineSettings(BaseModel):
    """Engine-wide limits and timeouts.

    Attributes:
        model_config: Pydantic model configuration.
        max_files: Pull requests with more files than this are skipped.
        max_parallel_files: Maximum files analyzed concurrently.
        signal_timeout_seconds: Timeout for burst and onboarding lookups.
        max_retries: Retries for transient collaborator failures.
        retry_base_delay: Initial delay in seconds before the first retry.
        retry_max_delay: Maximum delay in seconds between retries.
    """

    model_config = _MODEL_CONFIG

    max_files: int = Field(default=500, ge=1)
    max_parallel_files: int = Field(default=5, ge=1, le=50)
    signal_timeout_seconds: float = Field(default=5.0, gt=0)
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_base_delay: float = Field(default=1.0, ge=0.1)
    retry_max_delay: float = Field(default=30.0, ge=1.0)

    @model_validator(mode="after")
    def _check_retry_delays(self) -> PipelineSettings:
        if self.retry_max_delay < self.retry_base_delay:
            msg = (
                f"retry_max_delay ({self.retry_max_delay}) must be >= "
                f"retry_base_delay ({self.retry_base_delay})"
            )
            raise ValueError(msg)
        return self


def load_code_review_config(data: Mapping[str, Any] | None) -> CodeReviewConfig:
    """Validate a raw configuration mapping.

    Args:
        data: Raw configuration, camelCase or snake_case keys. None
            yields the defaults.

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: If the mapping fails validation.
    """
    try:
        return CodeReviewConfig.model_validate(dict(data or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid code review configuration: {e}") from e
