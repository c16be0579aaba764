"""Mark small suggestions as committable once their code is validated.

GitHub renders a committable suggestion as a block the author can apply
with one click, so only short replacements on files the pull request
changed are sent for validation.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.pipeline.stage import PipelineStage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from reviewcore.models.pull_request import FileChange
    from reviewcore.models.suggestion import CodeSuggestion
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import AIAnalysisService

MAX_COMMITTABLE_LINES = 15
MAX_COMMITTABLE_CHARS = 1000


def committable_candidates(
    suggestions: Iterable[CodeSuggestion],
    files: Iterable[FileChange],
) -> list[CodeSuggestion]:
    """Return suggestions short enough to be offered as one-click commits."""
    changed = {f.filename for f in files}
    return [
        s
        for s in suggestions
        if s.id
        and s.improved_code
        and s.relevant_file in changed
        and len(s.improved_code) < MAX_COMMITTABLE_CHARS
        and len(s.improved_code.splitlines()) < MAX_COMMITTABLE_LINES
    ]


class ValidateSuggestionsStage(PipelineStage):
    """Validate candidate suggestions and flag the ones that can be committed.

    Suggestions that fail validation are kept as ordinary comments.
    """

    stage_name = "ValidateSuggestionsStage"

    def __init__(self, ai_analysis: AIAnalysisService) -> None:
        self._ai_analysis = ai_analysis

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        config = context.code_review_config
        if config is None or not config.enable_committable_suggestions:
            return context
        if context.platform_type != "github":
            logger.debug(
                f"Committable suggestions are not supported on "
                f"{context.platform_type}",
            )
            return context

        candidates = committable_candidates(
            context.valid_suggestions,
            context.changed_files,
        )
        if not candidates:
            return context

        pr_number = context.pull_request.number
        try:
            validated = self._ai_analysis.validate_committable_suggestions(
                context.organization_and_team,
                pr_number,
                context.changed_files,
                candidates,
            )
        except Exception as e:
            logger.error(
                f"Error validating committable suggestions for PR#{pr_number}: {e}",
            )
            return context

        validated = validated or {}
        suggestions = [
            replace(s, is_committable=True, validated_code=validated[s.id])
            if s.id in validated
            else s
            for s in context.valid_suggestions
        ]
        logger.info(
            f"{len(validated)}/{len(candidates)} suggestion(s) are committable "
            f"for PR#{pr_number}",
        )
        return self.update_context(context, valid_suggestions=suggestions)
