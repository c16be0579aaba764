"""Load repository context documents used by the analysis passes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.exceptions import CollaboratorError
from reviewcore.pipeline.stage import PipelineStage

if TYPE_CHECKING:
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import ExternalContextService


class LoadExternalContextStage(PipelineStage):
    """Fetch external context. A failure leaves the context empty."""

    stage_name = "LoadExternalContextStage"

    def __init__(self, external_context: ExternalContextService) -> None:
        self._external_context = external_context

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        if context.code_review_config is None:
            return context

        try:
            loaded = self._external_context.load_context(
                context.organization_and_team,
                context.repository,
                context.pull_request,
                context.code_review_config,
            )
        except CollaboratorError as e:
            logger.warning(
                f"Failed to load external context for "
                f"PR#{context.pull_request.number}: {e}",
            )
            return context.with_error(self.stage_name, e)

        logger.debug(f"Loaded external context sources: {sorted(loaded)}")
        return self.update_context(context, external_context=dict(loaded))
