"""Base class for pipeline stages."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from reviewcore.enums.automation import AutomationMessage, AutomationStatus
from reviewcore.enums.pipeline import StageVisibility
from reviewcore.exceptions import StageExecutionError

if TYPE_CHECKING:
    from reviewcore.pipeline.context import PipelineContext


class PipelineStage(ABC):
    """One named unit of work in a pipeline.

    Subclasses implement ``execute_stage`` and return a new context.
    A stage that wants downstream stages skipped sets a ``skipped`` or
    ``error`` status, optionally with a ``jump_to_stage`` target.

    Attributes:
        stage_name: Unique name, also used as a jump target.
        visibility: Whether the stage is reported to users.
        runs_when_halted: Finalizer stages still run after a skip or
            error has halted normal sequencing.
        critical: An exception from a critical stage turns the run into
            an error instead of being recorded and skipped past.
    """

    stage_name: str = ""
    visibility: StageVisibility = StageVisibility.SECONDARY
    runs_when_halted: bool = False
    critical: bool = False

    def execute(self, context: PipelineContext) -> PipelineContext:
        """Run the stage.

        Args:
            context: Context produced by the previous stage.

        Returns:
            The context for the next stage.

        Raises:
            StageExecutionError: If the stage raised, chained to the
                original exception.
        """
        try:
            return self.execute_stage(context)
        except StageExecutionError:
            raise
        except Exception as e:
            raise StageExecutionError(self.stage_name, str(e)) from e

    @abstractmethod
    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        """Stage-specific work. Must not modify ``context``."""
        ...

    @staticmethod
    def update_context(context: PipelineContext, **changes: Any) -> PipelineContext:
        """Return a copy of ``context`` with the given fields replaced."""
        return context.evolve(**changes)

    @staticmethod
    def skip(
        context: PipelineContext,
        message: AutomationMessage | str,
        *,
        jump_to_stage: str | None = None,
        **changes: Any,
    ) -> PipelineContext:
        """Return a copy of ``context`` marked skipped.

        Args:
            context: Current context.
            message: Reason shown to users.
            jump_to_stage: Stage to resume at.
            **changes: Other fields to replace at the same time.

        Returns:
            The skipped context.
        """
        if changes:
            context = context.evolve(**changes)
        return context.with_status(
            AutomationStatus.SKIPPED,
            message,
            jump_to_stage=jump_to_stage,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(stage_name={self.stage_name!r})"
