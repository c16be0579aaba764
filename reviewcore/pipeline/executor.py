"""Sequential pipeline executor with skip, jump, and finalizer handling."""

from __future__ import annotations

import time
import uuid
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.automation import AutomationStatus
from reviewcore.exceptions import StageExecutionError
from reviewcore.pipeline.context import SkippedReason, StatusInfo

if TYPE_CHECKING:
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.pipeline.stage import PipelineStage


class PipelineExecutor:
    """Runs stages in order, threading the context through them.

    After every stage the executor looks at ``context.status_info``:

    * ``skipped``/``error`` with a ``jump_to_stage``: stages before the
      target are skipped, the skip is remembered in
      ``context.skipped_reason`` and execution resumes at the target.
    * ``skipped``/``error`` without a target, or with a target that is
      not ahead of the current position: normal sequencing stops, only
      stages flagged ``runs_when_halted`` still run.

    A stage that raises ``StageExecutionError`` is logged and recorded in
    ``context.errors``; the run continues with the next stage. A
    ``critical`` stage that raises turns the run into an error and halts
    it.
    """

    def execute(
        self,
        context: PipelineContext,
        stages: Sequence[PipelineStage],
        pipeline_name: str = "UnnamedPipeline",
        parent_pipeline_id: str | None = None,
        root_pipeline_id: str | None = None,
    ) -> PipelineContext:
        """Run ``stages`` over ``context``.

        Args:
            context: Initial context.
            stages: Stages in execution order.
            pipeline_name: Name used in logs and metadata.
            parent_pipeline_id: Id of the pipeline that started this one.
            root_pipeline_id: Id of the outermost pipeline.

        Returns:
            The final context.
        """
        pipeline_id = str(uuid.uuid4())
        context = context.evolve(
            pipeline_metadata={
                **context.pipeline_metadata,
                "pipeline_id": pipeline_id,
                "parent_pipeline_id": parent_pipeline_id,
                "root_pipeline_id": root_pipeline_id or pipeline_id,
                "pipeline_name": pipeline_name,
            },
        )
        logger.info(f"Starting pipeline: {pipeline_name} (ID: {pipeline_id})")

        halted = False

        for index, stage in enumerate(stages):
            if not halted and context.status_info.status.halts_pipeline:
                target = context.status_info.jump_to_stage
                # Only stages still ahead can be jumped to.
                ahead = {s.stage_name for s in stages[index:]}
                if target and target in ahead:
                    if stage.stage_name != target:
                        logger.debug(
                            f"Skipping stage '{stage.stage_name}' while looking "
                            f"for '{target}'",
                        )
                        continue
                    context = self._resume_at(context, stage.stage_name)
                else:
                    if target:
                        logger.warning(
                            f"Pipeline '{pipeline_name}' has no stage named "
                            f"'{target}' ahead of '{stage.stage_name}', halting",
                        )
                    logger.info(
                        f"Pipeline '{pipeline_name}' halted with status "
                        f"{context.status_info.status}: {pipeline_id}",
                    )
                    halted = True

            if halted and not stage.runs_when_halted:
                logger.debug(f"Skipping stage '{stage.stage_name}' (pipeline halted)")
                continue

            context = self._run_stage(context, stage, pipeline_name, pipeline_id)

        context = self._finish(context)
        logger.info(
            f"Finished pipeline: {pipeline_name} (ID: {pipeline_id}) "
            f"with status {context.status_info.status}",
        )
        return context

    @staticmethod
    def _resume_at(context: PipelineContext, stage_name: str) -> PipelineContext:
        logger.info(f"Resuming pipeline execution at stage: {stage_name}")
        info = context.status_info
        return context.evolve(
            skipped_reason=SkippedReason(
                status=info.status,
                message=info.message,
                stage_name=stage_name,
                jump_to_stage=info.jump_to_stage,
            ),
            status_info=StatusInfo(
                status=AutomationStatus.IN_PROGRESS,
                message=info.message,
            ),
        )

    @staticmethod
    def _run_stage(
        context: PipelineContext,
        stage: PipelineStage,
        pipeline_name: str,
        pipeline_id: str,
    ) -> PipelineContext:
        start = time.monotonic()
        try:
            result = stage.execute(context)
        except StageExecutionError as e:
            logger.opt(exception=e.__cause__ or e).error(
                f"Stage '{stage.stage_name}' failed: {e.reason}",
            )
            context = context.with_error(stage.stage_name, e.reason)
            if stage.critical:
                return context.evolve(
                    pipeline_error=True,
                    status_info=StatusInfo(
                        status=AutomationStatus.ERROR,
                        message=f"Stage '{stage.stage_name}' failed: {e.reason}",
                    ),
                )
            logger.warning(
                f"Pipeline '{pipeline_name}:{pipeline_id}' continuing despite "
                f"error in stage '{stage.stage_name}'",
            )
            return context

        elapsed_ms = (time.monotonic() - start) * 1000
        logger.info(
            f"Stage '{stage.stage_name}' completed in {elapsed_ms:.0f}ms: "
            f"{pipeline_id}",
        )
        return result

    @staticmethod
    def _finish(context: PipelineContext) -> PipelineContext:
        info = context.status_info
        reason = context.skipped_reason
        if reason is not None:
            return context.evolve(
                status_info=replace(
                    info,
                    status=reason.status,
                    message=reason.message or info.message,
                ),
            )
        if info.status in (AutomationStatus.PENDING, AutomationStatus.IN_PROGRESS):
            status = (
                AutomationStatus.PARTIAL_ERROR
                if context.errors
                else AutomationStatus.SUCCESS
            )
            return context.evolve(status_info=replace(info, status=status))
        return context
