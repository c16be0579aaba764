"""Fetch the changed files and apply the ignore patterns."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.config import PipelineSettings
from reviewcore.enums.automation import AutomationMessage
from reviewcore.enums.pipeline import StageVisibility
from reviewcore.models.pull_request import PullRequestStats
from reviewcore.pipeline.reasons import PipelineReasons, StageMessageHelper
from reviewcore.pipeline.stage import PipelineStage
from reviewcore.utils.glob import is_file_matching_glob

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reviewcore.models.pull_request import FileChange
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import PullRequestManagerService

FINALIZE_STAGE = "FinalizeCheckRunStage"
_MAX_NAMES_IN_MESSAGE = 5


def compute_pull_request_stats(
    files: Sequence[FileChange],
    files_ignored: int = 0,
) -> PullRequestStats:
    """Sum additions and deletions and collect the file extensions."""
    extensions = sorted(
        {ext for f in files if (ext := posixpath.splitext(f.filename)[1])},
    )
    return PullRequestStats(
        total_files=len(files),
        additions=sum(f.additions for f in files),
        deletions=sum(f.deletions for f in files),
        files_ignored=files_ignored,
        extensions=tuple(extensions),
    )


class FetchChangedFilesStage(PipelineStage):
    """Load the files to review.

    Skips to the check-run finalizer when there is no configuration, no
    changed file, every file is ignored, or the pull request has more
    files than ``PipelineSettings.max_files``.
    """

    stage_name = "FetchChangedFilesStage"
    visibility = StageVisibility.PRIMARY

    def __init__(
        self,
        pull_request_manager: PullRequestManagerService,
        settings: PipelineSettings | None = None,
    ) -> None:
        self._pull_request_manager = pull_request_manager
        self._settings = settings or PipelineSettings()

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        config = context.code_review_config
        pr_number = context.pull_request.number
        if config is None:
            logger.error(f"No config found in context for PR#{pr_number}")
            return self.skip(
                context,
                AutomationMessage.NO_CONFIG_IN_CONTEXT,
                jump_to_stage=FINALIZE_STAGE,
            )

        files = context.changed_files
        if not files:
            last_sha = (
                context.last_execution.last_analyzed_commit
                if context.last_execution
                else None
            )
            files = self._pull_request_manager.get_changed_files(
                context.organization_and_team,
                context.repository,
                context.pull_request,
                last_sha,
            )

        ignored: list[FileChange] = []
        kept: list[FileChange] = []
        for file in files:
            if is_file_matching_glob(file.filename, config.ignore_paths):
                ignored.append(file)
            else:
                kept.append(file)
        ignored_names = [f.filename for f in ignored]

        message = self._skip_message(files, kept)
        if message is not None:
            logger.warning(f"Skipping code review for PR#{pr_number} - {message}")
            return self.skip(
                context,
                message,
                jump_to_stage=FINALIZE_STAGE,
                ignored_files=ignored_names,
            )

        logger.info(
            f"Found {len(kept)} files to analyze for PR#{pr_number} "
            f"({len(files)} total, {len(ignored)} ignored)",
        )
        return self.update_context(
            context,
            changed_files=kept,
            ignored_files=ignored_names,
            pull_request_stats=compute_pull_request_stats(kept, len(ignored)),
        )

    def _skip_message(
        self,
        files: Sequence[FileChange],
        kept: Sequence[FileChange],
    ) -> str | None:
        if not files:
            return StageMessageHelper.skipped_with_reason(
                PipelineReasons.FILES.NO_CHANGES,
            )

        if not kept:
            names = [f.filename for f in files]
            shown = ", ".join(names[:_MAX_NAMES_IN_MESSAGE])
            suffix = "..." if len(names) > _MAX_NAMES_IN_MESSAGE else ""
            return StageMessageHelper.skipped_with_reason(
                PipelineReasons.FILES.ALL_IGNORED,
                f"Ignored: {shown}{suffix}",
            )

        limit = self._settings.max_files
        if len(kept) > limit:
            return StageMessageHelper.skipped_with_reason(
                PipelineReasons.FILES.TOO_MANY,
                f"Count: {len(kept)}, Limit: {limit}",
            )

        return None
