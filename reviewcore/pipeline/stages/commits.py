"""Gate that skips runs with nothing new to review."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from reviewcore.enums.pipeline import StageVisibility, TriggerOrigin
from reviewcore.pipeline.reasons import PipelineReasons, StageMessageHelper
from reviewcore.pipeline.stage import PipelineStage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reviewcore.models.pull_request import Commit
    from reviewcore.pipeline.context import PipelineContext
    from reviewcore.services.base import (
        AutomationExecutionService,
        PullRequestManagerService,
    )


def commits_since(commits: Sequence[Commit], last_sha: str | None) -> list[Commit]:
    """Return the commits after ``last_sha``.

    All commits are returned when ``last_sha`` is empty or unknown.
    """
    if not last_sha:
        return list(commits)
    for index, commit in enumerate(commits):
        if commit.sha == last_sha:
            return list(commits[index + 1 :])
    return list(commits)


def is_only_merge_commits(commits: Sequence[Commit]) -> bool:
    """Return True when every commit is a merge or was brought in by one.

    Commits reachable through the merged-in parents of a merge commit
    count as part of that merge.
    """
    merges = [c for c in commits if c.is_merge]
    if not merges:
        return False

    by_sha = {c.sha: c for c in commits}
    covered: set[str] = set()
    stack: list[str] = []
    for merge in merges:
        covered.add(merge.sha)
        stack.extend(merge.parents[1:])

    while stack:
        sha = stack.pop()
        if sha not in by_sha or sha in covered:
            continue
        covered.add(sha)
        stack.extend(by_sha[sha].parents)

    return covered == set(by_sha)


class ValidateNewCommitsStage(PipelineStage):
    """Skip when no new non-merge commits arrived since the last review.

    Runs started by a command always proceed.
    """

    stage_name = "ValidateNewCommitsStage"
    visibility = StageVisibility.PRIMARY
    critical = True

    def __init__(
        self,
        automation_executions: AutomationExecutionService,
        pull_request_manager: PullRequestManagerService,
    ) -> None:
        self._automation_executions = automation_executions
        self._pull_request_manager = pull_request_manager

    def execute_stage(self, context: PipelineContext) -> PipelineContext:
        pr_number = context.pull_request.number
        last_execution = self._automation_executions.find_last_successful_execution(
            context.organization_and_team,
            context.repository,
            pr_number,
        )
        last_sha = last_execution.last_analyzed_commit if last_execution else None
        if last_sha:
            logger.debug(f"Found last analyzed commit {last_sha} for PR#{pr_number}")
        else:
            logger.debug(f"No last analyzed commit for PR#{pr_number}")

        all_commits = self._pull_request_manager.get_commits(
            context.organization_and_team,
            context.repository,
            context.pull_request,
        )
        new_commits = commits_since(all_commits, last_sha)

        message = self._skip_message(context, all_commits, new_commits)
        if message is not None:
            logger.warning(f"Skipping code review for PR#{pr_number} - {message}")
            return self.skip(context, message, last_execution=last_execution)

        logger.info(
            f"Processing {len(new_commits)} new commits for PR#{pr_number} "
            f"({len(all_commits)} total)",
        )
        return self.update_context(
            context,
            pr_commits=new_commits,
            last_execution=last_execution,
        )

    @staticmethod
    def _skip_message(
        context: PipelineContext,
        all_commits: Sequence[Commit],
        new_commits: Sequence[Commit],
    ) -> str | None:
        if context.origin == TriggerOrigin.COMMAND:
            return None
        if not all_commits:
            return StageMessageHelper.skipped_with_reason(
                PipelineReasons.COMMITS.NO_NEW,
                "PR has 0 commits",
            )
        if not new_commits:
            return StageMessageHelper.skipped_with_reason(
                PipelineReasons.COMMITS.NO_NEW,
                "no commits after the last analyzed commit",
            )
        if is_only_merge_commits(new_commits):
            return StageMessageHelper.skipped_with_reason(
                PipelineReasons.COMMITS.ONLY_MERGE,
                "All new commits identified as merge commits",
            )
        return None
