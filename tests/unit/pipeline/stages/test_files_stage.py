"""Tests for fetching changed files and applying ignore patterns."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from assertpy import assert_that

from reviewcore.config import CodeReviewConfig, PipelineSettings
from reviewcore.enums.automation import AutomationMessage, AutomationStatus
from reviewcore.models.pull_request import FileChange
from reviewcore.pipeline.stages.files import (
    FINALIZE_STAGE,
    FetchChangedFilesStage,
    compute_pull_request_stats,
)
from reviewcore.services.base import PullRequestManagerService


@pytest.fixture
def manager() -> MagicMock:
    """Platform client returning no files unless told otherwise."""
    mock = MagicMock(spec=PullRequestManagerService)
    mock.get_changed_files.return_value = []
    return mock


def _files(*names: str) -> list[FileChange]:
    return [FileChange(filename=n, additions=2, deletions=1) for n in names]


def _stage(manager, max_files: int = 500) -> FetchChangedFilesStage:
    return FetchChangedFilesStage(manager, PipelineSettings(max_files=max_files))


# -- compute_pull_request_stats --------------------------------------------


def test_stats_sum_lines_and_collect_extensions() -> None:
    """Additions and deletions are summed, extensions deduplicated."""
    stats = compute_pull_request_stats(
        _files("a.py", "b.py", "README", "web/x.ts"),
        files_ignored=2,
    )
    assert_that(stats.total_files).is_equal_to(4)
    assert_that(stats.additions).is_equal_to(8)
    assert_that(stats.deletions).is_equal_to(4)
    assert_that(stats.files_ignored).is_equal_to(2)
    assert_that(stats.extensions).is_equal_to((".py", ".ts"))


# -- FetchChangedFilesStage ------------------------------------------------


def test_files_from_context_are_filtered(manager, context) -> None:
    """Ignored files are removed and recorded by name."""
    ctx = context.evolve(
        code_review_config=CodeReviewConfig(ignore_paths=["docs/**", "*.lock"]),
        changed_files=_files("src/a.py", "docs/guide.md", "poetry.lock"),
    )

    result = _stage(manager).execute(ctx)

    assert_that([f.filename for f in result.changed_files]).is_equal_to(["src/a.py"])
    assert_that(result.ignored_files).is_equal_to(["docs/guide.md", "poetry.lock"])
    assert_that(result.pull_request_stats.total_files).is_equal_to(1)
    assert_that(result.pull_request_stats.files_ignored).is_equal_to(2)
    manager.get_changed_files.assert_not_called()


def test_files_are_fetched_when_context_has_none(manager, context) -> None:
    """An empty context loads files from the platform."""
    manager.get_changed_files.return_value = _files("src/a.py")
    ctx = context.evolve(code_review_config=CodeReviewConfig())
    result = _stage(manager).execute(ctx)
    assert_that(result.changed_files).is_length(1)
    manager.get_changed_files.assert_called_once()


def test_missing_config_jumps_to_finalizer(manager, context) -> None:
    """No configuration skips straight to the check-run finalizer."""
    result = _stage(manager).execute(context)
    assert_that(result.status_info.message).is_equal_to(
        AutomationMessage.NO_CONFIG_IN_CONTEXT.value,
    )
    assert_that(result.status_info.jump_to_stage).is_equal_to(FINALIZE_STAGE)


def test_no_files_jumps_to_finalizer(manager, context) -> None:
    """A pull request without changes is skipped."""
    ctx = context.evolve(code_review_config=CodeReviewConfig())
    result = _stage(manager).execute(ctx)
    assert_that(result.status_info.status).is_equal_to(AutomationStatus.SKIPPED)
    assert_that(result.status_info.message).is_equal_to("No Files Changed")
    assert_that(result.status_info.jump_to_stage).is_equal_to(FINALIZE_STAGE)


def test_all_files_ignored_lists_names(manager, context) -> None:
    """The skip message shows at most five ignored names."""
    names = [f"docs/{i}.md" for i in range(7)]
    ctx = context.evolve(
        code_review_config=CodeReviewConfig(ignore_paths=["docs/**"]),
        changed_files=_files(*names),
    )

    result = _stage(manager).execute(ctx)

    message = result.status_info.message
    assert_that(message).starts_with("All Files Ignored")
    assert_that(message).contains("Ignored: docs/0.md, docs/1.md")
    assert_that(message).contains("docs/4.md...")
    assert_that(message).does_not_contain("docs/5.md")
    assert_that(result.ignored_files).is_length(7)
    assert_that(result.status_info.jump_to_stage).is_equal_to(FINALIZE_STAGE)


def test_too_many_files_skips(manager, context) -> None:
    """More files than the limit skips with the count and limit."""
    ctx = context.evolve(
        code_review_config=CodeReviewConfig(),
        changed_files=_files("a.py", "b.py", "c.py"),
    )
    result = _stage(manager, max_files=2).execute(ctx)
    assert_that(result.status_info.message).starts_with("Too Many Files")
    assert_that(result.status_info.message).ends_with("(Count: 3, Limit: 2)")


def test_limit_counts_only_kept_files(manager, context) -> None:
    """Ignored files do not count towards the limit."""
    ctx = context.evolve(
        code_review_config=CodeReviewConfig(ignore_paths=["*.md"]),
        changed_files=_files("a.py", "b.py", "README.md"),
    )
    result = _stage(manager, max_files=2).execute(ctx)
    assert_that(result.status_info.status).is_equal_to(AutomationStatus.PENDING)
    assert_that(result.changed_files).is_length(2)
