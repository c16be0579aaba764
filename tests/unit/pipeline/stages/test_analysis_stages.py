"""Tests for the PR-level and per-file analysis stages."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from assertpy import assert_that

from reviewcore.config import CodeReviewConfig, ReviewOptions
from reviewcore.enums.suggestion import DeliveryStatus
from reviewcore.exceptions import CollaboratorError
from reviewcore.models.pull_request import ExecutionRecord, FileChange
from reviewcore.models.results import PrAnalysisResult
from reviewcore.pipeline.stages.analysis import (
    ProcessFilesPrLevelReviewStage,
    ProcessFilesReviewStage,
)
from reviewcore.services.base import (
    AIAnalysisResult,
    AIAnalysisService,
    PullRequestsService,
)
from reviewcore.suggestions.service import SuggestionService
from tests.unit.conftest import SAMPLE_PATCH, make_suggestion


@pytest.fixture
def ai_analysis() -> MagicMock:
    """Analysis service returning nothing unless told otherwise."""
    mock = MagicMock(spec=AIAnalysisService)
    mock.analyze_file.return_value = None
    mock.analyze_pull_request.return_value = PrAnalysisResult()
    return mock


def _ids(suggestions) -> list[str]:
    return [s.id for s in suggestions]


# -- ProcessFilesReviewStage -----------------------------------------------


def test_suggestions_inside_diff_are_valid_and_ranked(
    ai_analysis,
    configured_context,
    settings,
) -> None:
    """Suggestions on changed lines are kept and scored."""
    ai_analysis.analyze_file.return_value = AIAnalysisResult(
        code_suggestions=[
            make_suggestion("in", start=11, end=12),
            make_suggestion("out", start=100, end=101),
        ],
        metadata={"model": "test"},
    )

    result = ProcessFilesReviewStage(ai_analysis, settings).execute(
        configured_context,
    )

    assert_that(_ids(result.valid_suggestions)).is_equal_to(["in"])
    assert_that(result.valid_suggestions[0].rank_score).is_equal_to(80)
    assert_that(_ids(result.discarded_suggestions)).is_equal_to(["out"])
    assert_that(result.file_metadata).is_equal_to({"src/app.py": {"model": "test"}})


def test_disabled_categories_are_dropped(ai_analysis, configured_context) -> None:
    """Switched-off categories are neither valid nor discarded."""
    ai_analysis.analyze_file.return_value = AIAnalysisResult(
        code_suggestions=[
            make_suggestion("sec"),
            make_suggestion("style", label="code_style"),
        ],
    )
    ctx = configured_context.evolve(
        code_review_config=CodeReviewConfig(
            review_options=ReviewOptions(code_style=False),
        ),
    )

    result = ProcessFilesReviewStage(ai_analysis).execute(ctx)

    assert_that(_ids(result.valid_suggestions)).is_equal_to(["sec"])
    assert_that(result.discarded_suggestions).is_empty()


def test_failing_file_is_recorded_and_others_kept(
    ai_analysis,
    context,
    settings,
) -> None:
    """A failure in one file does not lose the results of another."""
    good = FileChange(filename="src/app.py", patch=SAMPLE_PATCH)
    bad = FileChange(filename="src/broken.py", patch=SAMPLE_PATCH)

    def analyze(org, pull_request, file, config):
        if file.filename == "src/broken.py":
            raise CollaboratorError("model timeout")
        return AIAnalysisResult(code_suggestions=[make_suggestion("ok")])

    ai_analysis.analyze_file.side_effect = analyze
    ctx = context.evolve(
        code_review_config=CodeReviewConfig(),
        changed_files=[bad, good],
    )

    result = ProcessFilesReviewStage(ai_analysis, settings).execute(ctx)

    assert_that(_ids(result.valid_suggestions)).is_equal_to(["ok"])
    assert_that(result.errors).is_length(1)
    assert_that(result.errors[0].substage).is_equal_to("src/broken.py")
    assert_that(result.errors[0].error).is_equal_to("model timeout")
    assert_that(result.file_metadata).does_not_contain_key("src/broken.py")


def test_results_follow_file_order(ai_analysis, context) -> None:
    """Aggregated suggestions keep the order of the changed files."""
    files = [
        FileChange(filename=f"src/f{i}.py", patch=SAMPLE_PATCH) for i in range(4)
    ]

    def analyze(org, pull_request, file, config):
        return AIAnalysisResult(
            code_suggestions=[make_suggestion(file.filename, file=file.filename)],
        )

    ai_analysis.analyze_file.side_effect = analyze
    ctx = context.evolve(code_review_config=CodeReviewConfig(), changed_files=files)

    result = ProcessFilesReviewStage(ai_analysis).execute(ctx)

    assert_that(_ids(result.valid_suggestions)).is_equal_to(
        [f.filename for f in files],
    )


def test_cross_file_suggestions_merge_into_their_file(
    ai_analysis,
    configured_context,
) -> None:
    """A cross-file suggestion joins the results of the file it targets."""
    cross = make_suggestion("cross", start=41, end=42)
    ctx = configured_context.evolve(
        pr_analysis_results=PrAnalysisResult(valid_cross_file_suggestions=[cross]),
    )
    result = ProcessFilesReviewStage(ai_analysis).execute(ctx)
    assert_that(_ids(result.valid_suggestions)).is_equal_to(["cross"])


def test_no_files_returns_context(ai_analysis, context) -> None:
    """Nothing to analyze leaves the context untouched."""
    ctx = context.evolve(code_review_config=CodeReviewConfig())
    result = ProcessFilesReviewStage(ai_analysis).execute(ctx)
    assert_that(result).is_same_as(ctx)
    ai_analysis.analyze_file.assert_not_called()


# -- Re-reviews ------------------------------------------------------------


@pytest.fixture
def pull_requests() -> MagicMock:
    """Suggestion store with nothing saved unless told otherwise."""
    mock = MagicMock(spec=PullRequestsService)
    mock.find_suggestions_by_file.return_value = []
    return mock


@pytest.fixture
def rereview_context(configured_context):
    """Configured context of a pull request that was reviewed before."""
    return configured_context.evolve(last_execution=ExecutionRecord(uuid="prev"))


def test_saved_suggestions_replace_new_ones_on_rereview(
    ai_analysis,
    pull_requests,
    rereview_context,
) -> None:
    """A file with saved suggestions gets no new ones; the saved are verified."""
    saved = make_suggestion("saved", delivery_status=DeliveryStatus.SENT)
    pull_requests.find_suggestions_by_file.return_value = [saved]
    ai_analysis.analyze_file.return_value = AIAnalysisResult(
        code_suggestions=[make_suggestion("new", start=11, end=12)],
    )
    suggestion_service = MagicMock(spec=SuggestionService)

    result = ProcessFilesReviewStage(
        ai_analysis,
        pull_requests=pull_requests,
        suggestion_service=suggestion_service,
    ).execute(rereview_context)

    assert_that(result.valid_suggestions).is_empty()
    pull_requests.find_suggestions_by_file.assert_called_once_with(
        rereview_context.organization_and_team,
        rereview_context.repository,
        42,
        "src/app.py",
    )
    suggestion_service.validate_implemented_suggestions.assert_called_once_with(
        rereview_context.organization_and_team,
        42,
        f"File: src/app.py\n{SAMPLE_PATCH}",
        [saved],
    )


def test_undelivered_saved_suggestions_are_not_verified(
    ai_analysis,
    pull_requests,
    rereview_context,
) -> None:
    """Only saved suggestions that were sent are checked for implementation."""
    pull_requests.find_suggestions_by_file.return_value = [
        make_suggestion("saved", delivery_status=DeliveryStatus.NOT_SENT),
    ]
    suggestion_service = MagicMock(spec=SuggestionService)

    ProcessFilesReviewStage(
        ai_analysis,
        pull_requests=pull_requests,
        suggestion_service=suggestion_service,
    ).execute(rereview_context)

    suggestion_service.validate_implemented_suggestions.assert_not_called()


def test_first_review_does_not_load_saved_suggestions(
    ai_analysis,
    pull_requests,
    configured_context,
) -> None:
    """Without a previous execution nothing saved is looked up."""
    ai_analysis.analyze_file.return_value = AIAnalysisResult(
        code_suggestions=[make_suggestion("new")],
    )
    result = ProcessFilesReviewStage(
        ai_analysis,
        pull_requests=pull_requests,
    ).execute(configured_context)
    assert_that(_ids(result.valid_suggestions)).is_equal_to(["new"])
    pull_requests.find_suggestions_by_file.assert_not_called()


def test_saved_suggestion_lookup_failure_keeps_new_ones(
    ai_analysis,
    pull_requests,
    rereview_context,
) -> None:
    """A failing lookup is logged and the new suggestions are kept."""
    pull_requests.find_suggestions_by_file.side_effect = CollaboratorError("db down")
    ai_analysis.analyze_file.return_value = AIAnalysisResult(
        code_suggestions=[make_suggestion("new")],
    )
    result = ProcessFilesReviewStage(
        ai_analysis,
        pull_requests=pull_requests,
    ).execute(rereview_context)
    assert_that(_ids(result.valid_suggestions)).is_equal_to(["new"])
    assert_that(result.errors).is_empty()


# -- ProcessFilesPrLevelReviewStage ----------------------------------------


def test_pr_level_results_are_filtered_and_scored(
    ai_analysis,
    configured_context,
) -> None:
    """PR-level suggestions are filtered; cross-file ones are also scored."""
    ai_analysis.analyze_pull_request.return_value = PrAnalysisResult(
        valid_suggestions_by_pr=[
            make_suggestion("pr-1", start=None, end=None),
            make_suggestion("pr-2", label="unknown_category"),
        ],
        valid_cross_file_suggestions=[make_suggestion("cross", severity="low")],
    )

    result = ProcessFilesPrLevelReviewStage(ai_analysis).execute(configured_context)

    analysis = result.pr_analysis_results
    assert_that(_ids(analysis.valid_suggestions_by_pr)).is_equal_to(["pr-1"])
    assert_that(analysis.valid_cross_file_suggestions[0].rank_score).is_equal_to(60)


def test_pr_level_failure_is_recorded(ai_analysis, configured_context) -> None:
    """A failing PR-level pass records an error and keeps the context."""
    ai_analysis.analyze_pull_request.side_effect = CollaboratorError("rate limited")
    result = ProcessFilesPrLevelReviewStage(ai_analysis).execute(configured_context)
    assert_that(result.errors).is_length(1)
    assert_that(result.errors[0].stage).is_equal_to("ProcessFilesPrLevelReviewStage")
    assert_that(result.pr_analysis_results.valid_suggestions_by_pr).is_empty()


def test_pr_level_without_config_is_noop(ai_analysis, context) -> None:
    """No configuration means no PR-level pass."""
    result = ProcessFilesPrLevelReviewStage(ai_analysis).execute(context)
    assert_that(result).is_same_as(context)
