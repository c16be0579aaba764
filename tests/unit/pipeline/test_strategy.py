"""Tests for the code-review pipeline assembly and orchestrator."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest
from assertpy import assert_that

from reviewcore.config import CodeReviewConfig
from reviewcore.enums.automation import AutomationStatus
from reviewcore.enums.pipeline import CheckConclusion
from reviewcore.models.pull_request import Commit
from reviewcore.models.results import PrAnalysisResult
from reviewcore.pipeline.executor import PipelineExecutor
from reviewcore.pipeline.strategy import (
    CodeReviewPipelineStrategy,
    PipelineOrchestrator,
)
from reviewcore.services.base import AIAnalysisResult
from tests.unit.conftest import make_suggestion

EXPECTED_STAGES = [
    "ValidateNewCommitsStage",
    "ValidatePrerequisitesStage",
    "ResolveConfigStage",
    "ValidateConfigStage",
    "CreateCheckRunStage",
    "FetchChangedFilesStage",
    "LoadExternalContextStage",
    "InitialCommentStage",
    "ProcessFilesPrLevelReviewStage",
    "ProcessFilesReviewStage",
    "CreatePrLevelCommentsStage",
    "ValidateSuggestionsStage",
    "CreateFileCommentsStage",
    "UpdateCommentsAndGenerateSummaryStage",
    "RequestChangesOrApproveStage",
    "FinalizeCheckRunStage",
]


@pytest.fixture
def wired_services(services, changed_file):
    """Collaborators answering a clean first review of one file."""
    services.automation_executions.find_last_successful_execution.return_value = None
    services.automation_executions.get_review_cadence_state.return_value = None
    services.automation_executions.count_successful_executions_since.return_value = 0
    services.pull_request_manager.get_commits.return_value = [
        Commit(sha="c1", parents=("base",)),
    ]
    services.pull_request_manager.get_changed_files.return_value = [changed_file]
    services.pull_request_manager.get_review_state.return_value = None
    services.settings.is_user_ignored.return_value = False
    services.settings.get_config.return_value = CodeReviewConfig()
    services.checks.create_check_run.return_value = "check-1"
    services.external_context.load_context.return_value = {}
    services.ai_analysis.analyze_pull_request.return_value = PrAnalysisResult()
    services.ai_analysis.analyze_file.return_value = AIAnalysisResult(
        code_suggestions=[make_suggestion("s1")],
    )
    return services


@pytest.fixture
def orchestrator(wired_services, settings) -> PipelineOrchestrator:
    """Orchestrator over the wired collaborators."""
    return PipelineOrchestrator(CodeReviewPipelineStrategy(wired_services, settings))


def _finalize_args(services) -> tuple:
    return services.checks.finalize_check_run.call_args.args


# -- Assembly --------------------------------------------------------------


def test_stage_order(services, settings) -> None:
    """Stages run in the documented order."""
    stages = CodeReviewPipelineStrategy(services, settings).configure_stages()
    assert_that([s.stage_name for s in stages]).is_equal_to(EXPECTED_STAGES)


def test_only_the_check_run_finalizer_runs_when_halted(services) -> None:
    """Exactly one stage survives a halted run."""
    stages = CodeReviewPipelineStrategy(services).configure_stages()
    finalizers = [s.stage_name for s in stages if s.runs_when_halted]
    assert_that(finalizers).is_equal_to(["FinalizeCheckRunStage"])


def test_stage_names_are_unique(services) -> None:
    """Stage names double as jump targets."""
    stages = CodeReviewPipelineStrategy(services).configure_stages()
    names = [s.stage_name for s in stages]
    assert_that(set(names)).is_length(len(names))


def test_gate_stages_are_critical(services) -> None:
    """Failures in the stages that decide whether to review fail the run."""
    stages = CodeReviewPipelineStrategy(services).configure_stages()
    assert_that([s.stage_name for s in stages if s.critical]).is_equal_to(
        [
            "ValidateNewCommitsStage",
            "ValidatePrerequisitesStage",
            "ResolveConfigStage",
            "ValidateConfigStage",
        ],
    )


# -- End to end ------------------------------------------------------------


def test_full_review_posts_and_records(orchestrator, wired_services, context) -> None:
    """A clean run posts the suggestion and closes the check run."""
    result = orchestrator.run(context)

    assert_that(result.status_info.status).is_equal_to(AutomationStatus.SUCCESS)
    assert_that(result.errors).is_empty()
    assert_that(result.pipeline_metadata["pipeline_name"]).is_equal_to(
        "CodeReviewPipeline",
    )
    assert_that([r.suggestion_id for r in result.line_comments]).is_equal_to(["s1"])
    assert_that(result.last_analyzed_commit).is_equal_to("c1")
    assert_that(result.initial_comment_id).is_equal_to("initial-1")
    assert_that(result.check_run_id).is_equal_to("check-1")

    assert_that(_finalize_args(wired_services)[3:]).is_equal_to(
        (
            CheckConclusion.SUCCESS,
            "Found 1 suggestion. Check the comments for details.",
        ),
    )
    wired_services.pull_requests.save_suggestions.assert_called_once()
    assert_that(
        wired_services.comment_manager.called("update_summary_comment"),
    ).is_length(1)


def test_closed_pull_request_halts_before_check_run(
    orchestrator,
    wired_services,
    context,
) -> None:
    """An early skip creates no check run and posts nothing."""
    ctx = context.evolve(pull_request=replace(context.pull_request, state="closed"))

    result = orchestrator.run(ctx)

    assert_that(result.status_info.status).is_equal_to(AutomationStatus.SKIPPED)
    assert_that(result.status_info.message).contains("PR is Closed")
    wired_services.checks.create_check_run.assert_not_called()
    wired_services.checks.finalize_check_run.assert_not_called()
    assert_that(wired_services.comment_manager.calls).is_empty()


def test_all_files_ignored_jumps_to_finalizer(
    orchestrator,
    wired_services,
    context,
) -> None:
    """Ignoring every file closes the check run with the skip reason."""
    wired_services.settings.get_config.return_value = CodeReviewConfig(
        ignore_paths=["src/**"],
    )

    result = orchestrator.run(context)

    assert_that(result.status_info.status).is_equal_to(AutomationStatus.SKIPPED)
    assert_that(result.status_info.message).starts_with("All Files Ignored")
    wired_services.ai_analysis.analyze_file.assert_not_called()
    conclusion, summary = _finalize_args(wired_services)[3:]
    assert_that(conclusion).is_equal_to(CheckConclusion.SUCCESS)
    assert_that(summary).starts_with("All Files Ignored")


def test_failing_file_analysis_is_partial_error(
    orchestrator,
    wired_services,
    context,
) -> None:
    """A per-file failure still completes the run as a partial error."""
    wired_services.ai_analysis.analyze_file.side_effect = RuntimeError("model down")

    result = orchestrator.run(context)

    assert_that(result.status_info.status).is_equal_to(AutomationStatus.PARTIAL_ERROR)
    assert_that(result.errors[0].substage).is_equal_to("src/app.py")
    assert_that(result.line_comments).is_empty()
    assert_that(result.last_analyzed_commit).is_equal_to("c1")


@pytest.mark.parametrize(
    ("collaborator", "method", "failed_stage"),
    [
        (
            "automation_executions",
            "find_last_successful_execution",
            "ValidateNewCommitsStage",
        ),
        ("pull_request_manager", "get_commits", "ValidateNewCommitsStage"),
        ("settings", "is_user_ignored", "ValidatePrerequisitesStage"),
    ],
    ids=["last-execution", "commits", "ignored-user"],
)
def test_raising_gate_errors_the_run(
    wired_services,
    settings,
    context,
    collaborator,
    method,
    failed_stage,
) -> None:
    """A gate that raises halts the run; only the check-run finalizer follows."""
    failing = getattr(getattr(wired_services, collaborator), method)
    failing.side_effect = RuntimeError("db down")
    stages = CodeReviewPipelineStrategy(wired_services, settings).configure_stages()
    for stage in stages:
        stage.execute_stage = MagicMock(wraps=stage.execute_stage)

    result = PipelineExecutor().execute(context, stages)

    ran = [s.stage_name for s in stages if s.execute_stage.called]
    gates_run = EXPECTED_STAGES[: EXPECTED_STAGES.index(failed_stage) + 1]
    assert_that(ran).is_equal_to([*gates_run, "FinalizeCheckRunStage"])
    assert_that(result.status_info.status).is_equal_to(AutomationStatus.ERROR)
    assert_that(result.status_info.message).contains(f"Stage '{failed_stage}' failed")
    assert_that(result.pipeline_error).is_true()
    assert_that(result.errors[0].error).is_equal_to("db down")
    assert_that(result.line_comments).is_none()
    wired_services.ai_analysis.analyze_file.assert_not_called()
    wired_services.checks.create_check_run.assert_not_called()
