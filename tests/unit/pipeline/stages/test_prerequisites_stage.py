"""Tests for the pull request prerequisites gate."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest
from assertpy import assert_that

from reviewcore.enums.automation import AutomationMessage, AutomationStatus
from reviewcore.pipeline.stages.prerequisites import ValidatePrerequisitesStage
from reviewcore.services.base import CodeReviewSettingsService


@pytest.fixture
def review_settings() -> MagicMock:
    """Settings service that ignores nobody."""
    mock = MagicMock(spec=CodeReviewSettingsService)
    mock.is_user_ignored.return_value = False
    return mock


def test_open_pull_request_passes(review_settings, context) -> None:
    """An open, unlocked pull request by a regular author proceeds."""
    result = ValidatePrerequisitesStage(review_settings).execute(context)
    assert_that(result).is_equal_to(context)


@pytest.mark.parametrize("state", ["closed", "merged"], ids=["closed", "merged"])
def test_closed_pull_request_skips(review_settings, context, state) -> None:
    """Closed and merged pull requests are skipped."""
    ctx = context.evolve(pull_request=replace(context.pull_request, state=state))
    result = ValidatePrerequisitesStage(review_settings).execute(ctx)
    assert_that(result.status_info.status).is_equal_to(AutomationStatus.SKIPPED)
    assert_that(result.status_info.message).is_equal_to(
        f"PR is Closed (state={state})",
    )
    review_settings.is_user_ignored.assert_not_called()


def test_locked_pull_request_skips(review_settings, context) -> None:
    """Locked conversations are skipped."""
    ctx = context.evolve(pull_request=replace(context.pull_request, locked=True))
    result = ValidatePrerequisitesStage(review_settings).execute(ctx)
    assert_that(result.status_info.message).is_equal_to("PR is Locked")


def test_ignored_author_skips(review_settings, context, org) -> None:
    """Pull requests of ignored users are skipped."""
    review_settings.is_user_ignored.return_value = True
    result = ValidatePrerequisitesStage(review_settings).execute(context)
    assert_that(result.status_info.status).is_equal_to(AutomationStatus.SKIPPED)
    assert_that(result.status_info.message).is_equal_to(
        AutomationMessage.USER_IGNORED.value,
    )
    review_settings.is_user_ignored.assert_called_once_with(org, "user-1")
