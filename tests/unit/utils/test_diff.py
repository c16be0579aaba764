"""Tests for unified diff helpers."""

from __future__ import annotations

import pytest
from assertpy import assert_that

from reviewcore.utils.diff import LineRange, extract_modified_ranges
from tests.unit.conftest import SAMPLE_PATCH


def test_extract_ranges_from_two_hunks() -> None:
    """Consecutive added lines merge into one range per run."""
    assert_that(extract_modified_ranges(SAMPLE_PATCH)).is_equal_to(
        [LineRange(10, 14), LineRange(41, 42)],
    )


def test_deleted_lines_do_not_advance_new_side() -> None:
    """A deletion followed by an addition lands on the same new-side line."""
    patch = "@@ -1,3 +1,3 @@\n line1\n-removed\n+added\n line3\n"
    assert_that(extract_modified_ranges(patch)).is_equal_to([LineRange(2, 2)])


def test_file_headers_and_no_newline_markers_are_ignored() -> None:
    """Lines before the first hunk and ``\\`` markers are skipped."""
    patch = (
        "--- a/new.py\n"
        "+++ b/new.py\n"
        "@@ -0,0 +1,2 @@\n"
        "+first\n"
        "+second\n"
        "\\ No newline at end of file\n"
    )
    assert_that(extract_modified_ranges(patch)).is_equal_to([LineRange(1, 2)])


def test_git_header_is_accepted() -> None:
    """A full ``diff --git`` patch parses without an added header."""
    patch = (
        "diff --git a/src/app.py b/src/app.py\n"
        "--- a/src/app.py\n"
        "+++ b/src/app.py\n"
        "@@ -5,2 +5,3 @@\n"
        " keep\n"
        "+inserted\n"
        " keep\n"
    )
    assert_that(extract_modified_ranges(patch, "src/app.py")).is_equal_to(
        [LineRange(6, 6)],
    )


def test_context_line_splits_ranges_within_a_hunk() -> None:
    """Added runs separated by context become separate ranges."""
    patch = "@@ -1,3 +1,6 @@\n+a\n one\n+b\n+c\n two\n three\n"
    assert_that(extract_modified_ranges(patch)).is_equal_to(
        [LineRange(1, 1), LineRange(3, 4)],
    )


def test_malformed_patch_has_no_ranges() -> None:
    """A hunk shorter than its header declares yields no ranges."""
    patch = "@@ -1,5 +1,6 @@\n+only line\n"
    assert_that(extract_modified_ranges(patch, "src/app.py")).is_empty()


@pytest.mark.parametrize("patch", [None, ""], ids=["none", "empty"])
def test_empty_patch_has_no_ranges(patch) -> None:
    """Missing patches produce no ranges."""
    assert_that(extract_modified_ranges(patch)).is_empty()


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        (12, None, True),
        (8, 10, True),
        (14, 20, True),
        (15, 20, False),
        (1, 9, False),
        (None, 12, False),
    ],
    ids=[
        "single-line-inside",
        "touches-start",
        "touches-end",
        "after",
        "before",
        "no-start",
    ],
)
def test_line_range_overlaps(start, end, expected) -> None:
    """Overlap is inclusive on both ends."""
    assert_that(LineRange(10, 14).overlaps(start, end)).is_equal_to(expected)
