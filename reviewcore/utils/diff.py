"""Unified diff helpers built on ``unidiff``."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from unidiff import PatchSet
from unidiff.errors import UnidiffParseError

# Platform patches start at the first hunk; unidiff needs a file header.
_PATCH_HEADER = "--- a/{name}\n+++ b/{name}\n"


@dataclass(frozen=True)
class LineRange:
    """Inclusive range of new-side line numbers."""

    start: int
    end: int

    def overlaps(self, start: int | None, end: int | None) -> bool:
        """Return True when ``[start, end]`` intersects this range."""
        if start is None:
            return False
        end = start if end is None else end
        return start <= self.end and end >= self.start


def _as_patch_set(patch: str, filename: str) -> PatchSet:
    if not patch.startswith(("--- ", "diff ")):
        patch = _PATCH_HEADER.format(name=filename) + patch
    return PatchSet(patch)


def extract_modified_ranges(
    patch: str | None,
    filename: str = "file",
) -> list[LineRange]:
    """Return the new-side line ranges added or changed by a patch.

    Consecutive added lines are merged into one range. Deleted lines
    do not interrupt a range; context lines do.

    Args:
        patch: Unified diff text, with or without a file header.
        filename: Name used for the header added to headerless patches.

    Returns:
        Ranges in file order. Empty for a missing or malformed patch.
    """
    if not patch:
        return []
    try:
        patch_set = _as_patch_set(patch, filename)
    except UnidiffParseError as e:
        logger.warning(f"Could not parse patch for {filename}: {e}")
        return []

    ranges: list[LineRange] = []
    for patched_file in patch_set:
        for hunk in patched_file:
            start: int | None = None
            end: int | None = None
            for line in hunk:
                if line.is_added:
                    if start is None:
                        start = line.target_line_no
                    end = line.target_line_no
                elif line.is_context and start is not None:
                    ranges.append(LineRange(start, end))
                    start = end = None
            if start is not None:
                ranges.append(LineRange(start, end))
    return ranges
