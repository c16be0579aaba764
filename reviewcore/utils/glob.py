"""Glob matching for file paths and branch names."""

from __future__ import annotations

import re
from collections.abc import Iterable
from fnmatch import fnmatchcase

_LEADING_DOT_SLASH_RE = re.compile(r"^(\./+)+")


def normalize_path(filename: str | None) -> str:
    """Normalize a path for matching.

    Backslashes become forward slashes and leading ``./`` and ``/``
    segments are removed, so ``/.cursor/rules`` matches ``.cursor/**``.
    """
    path = (filename or "").replace("\\", "/")
    path = _LEADING_DOT_SLASH_RE.sub("", path)
    return path.lstrip("/")


def _matches(path: str, pattern: str) -> bool:
    if fnmatchcase(path, pattern):
        return True
    # ``**/x`` also matches ``x`` at the repository root.
    if pattern.startswith("**/") and fnmatchcase(path, pattern[3:]):
        return True
    # Patterns without a directory part match the basename anywhere.
    return "/" not in pattern and fnmatchcase(path.rsplit("/", 1)[-1], pattern)


def is_file_matching_glob(
    filename: str | None,
    patterns: Iterable[str] | None,
    *,
    case_sensitive: bool = True,
) -> bool:
    """Return True when the file matches any of the glob patterns.

    Args:
        filename: Path to check.
        patterns: Glob patterns. ``*`` also crosses directory separators.
        case_sensitive: Whether matching respects case.

    Returns:
        True on the first matching pattern, False when ``patterns`` is
        empty or none match.
    """
    if not patterns:
        return False
    path = normalize_path(filename)
    if not case_sensitive:
        path = path.lower()
    for pattern in patterns:
        candidate = pattern if case_sensitive else pattern.lower()
        if candidate and _matches(path, candidate):
            return True
    return False


def _branch_pattern_matches(branch: str, pattern: str) -> bool:
    if pattern.startswith("="):
        return branch == pattern[1:]
    if pattern.startswith("contains:"):
        return pattern[len("contains:") :] in branch
    return fnmatchcase(branch, pattern)


def should_review_branch(
    target_branch: str,
    patterns: Iterable[str] | None,
    default_branch: str = "",
) -> bool:
    """Decide whether a pull request into ``target_branch`` is reviewed.

    Pattern forms:

    * ``!pattern`` excludes matching branches and always wins.
    * ``=name`` matches the branch name exactly.
    * ``contains:text`` matches branches containing ``text``.
    * anything else is a glob; ``*`` matches every branch.

    With no inclusion patterns every non-excluded branch is reviewed.
    The repository default branch is always included.

    Args:
        target_branch: Branch the pull request merges into.
        patterns: Configured branch patterns.
        default_branch: Default branch of the repository.

    Returns:
        True when the branch should be reviewed.
    """
    cleaned = [p.strip() for p in patterns or () if p and p.strip()]
    if not cleaned:
        return True

    excludes = [p[1:] for p in cleaned if p.startswith("!")]
    includes = [p for p in cleaned if not p.startswith("!")]

    if any(_branch_pattern_matches(target_branch, p) for p in excludes):
        return False
    if not includes:
        return True
    if default_branch and target_branch == default_branch:
        return True
    return any(_branch_pattern_matches(target_branch, p) for p in includes)
