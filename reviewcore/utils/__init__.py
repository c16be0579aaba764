"""Path, branch, and diff helpers."""
