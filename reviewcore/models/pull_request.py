"""Identity and platform data for the pull request under review."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from reviewcore.enums.automation import AutomationStatus


@dataclass(frozen=True)
class OrganizationAndTeamData:
    """Tenant identity a run belongs to."""

    organization_id: str = ""
    team_id: str = ""


@dataclass(frozen=True)
class Repository:
    """Repository on the source-control platform."""

    id: str = ""
    name: str = ""
    full_name: str = ""
    default_branch: str = ""


@dataclass(frozen=True)
class PullRequest:
    """Pull or merge request being reviewed.

    Attributes:
        number: Platform number of the pull request.
        title: Current title.
        base_branch: Target branch.
        head_branch: Source branch.
        is_draft: Whether the pull request is a draft.
        state: ``open``, ``closed``, or ``merged``.
        locked: Whether conversation is locked.
        author_id: Platform id of the author.
        head_sha: Latest commit on the head branch.
    """

    number: int = 0
    title: str = ""
    base_branch: str = ""
    head_branch: str = ""
    is_draft: bool = False
    state: str = "open"
    locked: bool = False
    author_id: str = ""
    head_sha: str = ""


@dataclass(frozen=True)
class Commit:
    """One commit of the pull request."""

    sha: str
    parents: tuple[str, ...] = ()
    message: str = ""
    created_at: datetime | None = None

    @property
    def is_merge(self) -> bool:
        """Return True for commits with more than one parent."""
        return len(self.parents) > 1


@dataclass(frozen=True)
class FileChange:
    """A changed file with its diff.

    Attributes:
        filename: Path of the file in the repository.
        status: ``added``, ``modified``, ``removed``, or ``renamed``.
        additions: Number of added lines.
        deletions: Number of removed lines.
        patch: Unified diff of the change.
        content: Full file content after the change, when fetched.
    """

    filename: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    patch: str = ""
    content: str = ""


@dataclass(frozen=True)
class ExecutionRecord:
    """A previous pipeline run for the same pull request."""

    uuid: str = ""
    status: AutomationStatus = AutomationStatus.SUCCESS
    created_at: datetime | None = None
    last_analyzed_commit: str | None = None
    pull_request_number: int = 0
    repository_id: str = ""


@dataclass(frozen=True)
class PullRequestStats:
    """Aggregate size of the change under review."""

    total_files: int = 0
    additions: int = 0
    deletions: int = 0
    files_ignored: int = 0
    extensions: tuple[str, ...] = field(default_factory=tuple)
