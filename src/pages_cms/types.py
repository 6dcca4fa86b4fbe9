"""Type definitions for the branch reconciliation layer.

This module contains immutable dataclasses for the GitHub data and the
derived state used throughout pages_cms.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

BranchStatusKind = Literal["open", "has_pr", "merged", "deleted"]

# Pull request state as reported by the REST API (merged PRs are "closed")
PullRequestState = Literal["open", "closed"]

InvitationStatus = Literal["pending", "accepted", "declined"]


@dataclass(frozen=True)
class RepoIdentity:
    """Repository identity as fetched from GitHub.

    Attributes:
        owner: Login of the owning user or organization
        name: Repository name
        default_branch: Name of the default branch (e.g., "main")
        is_private: Whether the repository is private
    """

    owner: str
    name: str
    default_branch: str
    is_private: bool


@dataclass(frozen=True)
class Branch:
    """A branch and the SHA of its head commit."""

    name: str
    head_sha: str


@dataclass(frozen=True)
class PullRequest:
    """Information about a GitHub pull request.

    Attributes:
        number: PR number
        url: HTML URL of the PR
        state: "open" or "closed" (merged PRs are closed with merged_at set)
        head_ref: Name of the head branch
        head_owner: Login of the head repository owner, None if the fork is gone
        base_ref: Name of the base branch
        created_at: Creation timestamp
        merged_at: Merge timestamp, None if not merged
    """

    number: int
    url: str
    state: PullRequestState
    head_ref: str
    head_owner: str | None
    base_ref: str
    created_at: datetime
    merged_at: datetime | None


@dataclass(frozen=True)
class CommitInfo:
    """Summary of a single commit."""

    sha: str
    message: str
    date: str  # ISO 8601
    author_name: str
    author_email: str

    def to_json(self) -> dict[str, object]:
        return {
            "sha": self.sha,
            "message": self.message,
            "date": self.date,
            "author": {"name": self.author_name, "email": self.author_email},
        }


@dataclass(frozen=True)
class BranchStatus:
    """Review lifecycle classification of a branch.

    Attributes:
        name: Branch name
        status: One of "open", "has_pr", "merged", "deleted"
        pr_number: Number of the PR that decided the status, if any
        pr_url: URL of the PR that decided the status, if any
    """

    name: str
    status: BranchStatusKind
    pr_number: int | None = None
    pr_url: str | None = None

    def to_json(self) -> dict[str, object]:
        data: dict[str, object] = {"name": self.name, "status": self.status}
        if self.pr_number is not None:
            data["prNumber"] = self.pr_number
        if self.pr_url is not None:
            data["prUrl"] = self.pr_url
        return data


@dataclass(frozen=True)
class SyncBaseline:
    """Last commit SHA reconciled for (owner, repo, branch)."""

    owner: str
    repo: str
    branch: str
    sha: str
    updated_at: datetime


@dataclass(frozen=True)
class RepositoryDescriptor:
    """A content tree mounted at a path.

    The primary tree has path "/" (or ""); nested repositories are mounted
    at a relative path without leading or trailing slashes.
    """

    name: str
    path: str
    owner: str | None = None
    repo: str | None = None

    @property
    def is_primary(self) -> bool:
        return self.path in ("/", "")

    def to_json(self) -> dict[str, object]:
        return {"name": self.name, "owner": self.owner, "repo": self.repo, "path": self.path}


@dataclass(frozen=True)
class Submodule:
    """A submodule entry parsed from .gitmodules."""

    name: str
    path: str
    url: str
    owner: str
    repo: str

    def to_json(self) -> dict[str, str]:
        return {
            "name": self.name,
            "path": self.path,
            "url": self.url,
            "owner": self.owner,
            "repo": self.repo,
        }


@dataclass(frozen=True)
class SessionUser:
    """An authenticated user session.

    Attributes:
        session_id: Opaque session identifier stored in the session cookie
        github_username: GitHub login of the user
        access_token: GitHub token used for API calls on the user's behalf
    """

    session_id: str
    github_username: str
    access_token: str


@dataclass(frozen=True)
class Collaborator:
    """A collaborator invited to edit a repository."""

    id: int
    owner: str
    repo: str
    github_username: str
    invitation_id: int | None
    invitation_status: InvitationStatus
    invited_by: str

    def to_json(self) -> dict[str, object]:
        return {
            "id": self.id,
            "owner": self.owner,
            "repo": self.repo,
            "githubUsername": self.github_username,
            "invitationId": self.invitation_id,
            "invitationStatus": self.invitation_status,
            "invitedBy": self.invited_by,
        }
