"""Parsing utilities for GitHub REST responses."""

import base64
from datetime import datetime
from typing import Any

from pages_cms.types import Branch, CommitInfo, PullRequest, RepoIdentity


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp ("2024-01-15T10:30:00Z")."""
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_repo(data: dict[str, Any]) -> RepoIdentity:
    return RepoIdentity(
        owner=data["owner"]["login"],
        name=data["name"],
        default_branch=data["default_branch"],
        is_private=bool(data.get("private", False)),
    )


def parse_branch(data: dict[str, Any]) -> Branch:
    return Branch(name=data["name"], head_sha=data["commit"]["sha"])


def parse_pull_request(data: dict[str, Any]) -> PullRequest:
    """Parse a pull request object from the pulls API.

    The head repository is null when the fork was deleted, so head_owner
    may be None.
    """
    head = data["head"]
    head_repo = head.get("repo")
    head_owner = head_repo["owner"]["login"] if head_repo is not None else None

    created_at = parse_timestamp(data["created_at"])
    if created_at is None:
        msg = f"Pull request #{data['number']} has no created_at"
        raise ValueError(msg)

    return PullRequest(
        number=data["number"],
        url=data["html_url"],
        state=data["state"],
        head_ref=head["ref"],
        head_owner=head_owner,
        base_ref=data["base"]["ref"],
        created_at=created_at,
        merged_at=parse_timestamp(data.get("merged_at")),
    )


def parse_commit(data: dict[str, Any], fallback_date: str) -> CommitInfo:
    """Parse a commit object, filling in missing author fields.

    Args:
        data: Commit object from GET /repos/{owner}/{repo}/commits/{ref}
        fallback_date: ISO timestamp used when the commit has no author date
    """
    author = data["commit"].get("author") or {}
    return CommitInfo(
        sha=data["sha"],
        message=data["commit"]["message"],
        date=author.get("date") or fallback_date,
        author_name=author.get("name") or "Unknown",
        author_email=author.get("email") or "",
    )


def decode_content(data: Any) -> str | None:
    """Decode a contents API file payload.

    Returns None for directories and non-file entries.
    """
    if isinstance(data, list) or data.get("type") != "file":
        return None
    return base64.b64decode(data.get("content", "")).decode("utf-8")


def extract_error_message(data: Any, fallback: str) -> str:
    """Extract GitHub's error message from a response body.

    Validation failures (422) carry details in "errors"; these are appended
    so messages like "No commits between main and my-branch" reach the user.
    """
    if not isinstance(data, dict):
        return fallback
    message = data.get("message") or fallback
    details: list[str] = []
    for error in data.get("errors") or []:
        if isinstance(error, dict) and error.get("message"):
            details.append(error["message"])
        elif isinstance(error, str):
            details.append(error)
    if details:
        return f"{message}: {'; '.join(details)}"
    return message
