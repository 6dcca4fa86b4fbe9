"""Branch status computation from branches and pull requests."""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

import structlog

from pages_cms.errors import BranchStatusUnavailable, GitHubApiError
from pages_cms.github.abc import PAGE_SIZE, GitHub
from pages_cms.types import Branch, BranchStatus, PullRequest

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BranchLifecycle(Enum):
    """Stage of a working branch in the edit/review lifecycle."""

    NEW = "new"
    OPEN_EDITABLE = "open_editable"
    IN_REVIEW = "in_review"
    MERGED = "merged"


async def fetch_all_pages(
    fetch_page: Callable[[int], Awaitable[list[T] | None]],
) -> list[T] | None:
    """Collect every page of a paginated listing.

    Stops at the first page shorter than PAGE_SIZE.

    Args:
        fetch_page: Coroutine function taking a 1-based page number

    Returns:
        All items, or None if the first page reported not-found
    """
    items: list[T] = []
    page = 1
    while True:
        batch = await fetch_page(page)
        if batch is None:
            if page == 1:
                return None
            return items
        items.extend(batch)
        if len(batch) < PAGE_SIZE:
            return items
        page += 1


def select_latest_pr(pulls: list[PullRequest], branch_name: str) -> PullRequest | None:
    """Return the most recently created PR whose head is branch_name."""
    candidates = [pr for pr in pulls if pr.head_ref == branch_name]
    if not candidates:
        return None
    return max(candidates, key=lambda pr: pr.created_at)


def compute_branch_statuses(
    branches: list[Branch], pulls: list[PullRequest]
) -> list[BranchStatus]:
    """Assign exactly one status to each branch.

    The most recently created PR for a branch decides: merged -> "merged",
    open -> "has_pr", closed without merge -> "open" (PR kept for linking).
    Branches with no PR are "open".

    Args:
        branches: Every branch of the repository
        pulls: Every pull request of the repository, any state

    Returns:
        One BranchStatus per branch, in branch order
    """
    statuses: list[BranchStatus] = []
    for branch in branches:
        pr = select_latest_pr(pulls, branch.name)
        if pr is None:
            statuses.append(BranchStatus(name=branch.name, status="open"))
            continue

        if pr.merged_at is not None:
            status = "merged"
        elif pr.state == "open":
            status = "has_pr"
        else:
            status = "open"
        statuses.append(
            BranchStatus(name=branch.name, status=status, pr_number=pr.number, pr_url=pr.url)
        )
    return statuses


async def get_branch_statuses(github: GitHub, owner: str, repo: str) -> list[BranchStatus]:
    """Fetch all branches and PRs of a repository and classify each branch.

    Returns:
        Branch statuses, empty if the repository does not exist

    Raises:
        BranchStatusUnavailable: If either listing fails upstream
    """
    try:
        branches = await fetch_all_pages(
            lambda page: github.list_branches(owner, repo, page=page, per_page=PAGE_SIZE)
        )
        if branches is None:
            return []
        pulls = await fetch_all_pages(
            lambda page: github.list_pulls(owner, repo, page=page, per_page=PAGE_SIZE, state="all")
        )
    except GitHubApiError as e:
        logger.warning("branch status fetch failed", owner=owner, repo=repo, error=e.message)
        raise BranchStatusUnavailable(e.message) from e

    statuses = compute_branch_statuses(branches, pulls or [])
    logger.debug("computed branch statuses", owner=owner, repo=repo, count=len(statuses))
    return statuses


def find_branch_status(statuses: list[BranchStatus], branch_name: str) -> BranchStatus | None:
    for status in statuses:
        if status.name == branch_name:
            return status
    return None


def branch_lifecycle(status: BranchStatus | None) -> BranchLifecycle:
    """Map an observed branch status to its lifecycle stage.

    None (branch not yet observed upstream) is NEW. A closed-unmerged PR
    returns the branch to OPEN_EDITABLE.
    """
    if status is None:
        return BranchLifecycle.NEW
    if status.status == "merged":
        return BranchLifecycle.MERGED
    if status.status == "has_pr":
        return BranchLifecycle.IN_REVIEW
    return BranchLifecycle.OPEN_EDITABLE
