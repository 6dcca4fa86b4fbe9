"""Detection and reconciliation of upstream changes on a tracked branch.

A SyncBaseline records the last commit SHA reconciled for a branch. The
change check compares it with the branch head; a sync loads the CMS
config at the head and advances the baseline.
"""

from dataclasses import dataclass

import structlog

from pages_cms.core.cms_config import CmsConfig, load_cms_config
from pages_cms.github.abc import GitHub
from pages_cms.store.abc import SyncBaselineStore
from pages_cms.time.abc import Time
from pages_cms.types import CommitInfo, SyncBaseline

logger = structlog.get_logger(__name__)

# Polling intervals used by the watch loop
CHANGE_POLL_INTERVAL_SECONDS = 30
EXTERNAL_CHANGE_POLL_INTERVAL_SECONDS = 300


@dataclass(frozen=True)
class ChangeCheck:
    """Result of comparing a branch head with its baseline.

    Attributes:
        has_changes: True if the head moved since the baseline
        current_sha: Head SHA, None if the branch does not exist
        last_known_sha: Baseline SHA before this check, None if there was none
        last_commit: Details of the head commit, None if unavailable
    """

    has_changes: bool
    current_sha: str | None
    last_known_sha: str | None
    last_commit: CommitInfo | None

    def to_json(self) -> dict[str, object]:
        return {
            "hasChanges": self.has_changes,
            "lastCommit": self.last_commit.to_json() if self.last_commit is not None else None,
            "lastKnownSha": self.last_known_sha,
            "currentSha": self.current_sha,
        }


@dataclass(frozen=True)
class SyncResult:
    """Result of reconciling a branch with its head."""

    has_changes: bool
    sha: str | None
    previous_sha: str | None
    current_sha: str | None
    config: CmsConfig | None

    def to_json(self) -> dict[str, object]:
        return {
            "hasChanges": self.has_changes,
            "sha": self.sha,
            "previousSha": self.previous_sha,
            "currentSha": self.current_sha,
            "config": self.config.to_json() if self.config is not None else None,
        }


async def check_for_changes(
    github: GitHub,
    baselines: SyncBaselineStore,
    time: Time,
    owner: str,
    repo: str,
    branch: str,
) -> ChangeCheck:
    """Compare the branch head with the recorded baseline.

    A missing branch has nothing to sync. The first observation of a
    branch records its head as the baseline and reports no changes.
    """
    head = await github.get_branch(owner, repo, branch)
    if head is None:
        logger.info("branch not found", owner=owner, repo=repo, branch=branch)
        return ChangeCheck(
            has_changes=False, current_sha=None, last_known_sha=None, last_commit=None
        )

    baseline = baselines.get_baseline(owner, repo, branch)
    last_commit = await github.get_commit(owner, repo, head.head_sha)

    if baseline is None:
        baselines.set_baseline(
            SyncBaseline(
                owner=owner, repo=repo, branch=branch, sha=head.head_sha, updated_at=time.now()
            )
        )
        return ChangeCheck(
            has_changes=False,
            current_sha=head.head_sha,
            last_known_sha=None,
            last_commit=last_commit,
        )

    return ChangeCheck(
        has_changes=baseline.sha != head.head_sha,
        current_sha=head.head_sha,
        last_known_sha=baseline.sha,
        last_commit=last_commit,
    )


async def sync(
    github: GitHub,
    baselines: SyncBaselineStore,
    time: Time,
    owner: str,
    repo: str,
    branch: str,
) -> SyncResult:
    """Reload the CMS config at the branch head and advance the baseline.

    Calling sync twice with no upstream change reports has_changes=False
    the second time. The baseline is only written once the config loaded.

    Raises:
        ConfigError: If .pages.yml at the head is invalid
        GitHubApiError: If GitHub fails
    """
    head = await github.get_branch(owner, repo, branch)
    baseline = baselines.get_baseline(owner, repo, branch)
    previous_sha = baseline.sha if baseline is not None else None

    if head is None:
        logger.info("branch not found", owner=owner, repo=repo, branch=branch)
        return SyncResult(
            has_changes=False,
            sha=previous_sha,
            previous_sha=previous_sha,
            current_sha=None,
            config=None,
        )

    has_changes = previous_sha != head.head_sha
    config = await load_cms_config(github, owner, repo, head.head_sha)

    if has_changes:
        baselines.set_baseline(
            SyncBaseline(
                owner=owner, repo=repo, branch=branch, sha=head.head_sha, updated_at=time.now()
            )
        )
        logger.info(
            "synced branch",
            owner=owner,
            repo=repo,
            branch=branch,
            previous_sha=previous_sha,
            current_sha=head.head_sha,
        )

    return SyncResult(
        has_changes=has_changes,
        sha=head.head_sha,
        previous_sha=previous_sha,
        current_sha=head.head_sha,
        config=config,
    )
