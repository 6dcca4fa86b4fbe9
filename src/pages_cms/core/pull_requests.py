"""Working branch and pull request orchestration.

A working branch goes NEW -> OPEN_EDITABLE when created here, and
IN_REVIEW once a pull request is opened for it. Later transitions
(merged, closed) are observed upstream through branch statuses.
"""

from dataclasses import dataclass, replace

import structlog

from pages_cms.errors import GitHubApiError, ValidationError
from pages_cms.github.abc import GitHub
from pages_cms.naming import build_working_branch_name, is_valid_branch_name
from pages_cms.time.abc import Time

logger = structlog.get_logger(__name__)

FALLBACK_TARGET_BRANCH = "main"


@dataclass(frozen=True)
class EditSession:
    """Edit state of one view on a branch.

    The session is never mutated; operations return an updated copy.
    """

    owner: str
    repo: str
    branch: str
    has_pending_changes: bool

    def with_pending_changes(self, pending: bool) -> "EditSession":
        return replace(self, has_pending_changes=pending)


@dataclass(frozen=True)
class PullRequestRequest:
    """Parameters of a pull request opened from the session's branch.

    Attributes:
        title: PR title, required
        description: PR body
        target_branch: Base branch, the target repository's default when None
        target_owner: Owner of the target repository, the session's when None
        target_repo: Name of the target repository, the session's when None
    """

    title: str | None
    description: str = ""
    target_branch: str | None = None
    target_owner: str | None = None
    target_repo: str | None = None


@dataclass(frozen=True)
class PullRequestResult:
    number: int
    url: str

    def to_json(self) -> dict[str, object]:
        return {"number": self.number, "url": self.url}


class PullRequestOrchestrator:
    """Creates working branches and opens pull requests for them."""

    def __init__(self, github: GitHub, time: Time) -> None:
        self._github = github
        self._time = time

    async def _create_ref_allowing_existing(self, owner: str, repo: str, branch: str, sha: str) -> None:
        try:
            await self._github.create_ref(owner, repo, ref=f"refs/heads/{branch}", sha=sha)
        except GitHubApiError as e:
            if not e.is_ref_already_exists:
                raise
            logger.info("ref already exists", owner=owner, repo=repo, branch=branch)

    async def create_working_branch(
        self,
        owner: str,
        repo: str,
        base_branch: str,
        desired_name: str | None,
        username: str,
        existing_branches: list[str],
    ) -> str:
        """Create a working branch for a user at the head of base_branch.

        Args:
            owner: Repository owner
            repo: Repository name
            base_branch: Branch whose head the new branch starts from
            desired_name: Free-form name typed by the user
            username: GitHub login of the user
            existing_branches: Names already present in the repository

        Returns:
            Name of the created branch

        Raises:
            ValidationError: If the derived name is invalid or already taken
                (raised before any GitHub call), or if base_branch is missing
        """
        name = build_working_branch_name(username, desired_name, self._time.now())
        if not is_valid_branch_name(name):
            raise ValidationError(f"Invalid branch name: {name}")
        if name in existing_branches:
            raise ValidationError(f"Branch {name} already exists")

        base = await self._github.get_branch(owner, repo, base_branch)
        if base is None:
            raise ValidationError(f"Base branch {base_branch} not found")

        await self._create_ref_allowing_existing(owner, repo, name, base.head_sha)
        logger.info(
            "created working branch", owner=owner, repo=repo, branch=name, base=base_branch
        )
        return name

    async def _resolve_target_branch(self, owner: str, repo: str) -> str:
        identity = await self._github.get_repo(owner, repo)
        if identity is None:
            return FALLBACK_TARGET_BRANCH
        return identity.default_branch

    async def create_pull_request(
        self, session: EditSession, request: PullRequestRequest
    ) -> tuple[EditSession, PullRequestResult]:
        """Open a pull request from the session's branch.

        When the target repository differs from the session's, the branch
        is first bridged into the target by creating the same ref at the
        source head ("already exists" counts as done), and the PR head is
        qualified as "<source owner>:<branch>".

        Returns:
            The session with pending changes cleared, and the PR number/url

        Raises:
            ValidationError: If the title is missing (no GitHub call is made)
            GitHubApiError: If GitHub rejects any step; the session passed
                in stays as it was
        """
        if request.title is None or not request.title.strip():
            raise ValidationError("Title is required")

        target_owner = request.target_owner or session.owner
        target_repo = request.target_repo or session.repo
        is_cross_repo = (target_owner, target_repo) != (session.owner, session.repo)

        target_branch = request.target_branch
        if target_branch is None:
            target_branch = await self._resolve_target_branch(target_owner, target_repo)

        head = session.branch
        if is_cross_repo:
            source = await self._github.get_branch(session.owner, session.repo, session.branch)
            if source is None:
                raise ValidationError(f"Branch {session.branch} not found")
            await self._create_ref_allowing_existing(
                target_owner, target_repo, session.branch, source.head_sha
            )
            head = f"{session.owner}:{session.branch}"

        pr = await self._github.create_pull(
            target_owner,
            target_repo,
            title=request.title,
            body=request.description,
            head=head,
            base=target_branch,
        )
        logger.info(
            "opened pull request",
            owner=target_owner,
            repo=target_repo,
            number=pr.number,
            head=head,
            base=target_branch,
        )
        return session.with_pending_changes(False), PullRequestResult(number=pr.number, url=pr.url)
