"""Fake GitHub operations for testing."""

from datetime import UTC, datetime

from pages_cms.errors import GitHubApiError
from pages_cms.github.abc import GitHub
from pages_cms.types import Branch, CommitInfo, PullRequest, RepoIdentity

RepoKey = tuple[str, str]


class FakeGitHub(GitHub):
    """In-memory fake implementation of GitHub operations.

    This class has NO public setup methods. All state is provided via
    constructor using keyword arguments with sensible defaults. Mutations
    (created refs, created PRs, invitations) update the in-memory state and
    are tracked for test assertions.

    Example:
        >>> github = FakeGitHub(
        ...     branches={("acme", "site"): [Branch("main", "abc123")]},
        ... )
        >>> # Later: assert github.created_refs == [...]
    """

    def __init__(
        self,
        *,
        repos: dict[RepoKey, RepoIdentity] | None = None,
        branches: dict[RepoKey, list[Branch]] | None = None,
        pulls: dict[RepoKey, list[PullRequest]] | None = None,
        commits: dict[tuple[str, str, str], CommitInfo] | None = None,
        files: dict[tuple[str, str, str], str | bytes] | None = None,
        users: set[str] | None = None,
        collaborators: dict[RepoKey, set[str]] | None = None,
        invitations: dict[RepoKey, dict[int, str]] | None = None,
        errors: dict[str, GitHubApiError] | None = None,
    ) -> None:
        """Create FakeGitHub with pre-configured state.

        Args:
            repos: Mapping of (owner, repo) -> RepoIdentity
            branches: Mapping of (owner, repo) -> branches; a key's presence
                makes the repository exist for listing purposes
            pulls: Mapping of (owner, repo) -> pull requests
            commits: Mapping of (owner, repo, sha) -> CommitInfo
            files: Mapping of (owner, repo, path) -> content (any ref); bytes
                are decoded as UTF-8 on read, like the contents API payload
            users: GitHub logins that exist
            collaborators: Mapping of (owner, repo) -> collaborator logins
            invitations: Mapping of (owner, repo) -> {invitation_id: login}
            errors: Mapping of method name -> error raised on every call
        """
        self._repos = dict(repos or {})
        self._branches = {key: list(value) for key, value in (branches or {}).items()}
        self._pulls = {key: list(value) for key, value in (pulls or {}).items()}
        self._commits = dict(commits or {})
        self._files = dict(files or {})
        self._users = set(users or set())
        self._collaborators = {key: set(value) for key, value in (collaborators or {}).items()}
        self._invitations = {key: dict(value) for key, value in (invitations or {}).items()}
        self._errors = dict(errors or {})

        # Mutation tracking
        self._calls: list[str] = []
        self._created_refs: list[tuple[str, str, str, str]] = []
        self._created_pulls: list[tuple[str, str, str, str, str, str]] = []
        self._invited: list[tuple[str, str, str, str]] = []
        self._cancelled_invitations: list[tuple[str, str, int]] = []
        self._removed_collaborators: list[tuple[str, str, str]] = []

    def _record(self, method: str) -> None:
        self._calls.append(method)
        if method in self._errors:
            raise self._errors[method]

    # --- Repository and branch reads ---

    async def get_repo(self, owner: str, repo: str) -> RepoIdentity | None:
        self._record("get_repo")
        return self._repos.get((owner, repo))

    async def list_branches(
        self, owner: str, repo: str, *, page: int, per_page: int
    ) -> list[Branch] | None:
        self._record("list_branches")
        if (owner, repo) not in self._branches:
            return None
        start = (page - 1) * per_page
        return self._branches[(owner, repo)][start : start + per_page]

    async def get_branch(self, owner: str, repo: str, branch: str) -> Branch | None:
        self._record("get_branch")
        for candidate in self._branches.get((owner, repo), []):
            if candidate.name == branch:
                return candidate
        return None

    async def get_commit(self, owner: str, repo: str, ref: str) -> CommitInfo | None:
        self._record("get_commit")
        return self._commits.get((owner, repo, ref))

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str | None) -> str | None:
        self._record("get_file_content")
        content = self._files.get((owner, repo, path.lstrip("/")))
        if isinstance(content, bytes):
            return content.decode("utf-8")
        return content

    # --- Pull requests and refs ---

    async def list_pulls(
        self, owner: str, repo: str, *, page: int, per_page: int, state: str = "all"
    ) -> list[PullRequest] | None:
        self._record("list_pulls")
        if (owner, repo) not in self._branches and (owner, repo) not in self._pulls:
            return None
        pulls = self._pulls.get((owner, repo), [])
        if state != "all":
            pulls = [pr for pr in pulls if pr.state == state]
        start = (page - 1) * per_page
        return pulls[start : start + per_page]

    async def create_pull(
        self, owner: str, repo: str, *, title: str, body: str, head: str, base: str
    ) -> PullRequest:
        self._record("create_pull")
        self._created_pulls.append((owner, repo, title, body, head, base))
        existing = self._pulls.setdefault((owner, repo), [])
        number = max((pr.number for pr in existing), default=0) + 1
        head_owner, _, head_ref = head.rpartition(":")
        pr = PullRequest(
            number=number,
            url=f"https://github.com/{owner}/{repo}/pull/{number}",
            state="open",
            head_ref=head_ref,
            head_owner=head_owner or owner,
            base_ref=base,
            created_at=datetime(2024, 1, 15, 10, 30, tzinfo=UTC),
            merged_at=None,
        )
        existing.append(pr)
        return pr

    async def create_ref(self, owner: str, repo: str, *, ref: str, sha: str) -> None:
        self._record("create_ref")
        name = ref.removeprefix("refs/heads/")
        branches = self._branches.setdefault((owner, repo), [])
        if any(branch.name == name for branch in branches):
            raise GitHubApiError(422, "Reference already exists")
        branches.append(Branch(name=name, head_sha=sha))
        self._created_refs.append((owner, repo, ref, sha))

    # --- Collaborators ---

    async def user_exists(self, username: str) -> bool:
        self._record("user_exists")
        return username in self._users

    async def invite_collaborator(self, owner: str, repo: str, username: str, permission: str) -> int | None:
        self._record("invite_collaborator")
        self._invited.append((owner, repo, username, permission))
        pending = self._invitations.setdefault((owner, repo), {})
        invitation_id = max(pending, default=1000) + 1
        pending[invitation_id] = username
        return invitation_id

    async def invitation_exists(self, owner: str, repo: str, invitation_id: int) -> bool:
        self._record("invitation_exists")
        return invitation_id in self._invitations.get((owner, repo), {})

    async def cancel_invitation(self, owner: str, repo: str, invitation_id: int) -> None:
        self._record("cancel_invitation")
        self._invitations.get((owner, repo), {}).pop(invitation_id, None)
        self._cancelled_invitations.append((owner, repo, invitation_id))

    async def is_collaborator(self, owner: str, repo: str, username: str) -> bool:
        self._record("is_collaborator")
        return username in self._collaborators.get((owner, repo), set())

    async def remove_collaborator(self, owner: str, repo: str, username: str) -> None:
        self._record("remove_collaborator")
        self._collaborators.get((owner, repo), set()).discard(username)
        self._removed_collaborators.append((owner, repo, username))

    # --- Read-only access for assertions ---

    @property
    def calls(self) -> list[str]:
        """Names of every gateway method called, in order."""
        return list(self._calls)

    @property
    def created_refs(self) -> list[tuple[str, str, str, str]]:
        """(owner, repo, ref, sha) for every successfully created ref."""
        return list(self._created_refs)

    @property
    def created_pulls(self) -> list[tuple[str, str, str, str, str, str]]:
        """(owner, repo, title, body, head, base) for every created PR."""
        return list(self._created_pulls)

    @property
    def invited(self) -> list[tuple[str, str, str, str]]:
        return list(self._invited)

    @property
    def cancelled_invitations(self) -> list[tuple[str, str, int]]:
        return list(self._cancelled_invitations)

    @property
    def removed_collaborators(self) -> list[tuple[str, str, str]]:
        return list(self._removed_collaborators)
