"""Abstract base class for GitHub REST operations."""

from abc import ABC, abstractmethod

from pages_cms.types import Branch, CommitInfo, PullRequest, RepoIdentity

# Page size used for every paginated listing
PAGE_SIZE = 100


class GitHub(ABC):
    """Abstract interface for the GitHub REST operations used by pages_cms.

    Read operations return None when GitHub answers 404. Every other
    failure raises GitHubApiError with GitHub's message.

    All implementations (real and fake) must implement this interface.
    """

    # --- Repository and branch reads ---

    @abstractmethod
    async def get_repo(self, owner: str, repo: str) -> RepoIdentity | None:
        """Get repository identity, None if not found or not accessible."""
        ...

    @abstractmethod
    async def list_branches(
        self, owner: str, repo: str, *, page: int, per_page: int
    ) -> list[Branch] | None:
        """List one page of branches.

        Args:
            owner: Repository owner
            repo: Repository name
            page: 1-based page number
            per_page: Page size

        Returns:
            Branches on the page, None if the repository was not found
        """
        ...

    @abstractmethod
    async def get_branch(self, owner: str, repo: str, branch: str) -> Branch | None:
        """Get a single branch with its head SHA, None if not found."""
        ...

    @abstractmethod
    async def get_commit(self, owner: str, repo: str, ref: str) -> CommitInfo | None:
        """Get commit details for a SHA or ref, None if not found."""
        ...

    @abstractmethod
    async def get_file_content(self, owner: str, repo: str, path: str, ref: str | None) -> str | None:
        """Get decoded text content of a file.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path relative to the repository root
            ref: Branch, tag or SHA; None for the default branch

        Returns:
            File content, None if the file does not exist

        Raises:
            UnicodeDecodeError: If the file is not valid UTF-8 text
        """
        ...

    # --- Pull requests and refs ---

    @abstractmethod
    async def list_pulls(
        self, owner: str, repo: str, *, page: int, per_page: int, state: str = "all"
    ) -> list[PullRequest] | None:
        """List one page of pull requests, None if the repository was not found."""
        ...

    @abstractmethod
    async def create_pull(
        self, owner: str, repo: str, *, title: str, body: str, head: str, base: str
    ) -> PullRequest:
        """Create a pull request.

        Args:
            owner: Owner of the repository the PR is opened in
            repo: Repository the PR is opened in
            title: PR title
            body: PR body (markdown)
            head: Head branch, "owner:branch" for cross-repository PRs
            base: Base branch

        Returns:
            The created pull request
        """
        ...

    @abstractmethod
    async def create_ref(self, owner: str, repo: str, *, ref: str, sha: str) -> None:
        """Create a git ref (e.g., "refs/heads/my-branch") pointing at a SHA.

        Raises:
            GitHubApiError: "Reference already exists" when the ref exists,
                or any other upstream failure
        """
        ...

    # --- Collaborators ---

    @abstractmethod
    async def user_exists(self, username: str) -> bool:
        """Check whether a GitHub user exists."""
        ...

    @abstractmethod
    async def invite_collaborator(self, owner: str, repo: str, username: str, permission: str) -> int | None:
        """Invite a user to a repository.

        Returns:
            Invitation ID, None if the user already had access (no invitation)
        """
        ...

    @abstractmethod
    async def invitation_exists(self, owner: str, repo: str, invitation_id: int) -> bool:
        """Check whether a repository invitation is still pending."""
        ...

    @abstractmethod
    async def cancel_invitation(self, owner: str, repo: str, invitation_id: int) -> None:
        """Delete a pending repository invitation."""
        ...

    @abstractmethod
    async def is_collaborator(self, owner: str, repo: str, username: str) -> bool:
        """Check whether a user is a collaborator on a repository."""
        ...

    @abstractmethod
    async def remove_collaborator(self, owner: str, repo: str, username: str) -> None:
        """Remove a collaborator from a repository."""
        ...
