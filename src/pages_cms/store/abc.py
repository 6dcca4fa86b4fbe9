"""Abstract interfaces for auxiliary persistence.

GitHub is the source of truth for content; these stores only hold what
GitHub cannot: sync baselines, user sessions and collaborator invitations.
"""

from abc import ABC, abstractmethod

from pages_cms.types import Collaborator, InvitationStatus, SessionUser, SyncBaseline


class SyncBaselineStore(ABC):
    """Persisted (owner, repo, branch) -> last known SHA."""

    @abstractmethod
    def get_baseline(self, owner: str, repo: str, branch: str) -> SyncBaseline | None:
        """Get the baseline for a branch.

        Returns:
            SyncBaseline if the branch was synced before, None otherwise
        """
        ...

    @abstractmethod
    def set_baseline(self, baseline: SyncBaseline) -> None:
        """Insert or replace the baseline for (owner, repo, branch)."""
        ...


class SessionStore(ABC):
    """Lookup of authenticated sessions by session ID."""

    @abstractmethod
    def get_session(self, session_id: str) -> SessionUser | None:
        """Get a session, None if unknown."""
        ...

    @abstractmethod
    def create_session(self, github_username: str, access_token: str) -> SessionUser:
        """Create a session with a fresh random ID."""
        ...

    @abstractmethod
    def delete_session(self, session_id: str) -> None:
        """Delete a session. Unknown IDs are ignored."""
        ...


class CollaboratorStore(ABC):
    """Collaborator invitation records."""

    @abstractmethod
    def list_collaborators(self, owner: str, repo: str) -> list[Collaborator]:
        """List collaborators of a repository ordered by ID."""
        ...

    @abstractmethod
    def get_collaborator(self, collaborator_id: int) -> Collaborator | None:
        """Get a collaborator by ID, None if unknown."""
        ...

    @abstractmethod
    def find_collaborator(self, owner: str, repo: str, github_username: str) -> Collaborator | None:
        """Find a collaborator of a repository by GitHub login."""
        ...

    @abstractmethod
    def add_collaborator(
        self,
        owner: str,
        repo: str,
        github_username: str,
        invitation_id: int | None,
        invitation_status: InvitationStatus,
        invited_by: str,
    ) -> Collaborator:
        """Insert a collaborator record and return it with its new ID."""
        ...

    @abstractmethod
    def update_invitation_status(self, collaborator_id: int, status: InvitationStatus) -> None:
        """Update the invitation status of a collaborator."""
        ...

    @abstractmethod
    def delete_collaborator(self, collaborator_id: int) -> bool:
        """Delete a collaborator record.

        Returns:
            True if a record was deleted, False if the ID was unknown
        """
        ...
