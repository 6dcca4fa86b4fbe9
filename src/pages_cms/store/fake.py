"""Fake store implementations for testing."""

from dataclasses import replace

from pages_cms.store.abc import CollaboratorStore, SessionStore, SyncBaselineStore
from pages_cms.types import Collaborator, InvitationStatus, SessionUser, SyncBaseline


class FakeSyncBaselineStore(SyncBaselineStore):
    """In-memory implementation of SyncBaselineStore.

    Example:
        >>> store = FakeSyncBaselineStore()
        >>> store.set_baseline(baseline)
        >>> assert len(store.baselines_written) == 1
    """

    def __init__(self, baselines: list[SyncBaseline] | None = None) -> None:
        self._baselines: dict[tuple[str, str, str], SyncBaseline] = {}
        for baseline in baselines or []:
            self._baselines[(baseline.owner, baseline.repo, baseline.branch)] = baseline
        self._written: list[SyncBaseline] = []

    def get_baseline(self, owner: str, repo: str, branch: str) -> SyncBaseline | None:
        return self._baselines.get((owner, repo, branch))

    def set_baseline(self, baseline: SyncBaseline) -> None:
        self._baselines[(baseline.owner, baseline.repo, baseline.branch)] = baseline
        self._written.append(baseline)

    @property
    def baselines_written(self) -> list[SyncBaseline]:
        """Read-only access to every baseline passed to set_baseline."""
        return list(self._written)


class FakeSessionStore(SessionStore):
    """In-memory implementation of SessionStore with deterministic IDs."""

    def __init__(self, sessions: list[SessionUser] | None = None) -> None:
        self._sessions = {session.session_id: session for session in sessions or []}
        self._next_id = 1

    def get_session(self, session_id: str) -> SessionUser | None:
        return self._sessions.get(session_id)

    def create_session(self, github_username: str, access_token: str) -> SessionUser:
        session = SessionUser(
            session_id=f"session-{self._next_id}",
            github_username=github_username,
            access_token=access_token,
        )
        self._next_id += 1
        self._sessions[session.session_id] = session
        return session

    def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class FakeCollaboratorStore(CollaboratorStore):
    """In-memory implementation of CollaboratorStore."""

    def __init__(self, collaborators: list[Collaborator] | None = None) -> None:
        self._collaborators = {c.id: c for c in collaborators or []}
        self._status_updates: list[tuple[int, InvitationStatus]] = []

    def list_collaborators(self, owner: str, repo: str) -> list[Collaborator]:
        return sorted(
            (c for c in self._collaborators.values() if c.owner == owner and c.repo == repo),
            key=lambda c: c.id,
        )

    def get_collaborator(self, collaborator_id: int) -> Collaborator | None:
        return self._collaborators.get(collaborator_id)

    def find_collaborator(self, owner: str, repo: str, github_username: str) -> Collaborator | None:
        for collaborator in self.list_collaborators(owner, repo):
            if collaborator.github_username == github_username:
                return collaborator
        return None

    def add_collaborator(
        self,
        owner: str,
        repo: str,
        github_username: str,
        invitation_id: int | None,
        invitation_status: InvitationStatus,
        invited_by: str,
    ) -> Collaborator:
        collaborator = Collaborator(
            id=max(self._collaborators, default=0) + 1,
            owner=owner,
            repo=repo,
            github_username=github_username,
            invitation_id=invitation_id,
            invitation_status=invitation_status,
            invited_by=invited_by,
        )
        self._collaborators[collaborator.id] = collaborator
        return collaborator

    def update_invitation_status(self, collaborator_id: int, status: InvitationStatus) -> None:
        if collaborator_id in self._collaborators:
            self._collaborators[collaborator_id] = replace(
                self._collaborators[collaborator_id], invitation_status=status
            )
        self._status_updates.append((collaborator_id, status))

    def delete_collaborator(self, collaborator_id: int) -> bool:
        return self._collaborators.pop(collaborator_id, None) is not None

    @property
    def status_updates(self) -> list[tuple[int, InvitationStatus]]:
        return list(self._status_updates)
