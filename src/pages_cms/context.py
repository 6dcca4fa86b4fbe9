"""Application and request context with dependency injection."""

from collections.abc import Callable
from dataclasses import dataclass

from pages_cms.github.abc import GitHub
from pages_cms.store.abc import CollaboratorStore, SessionStore, SyncBaselineStore
from pages_cms.time.abc import Time
from pages_cms.types import SessionUser

GitHubFactory = Callable[[str], GitHub]


@dataclass(frozen=True)
class CmsContext:
    """Immutable context holding all dependencies for pages_cms operations.

    Created once per process and threaded through the web handlers and CLI
    commands. GitHub clients are per user, so the context carries a factory
    taking an access token rather than a client.
    """

    github_factory: GitHubFactory
    baselines: SyncBaselineStore
    sessions: SessionStore
    collaborators: CollaboratorStore
    time: Time

    def github_for(self, user: SessionUser) -> GitHub:
        return self.github_factory(user.access_token)

    @staticmethod
    def for_test(
        github: GitHub | None = None,
        baselines: SyncBaselineStore | None = None,
        sessions: SessionStore | None = None,
        collaborators: CollaboratorStore | None = None,
        time: Time | None = None,
    ) -> "CmsContext":
        """Create a context backed by fakes.

        Every token resolves to the same GitHub fake.

        Example:
            >>> github = FakeGitHub(branches={("acme", "site"): [Branch("main", "abc")]})
            >>> ctx = CmsContext.for_test(github=github)
        """
        from pages_cms.github.fake import FakeGitHub
        from pages_cms.store.fake import (
            FakeCollaboratorStore,
            FakeSessionStore,
            FakeSyncBaselineStore,
        )
        from pages_cms.time.fake import FakeTime

        resolved_github = github if github is not None else FakeGitHub()
        return CmsContext(
            github_factory=lambda _token: resolved_github,
            baselines=baselines if baselines is not None else FakeSyncBaselineStore(),
            sessions=sessions if sessions is not None else FakeSessionStore(),
            collaborators=collaborators if collaborators is not None else FakeCollaboratorStore(),
            time=time if time is not None else FakeTime(),
        )


@dataclass(frozen=True)
class RepoContext:
    """The repository and branch a request or view operates on."""

    owner: str
    repo: str
    branch: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"
