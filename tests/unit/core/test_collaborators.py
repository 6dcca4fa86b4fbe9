"""Tests for CollaboratorService."""

import pytest

from pages_cms.core.collaborators import COLLABORATOR_PERMISSION, CollaboratorService
from pages_cms.errors import GitHubApiError, NotFoundError, ValidationError
from pages_cms.github.fake import FakeGitHub
from pages_cms.store.fake import FakeCollaboratorStore
from pages_cms.types import Collaborator, InvitationStatus


def _collaborator(
    collaborator_id: int,
    username: str,
    *,
    status: InvitationStatus = "pending",
    invitation_id: int | None = 1001,
) -> Collaborator:
    return Collaborator(
        id=collaborator_id,
        owner="acme",
        repo="site",
        github_username=username,
        invitation_id=invitation_id,
        invitation_status=status,
        invited_by="owner",
    )


class TestCollaboratorService:
    def _create_service(
        self,
        github: FakeGitHub | None = None,
        store: FakeCollaboratorStore | None = None,
    ) -> tuple[CollaboratorService, FakeGitHub, FakeCollaboratorStore]:
        github = github or FakeGitHub(users={"bob"})
        store = store or FakeCollaboratorStore()
        return CollaboratorService(github, store), github, store

    @pytest.mark.asyncio
    async def test_invite_records_pending_collaborator(self) -> None:
        service, github, store = self._create_service()

        collaborator = await service.invite("acme", "site", " bob ", invited_by="alice")

        assert collaborator.github_username == "bob"
        assert collaborator.invitation_status == "pending"
        assert collaborator.invitation_id == 1001
        assert github.invited == [("acme", "site", "bob", COLLABORATOR_PERMISSION)]
        assert store.list_collaborators("acme", "site") == [collaborator]

    @pytest.mark.asyncio
    async def test_invite_rejects_blank_username(self) -> None:
        service, github, _ = self._create_service()

        with pytest.raises(ValidationError, match="Invalid GitHub username"):
            await service.invite("acme", "site", "  ", invited_by="alice")

        assert github.calls == []

    @pytest.mark.asyncio
    async def test_invite_rejects_duplicate(self) -> None:
        store = FakeCollaboratorStore([_collaborator(1, "bob")])
        service, github, _ = self._create_service(store=store)

        with pytest.raises(ValidationError, match="already invited"):
            await service.invite("acme", "site", "bob", invited_by="alice")

        assert github.invited == []

    @pytest.mark.asyncio
    async def test_invite_rejects_unknown_user(self) -> None:
        service, github, _ = self._create_service(github=FakeGitHub(users=set()))

        with pytest.raises(ValidationError, match='GitHub user "ghost" not found'):
            await service.invite("acme", "site", "ghost", invited_by="alice")

        assert github.invited == []

    @pytest.mark.asyncio
    async def test_check_invitation_still_pending(self) -> None:
        github = FakeGitHub(invitations={("acme", "site"): {1001: "bob"}})
        store = FakeCollaboratorStore([_collaborator(1, "bob")])
        service, _, _ = self._create_service(github=github, store=store)

        assert await service.check_invitation("acme", "site", 1) == "pending"
        assert store.status_updates == []

    @pytest.mark.asyncio
    async def test_check_invitation_accepted(self) -> None:
        github = FakeGitHub(collaborators={("acme", "site"): {"bob"}})
        store = FakeCollaboratorStore([_collaborator(1, "bob")])
        service, _, _ = self._create_service(github=github, store=store)

        assert await service.check_invitation("acme", "site", 1) == "accepted"
        assert store.status_updates == [(1, "accepted")]

    @pytest.mark.asyncio
    async def test_check_invitation_declined(self) -> None:
        store = FakeCollaboratorStore([_collaborator(1, "bob")])
        service, _, _ = self._create_service(github=FakeGitHub(), store=store)

        assert await service.check_invitation("acme", "site", 1) == "declined"
        assert store.status_updates == [(1, "declined")]

    @pytest.mark.asyncio
    async def test_check_invitation_unknown_collaborator(self) -> None:
        service, _, _ = self._create_service()

        with pytest.raises(NotFoundError):
            await service.check_invitation("acme", "site", 99)

    @pytest.mark.asyncio
    async def test_check_invitation_of_other_repository_is_not_found(self) -> None:
        store = FakeCollaboratorStore([_collaborator(1, "bob")])
        service, _, _ = self._create_service(store=store)

        with pytest.raises(NotFoundError):
            await service.check_invitation("acme", "other", 1)

    @pytest.mark.asyncio
    async def test_list_refreshes_pending_invitations(self) -> None:
        github = FakeGitHub(collaborators={("acme", "site"): {"bob"}})
        store = FakeCollaboratorStore(
            [_collaborator(1, "bob"), _collaborator(2, "carol", status="declined")]
        )
        service, _, _ = self._create_service(github=github, store=store)

        collaborators = await service.list_collaborators("acme", "site")

        assert [(c.github_username, c.invitation_status) for c in collaborators] == [
            ("bob", "accepted"),
            ("carol", "declined"),
        ]
        assert store.status_updates == [(1, "accepted")]

    @pytest.mark.asyncio
    async def test_list_degrades_per_record_on_upstream_failure(self) -> None:
        github = FakeGitHub(errors={"invitation_exists": GitHubApiError(500, "Server Error")})
        store = FakeCollaboratorStore([_collaborator(1, "bob")])
        service, _, _ = self._create_service(github=github, store=store)

        collaborators = await service.list_collaborators("acme", "site")

        assert [c.invitation_status for c in collaborators] == ["pending"]
        assert store.status_updates == []

    @pytest.mark.asyncio
    async def test_remove_pending_cancels_invitation(self) -> None:
        store = FakeCollaboratorStore([_collaborator(1, "bob")])
        service, github, _ = self._create_service(store=store)

        removed = await service.remove("acme", "site", 1)

        assert removed.github_username == "bob"
        assert github.cancelled_invitations == [("acme", "site", 1001)]
        assert github.removed_collaborators == []
        assert store.get_collaborator(1) is None

    @pytest.mark.asyncio
    async def test_remove_accepted_revokes_access(self) -> None:
        store = FakeCollaboratorStore([_collaborator(1, "bob", status="accepted")])
        service, github, _ = self._create_service(store=store)

        await service.remove("acme", "site", 1)

        assert github.cancelled_invitations == []
        assert github.removed_collaborators == [("acme", "site", "bob")]
