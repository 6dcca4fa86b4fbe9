"""Collaborator invitation lifecycle.

Collaborator records live in the CollaboratorStore; GitHub holds the
actual invitations and access. Status moves pending -> accepted or
pending -> declined, as observed upstream.
"""

from dataclasses import replace

import structlog
from structlog.stdlib import BoundLogger

from pages_cms.errors import GitHubApiError, NotFoundError, ValidationError
from pages_cms.github.abc import GitHub
from pages_cms.store.abc import CollaboratorStore
from pages_cms.types import Collaborator, InvitationStatus

# Permission granted to invited collaborators
COLLABORATOR_PERMISSION = "push"


class CollaboratorService:
    """Invite, track and remove repository collaborators."""

    def __init__(
        self,
        github: GitHub,
        store: CollaboratorStore,
        logger: BoundLogger | None = None,
    ) -> None:
        self._github = github
        self._store = store
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    async def _observe_status(
        self, owner: str, repo: str, collaborator: Collaborator
    ) -> InvitationStatus:
        if collaborator.invitation_id is None:
            return collaborator.invitation_status
        if await self._github.invitation_exists(owner, repo, collaborator.invitation_id):
            return "pending"
        if await self._github.is_collaborator(owner, repo, collaborator.github_username):
            return "accepted"
        return "declined"

    def _get_owned(self, owner: str, repo: str, collaborator_id: int) -> Collaborator:
        collaborator = self._store.get_collaborator(collaborator_id)
        if collaborator is None or (collaborator.owner, collaborator.repo) != (owner, repo):
            raise NotFoundError("Collaborator not found")
        return collaborator

    async def list_collaborators(self, owner: str, repo: str) -> list[Collaborator]:
        """List collaborators, refreshing pending invitations from GitHub.

        A GitHub failure while refreshing one record is logged and that
        record keeps its stored status.
        """
        results: list[Collaborator] = []
        for collaborator in self._store.list_collaborators(owner, repo):
            if collaborator.invitation_status != "pending":
                results.append(collaborator)
                continue
            try:
                status = await self._observe_status(owner, repo, collaborator)
            except GitHubApiError as e:
                self._logger.warning(
                    "invitation status check failed",
                    owner=owner,
                    repo=repo,
                    collaborator_id=collaborator.id,
                    error=e.message,
                )
                results.append(collaborator)
                continue
            if status != collaborator.invitation_status:
                self._store.update_invitation_status(collaborator.id, status)
                collaborator = replace(collaborator, invitation_status=status)
            results.append(collaborator)
        return results

    async def invite(self, owner: str, repo: str, username: str, invited_by: str) -> Collaborator:
        """Invite a GitHub user to the repository and record the invitation.

        Raises:
            ValidationError: If the username is blank, already invited, or
                not a GitHub user
            GitHubApiError: If GitHub rejects the invitation
        """
        username = username.strip()
        if not username:
            raise ValidationError("Invalid GitHub username")
        if self._store.find_collaborator(owner, repo, username) is not None:
            raise ValidationError(f'{username} is already invited to "{owner}/{repo}".')
        if not await self._github.user_exists(username):
            raise ValidationError(f'GitHub user "{username}" not found')

        invitation_id = await self._github.invite_collaborator(
            owner, repo, username, COLLABORATOR_PERMISSION
        )
        # No invitation id means the user already had access
        status: InvitationStatus = "pending" if invitation_id is not None else "accepted"
        collaborator = self._store.add_collaborator(
            owner=owner,
            repo=repo,
            github_username=username,
            invitation_id=invitation_id,
            invitation_status=status,
            invited_by=invited_by,
        )
        self._logger.info(
            "invited collaborator",
            owner=owner,
            repo=repo,
            username=username,
            invitation_id=invitation_id,
        )
        return collaborator

    async def check_invitation(self, owner: str, repo: str, collaborator_id: int) -> InvitationStatus:
        """Check an invitation upstream and persist a final status.

        Raises:
            NotFoundError: If the collaborator is unknown
            ValidationError: If the collaborator has no invitation
        """
        collaborator = self._get_owned(owner, repo, collaborator_id)
        if collaborator.invitation_id is None:
            raise ValidationError("No invitation found for this collaborator")

        status = await self._observe_status(owner, repo, collaborator)
        if status != "pending":
            self._store.update_invitation_status(collaborator.id, status)
        return status

    async def remove(self, owner: str, repo: str, collaborator_id: int) -> Collaborator:
        """Revoke a collaborator's invitation or access and delete the record.

        Returns:
            The deleted record
        """
        collaborator = self._get_owned(owner, repo, collaborator_id)
        if collaborator.invitation_status == "pending" and collaborator.invitation_id is not None:
            await self._github.cancel_invitation(owner, repo, collaborator.invitation_id)
        if collaborator.invitation_status == "accepted":
            await self._github.remove_collaborator(owner, repo, collaborator.github_username)

        if not self._store.delete_collaborator(collaborator.id):
            raise NotFoundError("Collaborator not found")
        self._logger.info(
            "removed collaborator", owner=owner, repo=repo, username=collaborator.github_username
        )
        return collaborator
