"""Branch ownership and edit permission decisions.

Pure functions (no I/O). Every decision is recomputed from the current
branch statuses; nothing here is cached.
"""

from dataclasses import dataclass

from pages_cms.core.branch_status import find_branch_status
from pages_cms.types import BranchStatus, RepositoryDescriptor


def is_user_branch(
    current_branch: str, default_branch: str, branch_statuses: list[BranchStatus]
) -> bool:
    """Decide whether the active branch is a user working branch.

    The default branch never is. Any other branch is, unless its latest
    known status is "merged".

    Examples:
        >>> is_user_branch("main", "main", [])
        False
        >>> is_user_branch("content-changes/alice/1700000000000", "main", [])
        True
    """
    if current_branch == default_branch:
        return False
    status = find_branch_status(branch_statuses, current_branch)
    if status is not None and status.status == "merged":
        return False
    return True


def select_repository(
    repositories: tuple[RepositoryDescriptor, ...], name: str | None
) -> RepositoryDescriptor | None:
    """Pick a repository by name, defaulting to the primary one when no name is given.

    Returns:
        The named descriptor (None if no repository has that name), or the
        primary descriptor when name is empty, else None
    """
    if name:
        for descriptor in repositories:
            if descriptor.name == name:
                return descriptor
        return None
    for descriptor in repositories:
        if descriptor.is_primary:
            return descriptor
    return None


def _is_under(path: str, mount: str) -> bool:
    return path == mount or path.startswith(mount + "/")


@dataclass(frozen=True)
class EditPermissions:
    """Edit capability for the active branch and selected repository.

    Attributes:
        is_user_branch: Result of is_user_branch for the active branch
        branch_status: Latest status of the active branch, None if unknown
        repositories: Every configured content tree
        selected_repository: Tree chosen in the view, None if none applies
    """

    is_user_branch: bool
    branch_status: BranchStatus | None
    repositories: tuple[RepositoryDescriptor, ...]
    selected_repository: RepositoryDescriptor | None

    @property
    def has_pull_request(self) -> bool:
        return self.branch_status is not None and self.branch_status.status == "has_pr"

    @property
    def is_merged(self) -> bool:
        return self.branch_status is not None and self.branch_status.status == "merged"

    @property
    def can_edit(self) -> bool:
        return self.is_user_branch and not self.has_pull_request and not self.is_merged

    @property
    def read_only(self) -> bool:
        return not self.can_edit

    def is_content_editable(self, path: str) -> bool:
        """Check whether a content path belongs to the selected repository.

        The primary tree owns every path outside the other mounts; a nested
        tree owns only paths under its own mount.

        Args:
            path: Repository-relative content path; a leading "/" is ignored
        """
        selected = self.selected_repository
        if selected is None:
            return False

        normalized = path.strip("/")
        if not selected.is_primary:
            return _is_under(normalized, selected.path)

        for descriptor in self.repositories:
            if descriptor.is_primary:
                continue
            if _is_under(normalized, descriptor.path):
                return False
        return True

    def to_json(self) -> dict[str, object]:
        return {
            "isUserBranch": self.is_user_branch,
            "canEdit": self.can_edit,
            "readOnly": self.read_only,
            "selectedRepository": (
                self.selected_repository.to_json() if self.selected_repository is not None else None
            ),
        }
