"""Tests for PullRequestOrchestrator."""

import pytest

from pages_cms.core.pull_requests import (
    EditSession,
    PullRequestOrchestrator,
    PullRequestRequest,
    PullRequestResult,
)
from pages_cms.errors import GitHubApiError, ValidationError
from pages_cms.github.fake import FakeGitHub
from pages_cms.time.fake import FakeTime
from pages_cms.types import Branch, RepoIdentity

ALICE_BRANCH = "content-changes/alice/1700000000000"


def _session(owner: str = "acme", repo: str = "site") -> EditSession:
    return EditSession(owner=owner, repo=repo, branch=ALICE_BRANCH, has_pending_changes=True)


class TestCreatePullRequest:
    def _create_orchestrator(
        self, github: FakeGitHub | None = None
    ) -> tuple[PullRequestOrchestrator, FakeGitHub]:
        github = github or FakeGitHub(
            branches={("acme", "site"): [Branch("main", "m1"), Branch(ALICE_BRANCH, "a1")]}
        )
        return PullRequestOrchestrator(github, FakeTime()), github

    @pytest.mark.asyncio
    async def test_missing_title_is_rejected_without_network_calls(self) -> None:
        orchestrator, github = self._create_orchestrator()

        with pytest.raises(ValidationError, match="Title is required"):
            await orchestrator.create_pull_request(
                _session(), PullRequestRequest(title=None, target_branch="main")
            )

        assert github.calls == []

    @pytest.mark.asyncio
    async def test_blank_title_is_rejected(self) -> None:
        orchestrator, github = self._create_orchestrator()

        with pytest.raises(ValidationError, match="Title is required"):
            await orchestrator.create_pull_request(_session(), PullRequestRequest(title="   "))

        assert github.calls == []

    @pytest.mark.asyncio
    async def test_same_repo_pull_request(self) -> None:
        orchestrator, github = self._create_orchestrator()
        session = _session()

        updated, result = await orchestrator.create_pull_request(
            session,
            PullRequestRequest(title="Update", description="Edits", target_branch="main"),
        )

        assert result == PullRequestResult(number=1, url="https://github.com/acme/site/pull/1")
        assert github.created_pulls == [("acme", "site", "Update", "Edits", ALICE_BRANCH, "main")]
        assert github.created_refs == []
        assert updated.has_pending_changes is False
        assert session.has_pending_changes is True

    @pytest.mark.asyncio
    async def test_defaults_target_to_repository_default_branch(self) -> None:
        github = FakeGitHub(
            repos={("acme", "site"): RepoIdentity("acme", "site", "trunk", False)},
            branches={("acme", "site"): [Branch("trunk", "t1"), Branch(ALICE_BRANCH, "a1")]},
        )
        orchestrator, _ = self._create_orchestrator(github)

        await orchestrator.create_pull_request(_session(), PullRequestRequest(title="Update"))

        assert github.created_pulls[0][5] == "trunk"

    @pytest.mark.asyncio
    async def test_cross_repo_with_existing_target_ref_proceeds(self) -> None:
        github = FakeGitHub(
            branches={
                ("alice", "site"): [Branch(ALICE_BRANCH, "a1")],
                ("acme", "site"): [Branch("main", "m1"), Branch(ALICE_BRANCH, "a1")],
            }
        )
        orchestrator, _ = self._create_orchestrator(github)

        updated, result = await orchestrator.create_pull_request(
            _session(owner="alice"),
            PullRequestRequest(
                title="Update", target_branch="main", target_owner="acme", target_repo="site"
            ),
        )

        assert result.number == 1
        assert result.url == "https://github.com/acme/site/pull/1"
        assert github.created_refs == []
        assert github.created_pulls == [
            ("acme", "site", "Update", "", f"alice:{ALICE_BRANCH}", "main")
        ]
        assert updated.has_pending_changes is False

    @pytest.mark.asyncio
    async def test_cross_repo_creates_missing_target_ref(self) -> None:
        github = FakeGitHub(
            branches={
                ("alice", "site"): [Branch(ALICE_BRANCH, "a1")],
                ("acme", "site"): [Branch("main", "m1")],
            }
        )
        orchestrator, _ = self._create_orchestrator(github)

        await orchestrator.create_pull_request(
            _session(owner="alice"),
            PullRequestRequest(
                title="Update", target_branch="main", target_owner="acme", target_repo="site"
            ),
        )

        assert github.created_refs == [("acme", "site", f"refs/heads/{ALICE_BRANCH}", "a1")]

    @pytest.mark.asyncio
    async def test_cross_repo_ref_failure_is_propagated(self) -> None:
        github = FakeGitHub(
            branches={("alice", "site"): [Branch(ALICE_BRANCH, "a1")]},
            errors={"create_ref": GitHubApiError(403, "Resource not accessible by integration")},
        )
        orchestrator, _ = self._create_orchestrator(github)

        with pytest.raises(GitHubApiError, match="Resource not accessible"):
            await orchestrator.create_pull_request(
                _session(owner="alice"),
                PullRequestRequest(
                    title="Update", target_branch="main", target_owner="acme", target_repo="site"
                ),
            )

        assert "create_pull" not in github.calls

    @pytest.mark.asyncio
    async def test_upstream_pull_failure_is_surfaced_verbatim(self) -> None:
        github = FakeGitHub(
            errors={"create_pull": GitHubApiError(422, "Validation Failed: No commits between main and x")}
        )
        orchestrator, _ = self._create_orchestrator(github)
        session = _session()

        with pytest.raises(GitHubApiError) as exc_info:
            await orchestrator.create_pull_request(
                session, PullRequestRequest(title="Update", target_branch="main")
            )

        assert exc_info.value.message == "Validation Failed: No commits between main and x"
        assert session.has_pending_changes is True


class TestCreateWorkingBranch:
    def _github(self) -> FakeGitHub:
        return FakeGitHub(branches={("acme", "site"): [Branch("main", "m1")]})

    @pytest.mark.asyncio
    async def test_creates_ref_at_base_head(self) -> None:
        github = self._github()
        orchestrator = PullRequestOrchestrator(github, FakeTime())

        name = await orchestrator.create_working_branch(
            "acme", "site", "main", "Spring Update", "Alice", ["main"]
        )

        assert name == "content-changes/alice/spring-update-1700000000000"
        assert github.created_refs == [("acme", "site", f"refs/heads/{name}", "m1")]

    @pytest.mark.asyncio
    async def test_duplicate_name_is_rejected_before_network(self) -> None:
        github = self._github()
        orchestrator = PullRequestOrchestrator(github, FakeTime())

        with pytest.raises(ValidationError, match="already exists"):
            await orchestrator.create_working_branch(
                "acme", "site", "main", None, "alice", ["main", "content-changes/alice/1700000000000"]
            )

        assert github.calls == []

    @pytest.mark.asyncio
    async def test_invalid_name_is_rejected_before_network(self) -> None:
        github = self._github()
        orchestrator = PullRequestOrchestrator(github, FakeTime())

        with pytest.raises(ValidationError, match="Invalid branch name"):
            await orchestrator.create_working_branch("acme", "site", "main", "a" * 300, "alice", [])

        assert github.calls == []

    @pytest.mark.asyncio
    async def test_existing_ref_counts_as_created(self) -> None:
        github = FakeGitHub(
            branches={("acme", "site"): [Branch("main", "m1"), Branch(ALICE_BRANCH, "m1")]}
        )
        orchestrator = PullRequestOrchestrator(github, FakeTime())

        name = await orchestrator.create_working_branch("acme", "site", "main", "", "alice", ["main"])

        assert name == ALICE_BRANCH
        assert github.created_refs == []

    @pytest.mark.asyncio
    async def test_missing_base_branch(self) -> None:
        orchestrator = PullRequestOrchestrator(self._github(), FakeTime())

        with pytest.raises(ValidationError, match="Base branch develop not found"):
            await orchestrator.create_working_branch("acme", "site", "develop", "x", "alice", [])
