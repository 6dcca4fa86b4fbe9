"""Production implementation of GitHub operations over the REST API."""

from typing import Any
from urllib.parse import quote

import aiohttp
import structlog

from pages_cms.errors import GitHubApiError
from pages_cms.github.abc import PAGE_SIZE, GitHub
from pages_cms.github.parsing import (
    decode_content,
    extract_error_message,
    parse_branch,
    parse_commit,
    parse_pull_request,
    parse_repo,
)
from pages_cms.time.abc import Time
from pages_cms.types import Branch, CommitInfo, PullRequest, RepoIdentity

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


def _segment(value: str) -> str:
    """Percent-encode a single URL path segment (branch names contain "/")."""
    return quote(value, safe="")


class RealGitHub(GitHub):
    """GitHub REST client authenticated with a user's access token.

    The aiohttp ClientSession is owned by the caller (one per server
    process) and shared by every RealGitHub instance.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        token: str,
        time: Time,
        api_url: str = DEFAULT_API_URL,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp ClientSession
            token: GitHub access token of the signed-in user
            time: Time abstraction (fallback dates for commits)
            api_url: Base URL of the REST API
        """
        self._session = session
        self._token = token
        self._time = time
        self._api_url = api_url.rstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> tuple[int, Any]:
        """Issue a request and return (status, decoded JSON body or None)."""
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        url = f"{self._api_url}{path}"
        logger.debug("github request", method=method, path=path, params=params)
        try:
            async with self._session.request(
                method, url, params=params, json=json, headers=headers
            ) as response:
                body: Any = None
                if response.status != 204:
                    text = await response.text()
                    if text:
                        body = await response.json(content_type=None)
                return response.status, body
        except aiohttp.ClientError as e:
            raise GitHubApiError(0, f"GitHub request failed: {e}") from e

    async def _get_or_none(self, path: str, params: dict[str, Any] | None = None) -> Any:
        status, body = await self._request("GET", path, params=params)
        if status == 404:
            return None
        self._raise_for_status(status, body)
        return body

    def _raise_for_status(self, status: int, body: Any) -> None:
        if status >= 400:
            raise GitHubApiError(status, extract_error_message(body, f"GitHub returned {status}"))

    # --- Repository and branch reads ---

    async def get_repo(self, owner: str, repo: str) -> RepoIdentity | None:
        status, body = await self._request("GET", f"/repos/{owner}/{repo}")
        # 403 means the token cannot see the repository; treat it like a missing one
        if status in (403, 404):
            return None
        self._raise_for_status(status, body)
        return parse_repo(body)

    async def list_branches(
        self, owner: str, repo: str, *, page: int, per_page: int = PAGE_SIZE
    ) -> list[Branch] | None:
        body = await self._get_or_none(
            f"/repos/{owner}/{repo}/branches", {"page": page, "per_page": per_page}
        )
        if body is None:
            return None
        return [parse_branch(item) for item in body]

    async def get_branch(self, owner: str, repo: str, branch: str) -> Branch | None:
        body = await self._get_or_none(f"/repos/{owner}/{repo}/branches/{_segment(branch)}")
        if body is None:
            return None
        return parse_branch(body)

    async def get_commit(self, owner: str, repo: str, ref: str) -> CommitInfo | None:
        body = await self._get_or_none(f"/repos/{owner}/{repo}/commits/{_segment(ref)}")
        if body is None:
            return None
        return parse_commit(body, fallback_date=self._time.now().isoformat())

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str | None) -> str | None:
        params = {"ref": ref} if ref is not None else None
        body = await self._get_or_none(
            f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'), safe='/')}", params
        )
        if body is None:
            return None
        return decode_content(body)

    # --- Pull requests and refs ---

    async def list_pulls(
        self, owner: str, repo: str, *, page: int, per_page: int = PAGE_SIZE, state: str = "all"
    ) -> list[PullRequest] | None:
        body = await self._get_or_none(
            f"/repos/{owner}/{repo}/pulls",
            {"state": state, "page": page, "per_page": per_page},
        )
        if body is None:
            return None
        return [parse_pull_request(item) for item in body]

    async def create_pull(
        self, owner: str, repo: str, *, title: str, body: str, head: str, base: str
    ) -> PullRequest:
        status, data = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls",
            json={"title": title, "body": body, "head": head, "base": base},
        )
        self._raise_for_status(status, data)
        logger.info("created pull request", owner=owner, repo=repo, number=data["number"])
        return parse_pull_request(data)

    async def create_ref(self, owner: str, repo: str, *, ref: str, sha: str) -> None:
        status, data = await self._request(
            "POST", f"/repos/{owner}/{repo}/git/refs", json={"ref": ref, "sha": sha}
        )
        self._raise_for_status(status, data)

    # --- Collaborators ---

    async def user_exists(self, username: str) -> bool:
        body = await self._get_or_none(f"/users/{_segment(username)}")
        return body is not None

    async def invite_collaborator(self, owner: str, repo: str, username: str, permission: str) -> int | None:
        status, data = await self._request(
            "PUT",
            f"/repos/{owner}/{repo}/collaborators/{_segment(username)}",
            json={"permission": permission},
        )
        self._raise_for_status(status, data)
        # 204 means the user already had access and no invitation was created
        if data is None:
            return None
        return data["id"]

    async def invitation_exists(self, owner: str, repo: str, invitation_id: int) -> bool:
        page = 1
        while True:
            body = await self._get_or_none(
                f"/repos/{owner}/{repo}/invitations", {"page": page, "per_page": PAGE_SIZE}
            )
            if not body:
                return False
            if any(item["id"] == invitation_id for item in body):
                return True
            if len(body) < PAGE_SIZE:
                return False
            page += 1

    async def cancel_invitation(self, owner: str, repo: str, invitation_id: int) -> None:
        status, data = await self._request(
            "DELETE", f"/repos/{owner}/{repo}/invitations/{invitation_id}"
        )
        self._raise_for_status(status, data)

    async def is_collaborator(self, owner: str, repo: str, username: str) -> bool:
        status, data = await self._request(
            "GET", f"/repos/{owner}/{repo}/collaborators/{_segment(username)}"
        )
        if status == 404:
            return False
        self._raise_for_status(status, data)
        return status == 204

    async def remove_collaborator(self, owner: str, repo: str, username: str) -> None:
        status, data = await self._request(
            "DELETE", f"/repos/{owner}/{repo}/collaborators/{_segment(username)}"
        )
        self._raise_for_status(status, data)
