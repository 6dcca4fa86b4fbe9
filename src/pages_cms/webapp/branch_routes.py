"""Branch, sync and pull request API routes."""

import json
from typing import Any

import structlog
from aiohttp import web

from pages_cms.context import CmsContext, RepoContext
from pages_cms.core.branch_status import fetch_all_pages, find_branch_status, get_branch_statuses
from pages_cms.core.cms_config import load_cms_config, normalize_repositories
from pages_cms.core.permissions import EditPermissions, is_user_branch, select_repository
from pages_cms.core.pull_requests import EditSession, PullRequestOrchestrator, PullRequestRequest
from pages_cms.core.submodules import list_submodules
from pages_cms.core.sync import check_for_changes, sync
from pages_cms.errors import NotFoundError, ValidationError
from pages_cms.github.abc import PAGE_SIZE
from pages_cms.types import SessionUser
from pages_cms.webapp.auth import require_session

logger = structlog.get_logger(__name__)

# Branch names contain "/", sent either raw or percent-encoded
_BRANCH = "{branch:.+}"


def add_branch_routes(app: web.Application, ctx: CmsContext) -> None:
    """Add branch and pull request routes to the webapp."""
    app.router.add_get(
        "/api/{owner}/{repo}/branches/status", create_branch_status_handler(ctx)
    )
    app.router.add_get("/api/{owner}/{repo}/submodules", create_submodules_handler(ctx))
    app.router.add_get(f"/api/{{owner}}/{{repo}}/{_BRANCH}/changes", create_changes_handler(ctx))
    app.router.add_post(f"/api/{{owner}}/{{repo}}/{_BRANCH}/sync", create_sync_handler(ctx))
    app.router.add_post(
        f"/api/{{owner}}/{{repo}}/{_BRANCH}/pull-request", create_pull_request_handler(ctx)
    )
    app.router.add_post(
        f"/api/{{owner}}/{{repo}}/{_BRANCH}/branches", create_working_branch_handler(ctx)
    )
    app.router.add_get(
        f"/api/{{owner}}/{{repo}}/{_BRANCH}/permissions", create_permissions_handler(ctx)
    )


def repo_context(request: web.Request) -> RepoContext:
    return RepoContext(
        owner=request.match_info["owner"],
        repo=request.match_info["repo"],
        branch=request.match_info.get("branch", ""),
    )


async def read_json_body(request: web.Request) -> dict[str, Any]:
    """Read a JSON object body, an empty body counts as {}."""
    if not request.can_read_body:
        return {}
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid JSON body") from e
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'"{key}" must be a string')
    return value or None


def create_changes_handler(ctx: CmsContext):
    @require_session(ctx)
    async def changes_handler(request: web.Request, user: SessionUser) -> web.Response:
        """Report whether the branch moved since its baseline."""
        target = repo_context(request)
        check = await check_for_changes(
            ctx.github_for(user), ctx.baselines, ctx.time, target.owner, target.repo, target.branch
        )
        return web.json_response({"status": "success", **check.to_json()})

    return changes_handler


def create_sync_handler(ctx: CmsContext):
    @require_session(ctx)
    async def sync_handler(request: web.Request, user: SessionUser) -> web.Response:
        target = repo_context(request)
        result = await sync(
            ctx.github_for(user), ctx.baselines, ctx.time, target.owner, target.repo, target.branch
        )
        return web.json_response({"status": "success", **result.to_json()})

    return sync_handler


def create_branch_status_handler(ctx: CmsContext):
    @require_session(ctx)
    async def branch_status_handler(request: web.Request, user: SessionUser) -> web.Response:
        target = repo_context(request)
        statuses = await get_branch_statuses(ctx.github_for(user), target.owner, target.repo)
        return web.json_response(
            {"status": "success", "data": [status.to_json() for status in statuses]}
        )

    return branch_status_handler


def create_submodules_handler(ctx: CmsContext):
    @require_session(ctx)
    async def submodules_handler(request: web.Request, user: SessionUser) -> web.Response:
        target = repo_context(request)
        submodules = await list_submodules(
            ctx.github_for(user), target.owner, target.repo, request.query.get("ref")
        )
        return web.json_response(
            {"status": "success", "data": [submodule.to_json() for submodule in submodules]}
        )

    return submodules_handler


def create_pull_request_handler(ctx: CmsContext):
    @require_session(ctx)
    async def pull_request_handler(request: web.Request, user: SessionUser) -> web.Response:
        """Open a pull request from the branch in the URL.

        Body: {title, description?, baseBranch|targetBranch, targetOwner?, targetRepo?}
        """
        target = repo_context(request)
        data = await read_json_body(request)
        pr_request = PullRequestRequest(
            title=_optional_str(data, "title"),
            description=_optional_str(data, "description") or "",
            target_branch=_optional_str(data, "baseBranch") or _optional_str(data, "targetBranch"),
            target_owner=_optional_str(data, "targetOwner"),
            target_repo=_optional_str(data, "targetRepo"),
        )
        session = EditSession(
            owner=target.owner, repo=target.repo, branch=target.branch, has_pending_changes=True
        )
        orchestrator = PullRequestOrchestrator(ctx.github_for(user), ctx.time)
        _, result = await orchestrator.create_pull_request(session, pr_request)
        return web.json_response(
            {
                "status": "success",
                "message": "Pull request created successfully.",
                "data": result.to_json(),
            }
        )

    return pull_request_handler


def create_working_branch_handler(ctx: CmsContext):
    @require_session(ctx)
    async def working_branch_handler(request: web.Request, user: SessionUser) -> web.Response:
        """Create a working branch off the branch in the URL. Body: {name?}"""
        target = repo_context(request)
        data = await read_json_body(request)
        github = ctx.github_for(user)

        branches = await fetch_all_pages(
            lambda page: github.list_branches(
                target.owner, target.repo, page=page, per_page=PAGE_SIZE
            )
        )
        if branches is None:
            raise NotFoundError(f"Repository {target.full_name} not found")

        orchestrator = PullRequestOrchestrator(github, ctx.time)
        name = await orchestrator.create_working_branch(
            owner=target.owner,
            repo=target.repo,
            base_branch=target.branch,
            desired_name=_optional_str(data, "name"),
            username=user.github_username,
            existing_branches=[branch.name for branch in branches],
        )
        return web.json_response({"status": "success", "data": {"name": name}}, status=201)

    return working_branch_handler


def create_permissions_handler(ctx: CmsContext):
    @require_session(ctx)
    async def permissions_handler(request: web.Request, user: SessionUser) -> web.Response:
        """Report edit capability on the branch.

        Query: repository (name of the selected content tree), path
        (content path to check against that tree).
        """
        target = repo_context(request)
        github = ctx.github_for(user)

        identity = await github.get_repo(target.owner, target.repo)
        if identity is None:
            raise NotFoundError(f"Repository {target.full_name} not found")

        statuses = await get_branch_statuses(github, target.owner, target.repo)
        head = await github.get_branch(target.owner, target.repo, target.branch)
        config = None
        if head is not None:
            config = await load_cms_config(github, target.owner, target.repo, head.head_sha)
        repositories = (
            config.repositories
            if config is not None
            else normalize_repositories(None, target.owner, target.repo)
        )

        permissions = EditPermissions(
            is_user_branch=is_user_branch(target.branch, identity.default_branch, statuses),
            branch_status=find_branch_status(statuses, target.branch),
            repositories=repositories,
            selected_repository=select_repository(repositories, request.query.get("repository")),
        )
        data = permissions.to_json()
        path = request.query.get("path")
        if path is not None:
            data["contentEditable"] = permissions.is_content_editable(path)
        return web.json_response({"status": "success", "data": data})

    return permissions_handler
