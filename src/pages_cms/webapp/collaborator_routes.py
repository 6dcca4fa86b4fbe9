"""Collaborator management API routes."""

from aiohttp import web

from pages_cms.context import CmsContext
from pages_cms.core.collaborators import CollaboratorService
from pages_cms.errors import ValidationError
from pages_cms.types import SessionUser
from pages_cms.webapp.auth import require_session
from pages_cms.webapp.branch_routes import read_json_body


def add_collaborator_routes(app: web.Application, ctx: CmsContext) -> None:
    """Add collaborator routes to the webapp."""
    app.router.add_get("/api/collaborators/{owner}/{repo}", create_list_handler(ctx))
    app.router.add_post("/api/collaborators/{owner}/{repo}", create_invite_handler(ctx))
    app.router.add_get(
        "/api/collaborators/{owner}/{repo}/{collaborator_id}/status", create_status_handler(ctx)
    )
    app.router.add_delete(
        "/api/collaborators/{owner}/{repo}/{collaborator_id}", create_remove_handler(ctx)
    )


def _service(ctx: CmsContext, user: SessionUser) -> CollaboratorService:
    return CollaboratorService(ctx.github_for(user), ctx.collaborators)


def _collaborator_id(request: web.Request) -> int:
    raw = request.match_info["collaborator_id"]
    if not raw.isdigit():
        raise ValidationError(f"Invalid collaborator id: {raw}")
    return int(raw)


def create_list_handler(ctx: CmsContext):
    @require_session(ctx)
    async def list_handler(request: web.Request, user: SessionUser) -> web.Response:
        owner, repo = request.match_info["owner"], request.match_info["repo"]
        collaborators = await _service(ctx, user).list_collaborators(owner, repo)
        return web.json_response(
            {"status": "success", "data": [c.to_json() for c in collaborators]}
        )

    return list_handler


def create_invite_handler(ctx: CmsContext):
    @require_session(ctx)
    async def invite_handler(request: web.Request, user: SessionUser) -> web.Response:
        """Invite a GitHub user. Body: {username}"""
        owner, repo = request.match_info["owner"], request.match_info["repo"]
        data = await read_json_body(request)
        username = data.get("username")
        if not isinstance(username, str):
            raise ValidationError("Invalid GitHub username")

        collaborator = await _service(ctx, user).invite(
            owner, repo, username, invited_by=user.github_username
        )
        return web.json_response(
            {
                "status": "success",
                "message": (
                    f'{collaborator.github_username} invited to "{owner}/{repo}". '
                    "They will receive a notification on GitHub."
                ),
                "data": collaborator.to_json(),
            },
            status=201,
        )

    return invite_handler


def create_status_handler(ctx: CmsContext):
    @require_session(ctx)
    async def status_handler(request: web.Request, user: SessionUser) -> web.Response:
        owner, repo = request.match_info["owner"], request.match_info["repo"]
        status = await _service(ctx, user).check_invitation(owner, repo, _collaborator_id(request))
        return web.json_response({"status": "success", "data": {"invitationStatus": status}})

    return status_handler


def create_remove_handler(ctx: CmsContext):
    @require_session(ctx)
    async def remove_handler(request: web.Request, user: SessionUser) -> web.Response:
        owner, repo = request.match_info["owner"], request.match_info["repo"]
        removed = await _service(ctx, user).remove(owner, repo, _collaborator_id(request))
        return web.json_response(
            {
                "status": "success",
                "message": f'{removed.github_username} removed from "{owner}/{repo}".',
            }
        )

    return remove_handler
