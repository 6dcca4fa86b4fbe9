"""aiohttp application assembly."""

from collections.abc import AsyncIterator

import aiohttp
from aiohttp import web

from pages_cms.config import ServerConfig
from pages_cms.context import CmsContext
from pages_cms.github.abc import GitHub
from pages_cms.github.real import RealGitHub
from pages_cms.store.sqlite import (
    SQLiteCollaboratorStore,
    SQLiteDatabase,
    SQLiteSessionStore,
    SQLiteSyncBaselineStore,
)
from pages_cms.time.abc import Time
from pages_cms.time.real import RealTime
from pages_cms.webapp.branch_routes import add_branch_routes
from pages_cms.webapp.collaborator_routes import add_collaborator_routes
from pages_cms.webapp.middleware import build_error_middleware


class RealGitHubFactory:
    """Builds per-user RealGitHub clients sharing one aiohttp ClientSession.

    The session lives as long as the web application: client_session_ctx
    is registered in the application's cleanup_ctx.
    """

    def __init__(self, time: Time, api_url: str) -> None:
        self._time = time
        self._api_url = api_url
        self._session: aiohttp.ClientSession | None = None

    def __call__(self, token: str) -> GitHub:
        if self._session is None:
            msg = "GitHub client session is not open"
            raise RuntimeError(msg)
        return RealGitHub(self._session, token, self._time, api_url=self._api_url)

    async def client_session_ctx(self, app: web.Application) -> AsyncIterator[None]:
        self._session = aiohttp.ClientSession()
        yield
        await self._session.close()
        self._session = None


def build_web_application(ctx: CmsContext) -> web.Application:
    app = web.Application()
    app.middlewares.insert(0, build_error_middleware())

    # Collaborator routes first: "/api/collaborators/{owner}/{repo}" would
    # otherwise be shadowed by "/api/{owner}/{repo}/..." patterns
    add_collaborator_routes(app, ctx)
    add_branch_routes(app, ctx)
    return app


def create_app(config: ServerConfig) -> web.Application:
    """Create the production application backed by SQLite and GitHub."""
    database = SQLiteDatabase(config.db_path)
    time = RealTime()
    github_factory = RealGitHubFactory(time, config.github_api_url)
    ctx = CmsContext(
        github_factory=github_factory,
        baselines=SQLiteSyncBaselineStore(database),
        sessions=SQLiteSessionStore(database),
        collaborators=SQLiteCollaboratorStore(database),
        time=time,
    )
    app = build_web_application(ctx)
    app.cleanup_ctx.append(github_factory.client_session_ctx)
    return app
