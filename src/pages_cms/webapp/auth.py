"""Session cookie authentication for API handlers."""

from collections.abc import Awaitable, Callable
from functools import wraps

from aiohttp import web

from pages_cms.context import CmsContext
from pages_cms.errors import AuthenticationError
from pages_cms.types import SessionUser

SESSION_COOKIE_NAME = "pages_cms_session"

AuthenticatedHandler = Callable[[web.Request, SessionUser], Awaitable[web.StreamResponse]]


def get_session_user(request: web.Request, ctx: CmsContext) -> SessionUser:
    """Resolve the request's session cookie to a user.

    Raises:
        AuthenticationError: If the cookie is missing or the session unknown
    """
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_id:
        raise AuthenticationError("Unauthorized")
    user = ctx.sessions.get_session(session_id)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user


def require_session(
    ctx: CmsContext,
) -> Callable[[AuthenticatedHandler], Callable[[web.Request], Awaitable[web.StreamResponse]]]:
    """Decorator to require a signed-in user for an API handler.

    Example:
        @require_session(ctx)
        async def handler(request: web.Request, user: SessionUser) -> web.Response:
            return web.json_response({"status": "success"})
    """

    def decorator(
        handler: AuthenticatedHandler,
    ) -> Callable[[web.Request], Awaitable[web.StreamResponse]]:
        @wraps(handler)
        async def wrapper(request: web.Request) -> web.StreamResponse:
            user = get_session_user(request, ctx)
            return await handler(request, user)

        return wrapper

    return decorator
