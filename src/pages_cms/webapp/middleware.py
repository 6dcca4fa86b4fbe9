"""JSON error handling middleware."""

from collections.abc import Awaitable, Callable

import structlog
from aiohttp import web

from pages_cms.errors import CmsError

logger = structlog.get_logger(__name__)


def error_response(message: str, status: int) -> web.Response:
    return web.json_response({"status": "error", "message": message}, status=status)


def build_error_middleware():
    @web.middleware
    async def error_middleware(
        request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
    ) -> web.StreamResponse:
        """Convert raised errors into {status: "error", message} responses.

        CmsError subclasses carry their HTTP status. aiohttp HTTP exceptions
        (404 for unknown routes, 405) keep theirs. Anything else is a 500.
        """
        try:
            return await handler(request)
        except CmsError as e:
            if e.http_status >= 500:
                logger.warning(
                    "upstream error", path=request.path, status=e.http_status, error=e.message
                )
            else:
                logger.info("request rejected", path=request.path, status=e.http_status, error=e.message)
            return error_response(e.message, e.http_status)
        except web.HTTPException as ex:
            if ex.status >= 400:
                return error_response(ex.reason, ex.status)
            raise
        except Exception as e:
            logger.exception("unhandled error", path=request.path)
            return error_response(str(e) or "Internal server error", 500)

    return error_middleware
