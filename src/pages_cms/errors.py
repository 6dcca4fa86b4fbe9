"""Exceptions raised by pages_cms.

Each exception maps to one HTTP status in the webapp error middleware.
"""


class CmsError(Exception):
    """Base class for errors reported to the user as-is."""

    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(CmsError):
    """No valid session or token for the request."""

    http_status = 401


class ValidationError(CmsError):
    """User input was rejected before any network call."""

    http_status = 400


class ConfigError(CmsError):
    """The repository's .pages.yml could not be parsed or validated."""

    http_status = 422


class GitHubApiError(CmsError):
    """A GitHub REST call failed.

    Attributes:
        status: HTTP status returned by GitHub (0 for transport failures)
        message: Error message reported by GitHub, surfaced verbatim
    """

    http_status = 502

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status

    @property
    def is_ref_already_exists(self) -> bool:
        """True if GitHub rejected a ref creation because the ref exists."""
        return "reference already exists" in self.message.lower()


class BranchStatusUnavailable(CmsError):
    """Branch or pull request listing failed; statuses are unknown."""

    http_status = 502


class NotFoundError(CmsError):
    """A stored record referenced by the request does not exist."""

    http_status = 404
