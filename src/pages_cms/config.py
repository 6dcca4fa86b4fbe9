"""Server configuration read from the environment."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pages_cms.github.real import DEFAULT_API_URL

DEFAULT_DB_PATH = Path.home() / ".pages-cms" / "pages_cms.db"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class ServerConfig:
    """Settings of the HTTP server process.

    Attributes:
        db_path: SQLite database holding sessions, baselines and collaborators
        host: Interface to bind
        port: TCP port to bind
        github_api_url: Base URL of the GitHub REST API
    """

    db_path: Path
    host: str
    port: int
    github_api_url: str


def load_server_config(environ: Mapping[str, str] | None = None) -> ServerConfig:
    """Build a ServerConfig from environment variables.

    Environment variables:
        PAGES_CMS_DB_PATH: SQLite file (default: ~/.pages-cms/pages_cms.db)
        PAGES_CMS_HOST: Bind address (default: 127.0.0.1)
        PAGES_CMS_PORT: Bind port (default: 8080)
        PAGES_CMS_GITHUB_API_URL: GitHub API base URL (default: https://api.github.com)

    Raises:
        ValueError: If PAGES_CMS_PORT is not an integer
    """
    env = os.environ if environ is None else environ

    db_path = env.get("PAGES_CMS_DB_PATH")
    port = env.get("PAGES_CMS_PORT")
    if port is not None and not port.strip().isdigit():
        msg = f"PAGES_CMS_PORT must be an integer, got: {port}"
        raise ValueError(msg)

    return ServerConfig(
        db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
        host=env.get("PAGES_CMS_HOST") or DEFAULT_HOST,
        port=int(port) if port is not None else DEFAULT_PORT,
        github_api_url=env.get("PAGES_CMS_GITHUB_API_URL") or DEFAULT_API_URL,
    )
