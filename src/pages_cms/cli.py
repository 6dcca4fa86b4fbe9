"""Command line entry point for pages-cms."""

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiohttp
import click
from aiohttp import web

from pages_cms.config import ServerConfig, load_server_config
from pages_cms.context import RepoContext
from pages_cms.core.branch_status import branch_lifecycle, find_branch_status, get_branch_statuses
from pages_cms.core.scheduler import RefreshScheduler
from pages_cms.core.sync import (
    CHANGE_POLL_INTERVAL_SECONDS,
    EXTERNAL_CHANGE_POLL_INTERVAL_SECONDS,
    ChangeCheck,
    check_for_changes,
)
from pages_cms.github.abc import GitHub
from pages_cms.github.real import RealGitHub
from pages_cms.logging_config import configure_logging
from pages_cms.store.abc import SyncBaselineStore
from pages_cms.store.sqlite import SQLiteDatabase, SQLiteSessionStore, SQLiteSyncBaselineStore
from pages_cms.time.abc import Time
from pages_cms.time.real import RealTime
from pages_cms.types import BranchStatus
from pages_cms.webapp.app import create_app
from pages_cms.webapp.auth import SESSION_COOKIE_NAME

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


def _resolve_config(db_path: Path | None) -> ServerConfig:
    try:
        config = load_server_config()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e
    if db_path is not None:
        config = ServerConfig(
            db_path=db_path, host=config.host, port=config.port, github_api_url=config.github_api_url
        )
    return config


def _require_token(token: str | None) -> str:
    if token is None:
        click.echo("Error: GITHUB_TOKEN environment variable or --token required", err=True)
        raise SystemExit(1)
    return token


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="pages-cms-core")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
)
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines")
def cli(log_level: str, json_logs: bool) -> None:
    """Git-backed content editing backend."""
    configure_logging(log_level, json_output=json_logs)


@cli.command("serve")
@click.option("--host", help="Bind address (default: PAGES_CMS_HOST or 127.0.0.1)")
@click.option("--port", type=int, help="Bind port (default: PAGES_CMS_PORT or 8080)")
@click.option("--db-path", type=click.Path(path_type=Path), help="SQLite database file")
def serve_cmd(host: str | None, port: int | None, db_path: Path | None) -> None:
    """Run the JSON API server."""
    config = _resolve_config(db_path)
    app = create_app(config)
    bind_host = host if host is not None else config.host
    bind_port = port if port is not None else config.port
    click.echo(f"Serving pages-cms API on http://{bind_host}:{bind_port}", err=True)
    web.run_app(app, host=bind_host, port=bind_port, print=None)


@cli.command("create-session")
@click.option("--username", required=True, help="GitHub login of the user")
@click.option("--token", envvar="GITHUB_TOKEN", help="GitHub access token (default: $GITHUB_TOKEN)")
@click.option("--db-path", type=click.Path(path_type=Path), help="SQLite database file")
def create_session_cmd(username: str, token: str | None, db_path: Path | None) -> None:
    """Store a session for a GitHub token and print its cookie."""
    config = _resolve_config(db_path)
    sessions = SQLiteSessionStore(SQLiteDatabase(config.db_path))
    session = sessions.create_session(username, _require_token(token))
    click.echo(f"{SESSION_COOKIE_NAME}={session.session_id}")


def format_change_check(target: RepoContext, check: ChangeCheck) -> str:
    if check.current_sha is None:
        return f"{target.full_name}@{target.branch}: branch not found"
    if not check.has_changes:
        return f"{target.full_name}@{target.branch}: up to date ({check.current_sha[:7]})"
    previous = check.last_known_sha[:7] if check.last_known_sha is not None else "none"
    line = f"{target.full_name}@{target.branch}: changed {previous} -> {check.current_sha[:7]}"
    if check.last_commit is not None:
        first_line = check.last_commit.message.splitlines()[0] if check.last_commit.message else ""
        line += f" by {check.last_commit.author_name}: {first_line}"
    return line


def format_branch_status(target: RepoContext, status: BranchStatus | None) -> str:
    line = f"{target.full_name}@{target.branch}: {branch_lifecycle(status).value}"
    if status is not None and status.pr_url is not None:
        line += f" (#{status.pr_number} {status.pr_url})"
    return line


async def watch_branch(
    schedulers: Sequence[RefreshScheduler[Any]], stop: asyncio.Event
) -> None:
    """Run the schedulers until stop is set."""
    for scheduler in schedulers:
        await scheduler.start()
    try:
        await stop.wait()
    finally:
        for scheduler in schedulers:
            await scheduler.stop()


def build_change_scheduler(
    github: GitHub,
    baselines: SyncBaselineStore,
    time: Time,
    target: RepoContext,
    interval: float,
) -> RefreshScheduler[ChangeCheck]:
    async def refresh() -> ChangeCheck:
        check = await check_for_changes(
            github, baselines, time, target.owner, target.repo, target.branch
        )
        click.echo(format_change_check(target, check))
        return check

    return RefreshScheduler(f"changes:{target.full_name}@{target.branch}", refresh, interval)


def build_status_scheduler(
    github: GitHub, target: RepoContext, interval: float
) -> RefreshScheduler[BranchStatus | None]:
    """Poll the branch's review status to pick up PRs opened or merged elsewhere."""

    async def refresh() -> BranchStatus | None:
        statuses = await get_branch_statuses(github, target.owner, target.repo)
        status = find_branch_status(statuses, target.branch)
        click.echo(format_branch_status(target, status))
        return status

    return RefreshScheduler(f"status:{target.full_name}@{target.branch}", refresh, interval)


@cli.command("watch")
@click.argument("owner")
@click.argument("repo")
@click.argument("branch")
@click.option("--token", envvar="GITHUB_TOKEN", help="GitHub access token (default: $GITHUB_TOKEN)")
@click.option(
    "--interval",
    type=float,
    default=CHANGE_POLL_INTERVAL_SECONDS,
    show_default=True,
    help="Seconds between change checks",
)
@click.option(
    "--status-interval",
    type=float,
    default=EXTERNAL_CHANGE_POLL_INTERVAL_SECONDS,
    show_default=True,
    help="Seconds between review status checks",
)
@click.option("--db-path", type=click.Path(path_type=Path), help="SQLite database file")
def watch_cmd(
    owner: str,
    repo: str,
    branch: str,
    token: str | None,
    interval: float,
    status_interval: float,
    db_path: Path | None,
) -> None:
    """Poll a branch and report upstream changes until interrupted."""
    config = _resolve_config(db_path)
    access_token = _require_token(token)
    baselines = SQLiteSyncBaselineStore(SQLiteDatabase(config.db_path))
    target = RepoContext(owner=owner, repo=repo, branch=branch)

    async def run() -> None:
        time = RealTime()
        async with aiohttp.ClientSession() as session:
            github = RealGitHub(session, access_token, time, api_url=config.github_api_url)
            schedulers: list[RefreshScheduler[Any]] = [
                build_change_scheduler(github, baselines, time, target, interval),
                build_status_scheduler(github, target, status_interval),
            ]
            await watch_branch(schedulers, asyncio.Event())

    click.echo(f"Watching {target.full_name}@{branch} every {interval:g}s (Ctrl+C to stop)", err=True)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("Stopped", err=True)


def main() -> None:
    """CLI entry point used by the `pages-cms` console script."""
    cli()
