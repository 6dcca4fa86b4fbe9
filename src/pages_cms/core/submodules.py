"""Discovery of nested repositories from .gitmodules."""

import re

import structlog

from pages_cms.github.abc import GitHub
from pages_cms.types import Submodule

logger = structlog.get_logger(__name__)

GITMODULES_PATH = ".gitmodules"

_SECTION_RE = re.compile(r'^\[submodule\s+"([^"]+)"\]$')
_KEY_VALUE_RE = re.compile(r"^([A-Za-z][\w-]*)\s*=\s*(.*)$")
_HTTPS_PREFIX = "https://github.com/"
_SSH_PREFIX = "git@github.com:"


def _strip_git_suffix(value: str) -> str:
    return value.removesuffix("/").removesuffix(".git")


def resolve_submodule_repo(url: str, owner: str) -> tuple[str, str] | None:
    """Resolve a submodule URL to (owner, repo).

    Relative URLs ("../docs.git", "./docs") belong to the same owner as the
    parent repository.

    Examples:
        >>> resolve_submodule_repo("https://github.com/acme/docs.git", "me")
        ('acme', 'docs')
        >>> resolve_submodule_repo("git@github.com:acme/docs.git", "me")
        ('acme', 'docs')
        >>> resolve_submodule_repo("../docs.git", "me")
        ('me', 'docs')
    """
    if url.startswith(_HTTPS_PREFIX):
        remainder = url.removeprefix(_HTTPS_PREFIX)
    elif url.startswith(_SSH_PREFIX):
        remainder = url.removeprefix(_SSH_PREFIX)
    elif url.startswith(("../", "./")):
        repo = _strip_git_suffix(url).rsplit("/", 1)[-1]
        if not repo or repo in (".", ".."):
            return None
        return owner, repo
    else:
        return None

    parts = _strip_git_suffix(remainder).split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def parse_gitmodules(content: str, owner: str) -> list[Submodule]:
    """Parse .gitmodules content into submodule entries.

    Sections missing a path or url, or whose url does not resolve to a
    GitHub repository, are skipped.

    Args:
        content: Text of the .gitmodules file
        owner: Owner of the parent repository (for relative URLs)
    """
    sections: list[tuple[str, dict[str, str]]] = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        section_match = _SECTION_RE.match(line)
        if section_match is not None:
            sections.append((section_match.group(1), {}))
            continue
        value_match = _KEY_VALUE_RE.match(line)
        if value_match is not None and sections:
            sections[-1][1][value_match.group(1).lower()] = value_match.group(2).strip()

    submodules: list[Submodule] = []
    for name, values in sections:
        path = values.get("path")
        url = values.get("url")
        if not path or not url:
            continue
        resolved = resolve_submodule_repo(url, owner)
        if resolved is None:
            logger.debug("skipping unresolvable submodule", name=name, url=url)
            continue
        submodules.append(
            Submodule(name=name, path=path, url=url, owner=resolved[0], repo=resolved[1])
        )
    return submodules


async def list_submodules(github: GitHub, owner: str, repo: str, ref: str | None) -> list[Submodule]:
    """List the submodules of a repository.

    Empty if there is no .gitmodules, or if it is not valid UTF-8 (logged).
    """
    try:
        content = await github.get_file_content(owner, repo, GITMODULES_PATH, ref)
    except UnicodeDecodeError as e:
        logger.warning("unreadable gitmodules", owner=owner, repo=repo, ref=ref, error=str(e))
        return []
    if content is None:
        return []
    return parse_gitmodules(content, owner)
