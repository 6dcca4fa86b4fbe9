"""Loading and normalization of the repository's .pages.yml."""

from dataclasses import dataclass
from typing import Any, Literal

import pydantic
import structlog
import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from pages_cms.errors import ConfigError
from pages_cms.github.abc import GitHub
from pages_cms.types import RepositoryDescriptor

logger = structlog.get_logger(__name__)

CONFIG_PATH = ".pages.yml"

MAIN_REPOSITORY_NAME = "Main Repository"


def _strip_slashes(path: str) -> str:
    return path.strip("/")


class RepositoryEntry(BaseModel):
    """A `repositories:` entry as written in .pages.yml."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    path: str
    owner: str | None = None
    repo: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class ContentEntry(BaseModel):
    """A `content:` entry (collection or single file)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    type: Literal["collection", "file"]
    path: str
    label: str | None = None
    repository: str | None = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        return _strip_slashes(v)


class CmsConfigFile(BaseModel):
    """Top-level schema of .pages.yml. Unknown keys (media, settings) are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    content: tuple[ContentEntry, ...] = ()
    repositories: tuple[RepositoryEntry, ...] | None = None


@dataclass(frozen=True)
class CmsConfig:
    """Normalized CMS configuration of a repository at a commit.

    Attributes:
        owner: Repository owner
        repo: Repository name
        sha: Commit the configuration was read at
        repositories: Content trees, the primary one first
        content: Content entries, each bound to a repository name
    """

    owner: str
    repo: str
    sha: str
    repositories: tuple[RepositoryDescriptor, ...]
    content: tuple[ContentEntry, ...]

    def to_json(self) -> dict[str, object]:
        return {
            "owner": self.owner,
            "repo": self.repo,
            "sha": self.sha,
            "repositories": [r.to_json() for r in self.repositories],
            "content": [entry.model_dump(exclude_none=True) for entry in self.content],
        }


def normalize_repositories(
    raw: tuple[RepositoryEntry, ...] | None, owner: str, repo: str
) -> tuple[RepositoryDescriptor, ...]:
    """Normalize repository descriptors.

    Non-root paths lose leading and trailing slashes. When no entry is
    mounted at "/" (or ""), a "Main Repository" descriptor for owner/repo
    is prepended.

    Examples:
        >>> normalize_repositories(None, "acme", "site")
        (RepositoryDescriptor(name='Main Repository', path='/', owner='acme', repo='site'),)
    """
    descriptors: list[RepositoryDescriptor] = []
    for entry in raw or ():
        path = entry.path if entry.path == "/" else _strip_slashes(entry.path)
        descriptors.append(
            RepositoryDescriptor(name=entry.name, path=path, owner=entry.owner, repo=entry.repo)
        )

    if not any(d.is_primary for d in descriptors):
        descriptors.insert(
            0, RepositoryDescriptor(name=MAIN_REPOSITORY_NAME, path="/", owner=owner, repo=repo)
        )
    return tuple(descriptors)


def _format_pydantic_errors(exc: pydantic.ValidationError) -> str:
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(messages)


def parse_cms_config(text: str, owner: str, repo: str, sha: str) -> CmsConfig:
    """Parse and normalize .pages.yml content.

    An empty document is a valid, empty configuration. Content entries
    without a repository are bound to the first (primary) repository.

    Raises:
        ConfigError: If the YAML is malformed or fails schema validation
    """
    try:
        data: Any = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {CONFIG_PATH}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_PATH} must be a YAML mapping")

    try:
        parsed = CmsConfigFile.model_validate(data)
    except pydantic.ValidationError as e:
        raise ConfigError(f"Invalid {CONFIG_PATH}: {_format_pydantic_errors(e)}") from e

    repositories = normalize_repositories(parsed.repositories, owner, repo)
    default_repository = repositories[0].name
    content = tuple(
        entry if entry.repository else entry.model_copy(update={"repository": default_repository})
        for entry in parsed.content
    )
    return CmsConfig(
        owner=owner, repo=repo, sha=sha, repositories=repositories, content=content
    )


async def load_cms_config(github: GitHub, owner: str, repo: str, sha: str) -> CmsConfig | None:
    """Read .pages.yml at a commit.

    Returns:
        The normalized configuration, None if the file does not exist

    Raises:
        ConfigError: If the file is not valid UTF-8, malformed or fails validation
    """
    try:
        text = await github.get_file_content(owner, repo, CONFIG_PATH, sha)
    except UnicodeDecodeError as e:
        raise ConfigError(f"{CONFIG_PATH} is not valid UTF-8") from e
    if text is None:
        logger.info("no cms config", owner=owner, repo=repo, sha=sha)
        return None
    return parse_cms_config(text, owner, repo, sha)
