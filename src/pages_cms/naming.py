"""Naming utilities for working branches.

Pure functions (no I/O) for validating git branch names and deriving the
name of a user's working branch.
"""

import re
from datetime import datetime

WORKING_BRANCH_PREFIX = "content-changes"

MAX_BRANCH_NAME_LENGTH = 255

_UNSAFE_SEGMENT_RE = re.compile(r"[^a-z0-9]+")

# Rejects names starting with "/", containing "/.", "//", "..", "@{" or a
# backslash, containing control/space/~^:?*[] characters, or ending with "." or "/".
_VALID_BRANCH_RE = re.compile(
    r"^(?!/|.*(?:/\.|//|\.\.|@\{|\\))[^\x00-\x20\x7f~^:?*\[\]]+(?<![./])$"
)


def is_valid_branch_name(name: str) -> bool:
    """Check whether a name is acceptable as a git branch name.

    Examples:
        >>> is_valid_branch_name("content-changes/alice/update-1700000000000")
        True
        >>> is_valid_branch_name("../escape")
        False
        >>> is_valid_branch_name("trailing/")
        False
    """
    if not name or len(name) > MAX_BRANCH_NAME_LENGTH:
        return False
    return _VALID_BRANCH_RE.match(name) is not None


def sanitize_branch_segment(value: str) -> str:
    """Lower-case a value and collapse non-alphanumerics to single hyphens.

    Examples:
        >>> sanitize_branch_segment("  Update Blog Post! ")
        'update-blog-post'
        >>> sanitize_branch_segment("Alice_Smith")
        'alice-smith'
        >>> sanitize_branch_segment("***")
        ''
    """
    return _UNSAFE_SEGMENT_RE.sub("-", value.strip().lower()).strip("-")


def to_epoch_millis(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


def build_working_branch_name(username: str, desired_name: str | None, now: datetime) -> str:
    """Derive a working branch name for a user.

    Format: content-changes/<user>/<slug>-<millis>, or
    content-changes/<user>/<millis> when the desired name has no usable
    characters. An empty username segment becomes "unknown".

    Args:
        username: GitHub login of the user
        desired_name: Free-form name typed by the user, may be None
        now: Current time, used for the uniqueness suffix

    Returns:
        Branch name (not yet validated)
    """
    user_segment = sanitize_branch_segment(username) or "unknown"
    suffix = str(to_epoch_millis(now))
    slug = sanitize_branch_segment(desired_name) if desired_name is not None else ""
    if slug:
        return f"{WORKING_BRANCH_PREFIX}/{user_segment}/{slug}-{suffix}"
    return f"{WORKING_BRANCH_PREFIX}/{user_segment}/{suffix}"

