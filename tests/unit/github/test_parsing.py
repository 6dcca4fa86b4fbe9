"""Tests for GitHub REST response parsing."""

import base64
from datetime import UTC, datetime

import pytest

from pages_cms.github.parsing import (
    decode_content,
    extract_error_message,
    parse_branch,
    parse_commit,
    parse_pull_request,
    parse_repo,
    parse_timestamp,
)


def _pull_data(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "number": 12,
        "html_url": "https://github.com/acme/site/pull/12",
        "state": "closed",
        "head": {"ref": "content-changes/alice/1", "repo": {"owner": {"login": "alice"}}},
        "base": {"ref": "main"},
        "created_at": "2024-01-15T10:30:00Z",
        "merged_at": "2024-01-16T08:00:00Z",
    }
    data.update(overrides)
    return data


def test_parse_timestamp_handles_zulu_suffix() -> None:
    assert parse_timestamp("2024-01-15T10:30:00Z") == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
    assert parse_timestamp(None) is None


def test_parse_repo() -> None:
    repo = parse_repo(
        {"owner": {"login": "acme"}, "name": "site", "default_branch": "main", "private": True}
    )

    assert (repo.owner, repo.name, repo.default_branch, repo.is_private) == (
        "acme",
        "site",
        "main",
        True,
    )


def test_parse_branch() -> None:
    branch = parse_branch({"name": "main", "commit": {"sha": "abc123"}})

    assert (branch.name, branch.head_sha) == ("main", "abc123")


class TestParsePullRequest:
    def test_merged_pull_request(self) -> None:
        pr = parse_pull_request(_pull_data())

        assert pr.number == 12
        assert pr.head_ref == "content-changes/alice/1"
        assert pr.head_owner == "alice"
        assert pr.base_ref == "main"
        assert pr.merged_at == datetime(2024, 1, 16, 8, 0, tzinfo=UTC)

    def test_deleted_fork_has_no_head_owner(self) -> None:
        pr = parse_pull_request(_pull_data(head={"ref": "x", "repo": None}, merged_at=None))

        assert pr.head_owner is None
        assert pr.merged_at is None

    def test_missing_created_at_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="no created_at"):
            parse_pull_request(_pull_data(created_at=None))


class TestParseCommit:
    def test_full_commit(self) -> None:
        commit = parse_commit(
            {
                "sha": "abc",
                "commit": {
                    "message": "Update",
                    "author": {"name": "Alice", "email": "a@example.com", "date": "2024-01-15T10:30:00Z"},
                },
            },
            fallback_date="2030-01-01T00:00:00+00:00",
        )

        assert (commit.author_name, commit.author_email, commit.date) == (
            "Alice",
            "a@example.com",
            "2024-01-15T10:30:00Z",
        )

    def test_missing_author_uses_fallbacks(self) -> None:
        commit = parse_commit(
            {"sha": "abc", "commit": {"message": "Update", "author": None}},
            fallback_date="2030-01-01T00:00:00+00:00",
        )

        assert commit.author_name == "Unknown"
        assert commit.author_email == ""
        assert commit.date == "2030-01-01T00:00:00+00:00"


class TestDecodeContent:
    def test_decodes_file(self) -> None:
        encoded = base64.b64encode("content: []\n".encode()).decode()

        assert decode_content({"type": "file", "content": encoded}) == "content: []\n"

    def test_directory_listing_is_none(self) -> None:
        assert decode_content([{"type": "file"}]) is None
        assert decode_content({"type": "dir"}) is None

    def test_non_utf8_file_raises(self) -> None:
        encoded = base64.b64encode(b"\xff\xfe").decode()

        with pytest.raises(UnicodeDecodeError):
            decode_content({"type": "file", "content": encoded})


class TestExtractErrorMessage:
    def test_appends_validation_details(self) -> None:
        body = {
            "message": "Validation Failed",
            "errors": [{"message": "No commits between main and x"}, "another"],
        }

        assert (
            extract_error_message(body, "fallback")
            == "Validation Failed: No commits between main and x; another"
        )

    def test_plain_message(self) -> None:
        assert extract_error_message({"message": "Reference already exists"}, "x") == (
            "Reference already exists"
        )

    def test_fallback_for_non_json_body(self) -> None:
        assert extract_error_message(None, "GitHub returned 502") == "GitHub returned 502"
