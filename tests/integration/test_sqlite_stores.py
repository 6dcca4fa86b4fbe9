"""Integration tests for the SQLite stores."""

from datetime import datetime
from pathlib import Path

from pages_cms.store.sqlite import (
    SQLiteCollaboratorStore,
    SQLiteDatabase,
    SQLiteSessionStore,
    SQLiteSyncBaselineStore,
)
from pages_cms.types import SyncBaseline


class TestSQLiteDatabase:
    def test_creates_database_file(self, tmp_path: Path) -> None:
        db_path = tmp_path / "pages_cms.db"

        SQLiteDatabase(db_path)

        assert db_path.exists()

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """SQLiteDatabase creates parent directories if needed."""
        db_path = tmp_path / "subdir" / "nested" / "pages_cms.db"

        SQLiteDatabase(db_path)

        assert db_path.exists()

    def test_reopening_keeps_data(self, tmp_path: Path) -> None:
        db_path = tmp_path / "pages_cms.db"
        SQLiteSessionStore(SQLiteDatabase(db_path)).create_session("alice", "token")

        reopened = SQLiteDatabase(db_path)

        with reopened.connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM session").fetchone()[0]
        assert count == 1


class TestSQLiteSyncBaselineStore:
    """Integration tests for SQLiteSyncBaselineStore with real SQLite."""

    def test_get_baseline_returns_none_when_not_found(self, tmp_path: Path) -> None:
        store = SQLiteSyncBaselineStore(SQLiteDatabase(tmp_path / "pages_cms.db"))

        assert store.get_baseline("acme", "site", "main") is None

    def test_set_and_get_baseline(self, tmp_path: Path) -> None:
        store = SQLiteSyncBaselineStore(SQLiteDatabase(tmp_path / "pages_cms.db"))
        baseline = SyncBaseline(
            owner="acme",
            repo="site",
            branch="content-changes/alice/1700000000000",
            sha="abc123",
            updated_at=datetime(2024, 1, 15, 10, 30, 0),
        )

        store.set_baseline(baseline)

        assert store.get_baseline("acme", "site", "content-changes/alice/1700000000000") == baseline

    def test_set_baseline_replaces_existing(self, tmp_path: Path) -> None:
        """A second write for the same branch replaces SHA and timestamp."""
        store = SQLiteSyncBaselineStore(SQLiteDatabase(tmp_path / "pages_cms.db"))
        first = SyncBaseline("acme", "site", "main", "abc123", datetime(2024, 1, 15, 10, 30))
        second = SyncBaseline("acme", "site", "main", "def456", datetime(2024, 1, 16, 9, 0))

        store.set_baseline(first)
        store.set_baseline(second)

        assert store.get_baseline("acme", "site", "main") == second

    def test_baselines_are_keyed_by_branch(self, tmp_path: Path) -> None:
        store = SQLiteSyncBaselineStore(SQLiteDatabase(tmp_path / "pages_cms.db"))
        now = datetime(2024, 1, 15, 10, 30)
        store.set_baseline(SyncBaseline("acme", "site", "main", "abc123", now))
        store.set_baseline(SyncBaseline("acme", "site", "draft", "def456", now))

        main = store.get_baseline("acme", "site", "main")
        draft = store.get_baseline("acme", "site", "draft")

        assert main is not None and main.sha == "abc123"
        assert draft is not None and draft.sha == "def456"
        assert store.get_baseline("acme", "docs", "main") is None


class TestSQLiteSessionStore:
    def test_create_and_get_session(self, tmp_path: Path) -> None:
        store = SQLiteSessionStore(SQLiteDatabase(tmp_path / "pages_cms.db"))

        session = store.create_session("alice", "gho_token")

        assert store.get_session(session.session_id) == session
        assert session.github_username == "alice"
        assert session.access_token == "gho_token"

    def test_session_ids_are_unique(self, tmp_path: Path) -> None:
        store = SQLiteSessionStore(SQLiteDatabase(tmp_path / "pages_cms.db"))

        first = store.create_session("alice", "token-a")
        second = store.create_session("alice", "token-b")

        assert first.session_id != second.session_id

    def test_get_unknown_session_returns_none(self, tmp_path: Path) -> None:
        store = SQLiteSessionStore(SQLiteDatabase(tmp_path / "pages_cms.db"))

        assert store.get_session("missing") is None

    def test_delete_session(self, tmp_path: Path) -> None:
        store = SQLiteSessionStore(SQLiteDatabase(tmp_path / "pages_cms.db"))
        session = store.create_session("alice", "gho_token")

        store.delete_session(session.session_id)
        store.delete_session("missing")

        assert store.get_session(session.session_id) is None


class TestSQLiteCollaboratorStore:
    def test_add_and_list_collaborators(self, tmp_path: Path) -> None:
        store = SQLiteCollaboratorStore(SQLiteDatabase(tmp_path / "pages_cms.db"))

        bob = store.add_collaborator("acme", "site", "bob", 1001, "pending", "alice")
        carol = store.add_collaborator("acme", "site", "carol", None, "accepted", "alice")
        store.add_collaborator("acme", "docs", "dave", 1002, "pending", "alice")

        assert store.list_collaborators("acme", "site") == [bob, carol]
        assert bob.id < carol.id

    def test_get_and_find_collaborator(self, tmp_path: Path) -> None:
        store = SQLiteCollaboratorStore(SQLiteDatabase(tmp_path / "pages_cms.db"))
        bob = store.add_collaborator("acme", "site", "bob", 1001, "pending", "alice")

        assert store.get_collaborator(bob.id) == bob
        assert store.find_collaborator("acme", "site", "bob") == bob
        assert store.find_collaborator("acme", "docs", "bob") is None
        assert store.get_collaborator(bob.id + 100) is None

    def test_update_invitation_status(self, tmp_path: Path) -> None:
        store = SQLiteCollaboratorStore(SQLiteDatabase(tmp_path / "pages_cms.db"))
        bob = store.add_collaborator("acme", "site", "bob", 1001, "pending", "alice")

        store.update_invitation_status(bob.id, "accepted")

        updated = store.get_collaborator(bob.id)
        assert updated is not None
        assert updated.invitation_status == "accepted"
        assert updated.invitation_id == 1001

    def test_delete_collaborator(self, tmp_path: Path) -> None:
        store = SQLiteCollaboratorStore(SQLiteDatabase(tmp_path / "pages_cms.db"))
        bob = store.add_collaborator("acme", "site", "bob", 1001, "pending", "alice")

        assert store.delete_collaborator(bob.id) is True
        assert store.delete_collaborator(bob.id) is False
        assert store.list_collaborators("acme", "site") == []

    def test_stores_share_one_database(self, tmp_path: Path) -> None:
        database = SQLiteDatabase(tmp_path / "pages_cms.db")
        SQLiteCollaboratorStore(database).add_collaborator(
            "acme", "site", "bob", 1001, "pending", "alice"
        )

        other = SQLiteCollaboratorStore(database)

        assert [c.github_username for c in other.list_collaborators("acme", "site")] == ["bob"]
