"""SQLite implementations of the auxiliary stores."""

import secrets
import sqlite3
from datetime import datetime
from pathlib import Path

from pages_cms.store.abc import CollaboratorStore, SessionStore, SyncBaselineStore
from pages_cms.types import Collaborator, InvitationStatus, SessionUser, SyncBaseline

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sync_baseline (
    owner TEXT NOT NULL,
    repo TEXT NOT NULL,
    branch TEXT NOT NULL,
    sha TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (owner, repo, branch)
);

CREATE TABLE IF NOT EXISTS session (
    session_id TEXT PRIMARY KEY,
    github_username TEXT NOT NULL,
    access_token TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS collaborator (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    repo TEXT NOT NULL,
    github_username TEXT NOT NULL,
    invitation_id INTEGER,
    invitation_status TEXT NOT NULL,
    invited_by TEXT NOT NULL,
    UNIQUE (owner, repo, github_username)
);
"""

_COLLABORATOR_COLUMNS = (
    "id, owner, repo, github_username, invitation_id, invitation_status, invited_by"
)


class SQLiteDatabase:
    """A SQLite database file holding every pages_cms table.

    Attributes:
        db_path: Path to the SQLite database file
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize with database path and create schema if needed.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        if not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True)

        with sqlite3.connect(self.db_path) as conn:
            conn.executescript(_SCHEMA)
            conn.commit()

    def connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)


class SQLiteSyncBaselineStore(SyncBaselineStore):
    """SQLite implementation of SyncBaselineStore."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._database = database

    def get_baseline(self, owner: str, repo: str, branch: str) -> SyncBaseline | None:
        with self._database.connect() as conn:
            row = conn.execute(
                """
                SELECT owner, repo, branch, sha, updated_at
                FROM sync_baseline
                WHERE owner = ? AND repo = ? AND branch = ?
                """,
                (owner, repo, branch),
            ).fetchone()
        if row is None:
            return None
        return SyncBaseline(
            owner=row[0],
            repo=row[1],
            branch=row[2],
            sha=row[3],
            updated_at=datetime.fromisoformat(row[4]),
        )

    def set_baseline(self, baseline: SyncBaseline) -> None:
        with self._database.connect() as conn:
            conn.execute(
                """
                INSERT INTO sync_baseline (owner, repo, branch, sha, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(owner, repo, branch) DO UPDATE SET
                    sha = excluded.sha,
                    updated_at = excluded.updated_at
                """,
                (
                    baseline.owner,
                    baseline.repo,
                    baseline.branch,
                    baseline.sha,
                    baseline.updated_at.isoformat(),
                ),
            )
            conn.commit()


class SQLiteSessionStore(SessionStore):
    """SQLite implementation of SessionStore."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._database = database

    def get_session(self, session_id: str) -> SessionUser | None:
        with self._database.connect() as conn:
            row = conn.execute(
                "SELECT session_id, github_username, access_token FROM session WHERE session_id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            return None
        return SessionUser(session_id=row[0], github_username=row[1], access_token=row[2])

    def create_session(self, github_username: str, access_token: str) -> SessionUser:
        session = SessionUser(
            session_id=secrets.token_urlsafe(32),
            github_username=github_username,
            access_token=access_token,
        )
        with self._database.connect() as conn:
            conn.execute(
                "INSERT INTO session (session_id, github_username, access_token) VALUES (?, ?, ?)",
                (session.session_id, session.github_username, session.access_token),
            )
            conn.commit()
        return session

    def delete_session(self, session_id: str) -> None:
        with self._database.connect() as conn:
            conn.execute("DELETE FROM session WHERE session_id = ?", (session_id,))
            conn.commit()


def _row_to_collaborator(row: tuple) -> Collaborator:
    return Collaborator(
        id=row[0],
        owner=row[1],
        repo=row[2],
        github_username=row[3],
        invitation_id=row[4],
        invitation_status=row[5],
        invited_by=row[6],
    )


class SQLiteCollaboratorStore(CollaboratorStore):
    """SQLite implementation of CollaboratorStore."""

    def __init__(self, database: SQLiteDatabase) -> None:
        self._database = database

    def list_collaborators(self, owner: str, repo: str) -> list[Collaborator]:
        with self._database.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_COLLABORATOR_COLUMNS} FROM collaborator
                WHERE owner = ? AND repo = ?
                ORDER BY id
                """,
                (owner, repo),
            ).fetchall()
        return [_row_to_collaborator(row) for row in rows]

    def get_collaborator(self, collaborator_id: int) -> Collaborator | None:
        with self._database.connect() as conn:
            row = conn.execute(
                f"SELECT {_COLLABORATOR_COLUMNS} FROM collaborator WHERE id = ?",
                (collaborator_id,),
            ).fetchone()
        if row is None:
            return None
        return _row_to_collaborator(row)

    def find_collaborator(self, owner: str, repo: str, github_username: str) -> Collaborator | None:
        with self._database.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_COLLABORATOR_COLUMNS} FROM collaborator
                WHERE owner = ? AND repo = ? AND github_username = ?
                """,
                (owner, repo, github_username),
            ).fetchone()
        if row is None:
            return None
        return _row_to_collaborator(row)

    def add_collaborator(
        self,
        owner: str,
        repo: str,
        github_username: str,
        invitation_id: int | None,
        invitation_status: InvitationStatus,
        invited_by: str,
    ) -> Collaborator:
        with self._database.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO collaborator (
                    owner, repo, github_username, invitation_id, invitation_status, invited_by
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (owner, repo, github_username, invitation_id, invitation_status, invited_by),
            )
            conn.commit()
            collaborator_id = cursor.lastrowid
        if collaborator_id is None:
            msg = f"Insert of collaborator {github_username} returned no row ID"
            raise RuntimeError(msg)
        return Collaborator(
            id=collaborator_id,
            owner=owner,
            repo=repo,
            github_username=github_username,
            invitation_id=invitation_id,
            invitation_status=invitation_status,
            invited_by=invited_by,
        )

    def update_invitation_status(self, collaborator_id: int, status: InvitationStatus) -> None:
        with self._database.connect() as conn:
            conn.execute(
                "UPDATE collaborator SET invitation_status = ? WHERE id = ?",
                (status, collaborator_id),
            )
            conn.commit()

    def delete_collaborator(self, collaborator_id: int) -> bool:
        with self._database.connect() as conn:
            cursor = conn.execute("DELETE FROM collaborator WHERE id = ?", (collaborator_id,))
            conn.commit()
            return cursor.rowcount > 0
