"""User account repository for DuckDB-backed storage."""

from __future__ import annotations

from datetime import datetime

import duckdb

from repsync.domain.study import UserAccount
from repsync.utils.now import Now


class DuckDbUserRepository:
    """Encapsulates user account persistence and reads for DuckDB."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def fetch_user(self, user_id: str) -> UserAccount | None:
        row = self._conn.execute(
            """
            SELECT user_id, lichess_username, lichess_access_token, last_repertoire_update_check
            FROM users
            WHERE user_id = ?
            """,
            [user_id],
        ).fetchone()
        if row is None:
            return None
        return UserAccount(
            user_id=str(row[0]),
            lichess_username=str(row[1] or ""),
            lichess_access_token=row[2],
            last_repertoire_update_check=Now.to_utc(row[3]),
        )

    def insert_user(self, user: UserAccount) -> None:
        self._conn.execute(
            "INSERT INTO users VALUES (?, ?, ?, ?)",
            [
                user.user_id,
                user.lichess_username,
                user.lichess_access_token,
                Now.to_naive_utc(user.last_repertoire_update_check),
            ],
        )

    def record_update_check(self, user_id: str, checked_at: datetime) -> None:
        self._conn.execute(
            "UPDATE users SET last_repertoire_update_check = ? WHERE user_id = ?",
            [Now.to_naive_utc(checked_at), user_id],
        )


def user_repository(conn: duckdb.DuckDBPyConnection) -> DuckDbUserRepository:
    """Return a DuckDbUserRepository bound to the provided connection."""
    return DuckDbUserRepository(conn)
