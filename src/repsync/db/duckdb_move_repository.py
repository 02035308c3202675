"""Move graph repository for DuckDB-backed storage."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import duckdb

from repsync.domain.moves import MoveKey, MoveRecord, StudyMove
from repsync.utils.record_ids import new_move_id

_MOVE_SELECT = """
SELECT
    m.move_id,
    m.rep_for_white,
    m.from_fen,
    m.to_fen,
    m.own_move,
    m.deleted,
    list(o.study_id) FILTER (WHERE o.study_id IS NOT NULL) AS owners
FROM moves m
LEFT JOIN move_studies o ON o.move_id = m.move_id
"""

_MOVE_GROUP_BY = """
GROUP BY m.move_id, m.rep_for_white, m.from_fen, m.to_fen, m.own_move, m.deleted
ORDER BY m.move_id
"""


def _study_move_from_row(row: tuple) -> StudyMove:
    return StudyMove(
        move_id=str(row[0]),
        rep_for_white=bool(row[1]),
        from_fen=str(row[2]),
        to_fen=str(row[3]),
        own_move=bool(row[4]),
        deleted=bool(row[5]),
        owner_study_ids=frozenset(str(owner) for owner in (row[6] or [])),
    )


@dataclass(frozen=True)
class DuckDbMoveDependencies:
    """Dependencies used by the move repository."""

    new_move_id: Callable[[], str]


class DuckDbMoveRepository:
    """Encapsulates the shared move graph for DuckDB.

    Moves are unique per (user, rep_for_white, from_fen, to_fen); studies own
    moves through rows in ``move_studies``.
    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        *,
        dependencies: DuckDbMoveDependencies,
    ) -> None:
        self._conn = conn
        self._dependencies = dependencies

    def fetch_study_moves(self, study_id: str) -> list[StudyMove]:
        """Return moves owned by a study, each with its full owner set."""
        rows = self._conn.execute(
            _MOVE_SELECT
            + "WHERE m.move_id IN (SELECT move_id FROM move_studies WHERE study_id = ?)"
            + _MOVE_GROUP_BY,
            [study_id],
        ).fetchall()
        return [_study_move_from_row(row) for row in rows]

    def fetch_user_moves(self, user_id: str, include_deleted: bool = False) -> list[StudyMove]:
        sql = _MOVE_SELECT + "WHERE m.user_id = ?"
        if not include_deleted:
            sql += " AND NOT m.deleted"
        rows = self._conn.execute(sql + _MOVE_GROUP_BY, [user_id]).fetchall()
        return [_study_move_from_row(row) for row in rows]

    def fetch_move_id(self, user_id: str, key: MoveKey) -> str | None:
        row = self._conn.execute(
            """
            SELECT move_id FROM moves
            WHERE user_id = ? AND rep_for_white = ? AND from_fen = ? AND to_fen = ?
            """,
            [user_id, key.rep_for_white, key.from_fen, key.to_fen],
        ).fetchone()
        return str(row[0]) if row else None

    def upsert_study_move(self, user_id: str, study_id: str, move: MoveRecord) -> str:
        """Attach ``study_id`` to the move, creating it or clearing its deleted flag."""
        move_id = self.fetch_move_id(user_id, move.key)
        if move_id is None:
            move_id = self._dependencies.new_move_id()
            self._conn.execute(
                "INSERT INTO moves VALUES (?, ?, ?, ?, ?, ?, FALSE)",
                [
                    move_id,
                    user_id,
                    move.rep_for_white,
                    move.from_fen,
                    move.to_fen,
                    move.own_move,
                ],
            )
        else:
            self._conn.execute(
                "UPDATE moves SET deleted = FALSE WHERE move_id = ? AND deleted",
                [move_id],
            )
        self._conn.execute(
            """
            INSERT INTO move_studies
            SELECT ?, ?
            WHERE NOT EXISTS (
                SELECT 1 FROM move_studies WHERE move_id = ? AND study_id = ?
            )
            """,
            [move_id, study_id, move_id, study_id],
        )
        return move_id

    def soft_delete_move(self, move_id: str) -> None:
        self._conn.execute("UPDATE moves SET deleted = TRUE WHERE move_id = ?", [move_id])

    def detach_move_from_study(self, move_id: str, study_id: str) -> None:
        self._conn.execute(
            "DELETE FROM move_studies WHERE move_id = ? AND study_id = ?",
            [move_id, study_id],
        )

    def detach_study_moves(self, study_id: str) -> None:
        self._conn.execute("DELETE FROM move_studies WHERE study_id = ?", [study_id])


def default_move_dependencies() -> DuckDbMoveDependencies:
    """Return default dependency wiring for DuckDB move operations."""
    return DuckDbMoveDependencies(new_move_id=new_move_id)


def move_repository(conn: duckdb.DuckDBPyConnection) -> DuckDbMoveRepository:
    """Return a DuckDbMoveRepository bound to the provided connection."""
    return DuckDbMoveRepository(conn, dependencies=default_move_dependencies())
