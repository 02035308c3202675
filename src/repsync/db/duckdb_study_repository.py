"""Study repository for DuckDB-backed storage."""

from __future__ import annotations

from collections.abc import Mapping

import duckdb

from repsync.domain.mutations import UpdateStudyContent
from repsync.domain.study import Study, StudyUpdate
from repsync.utils.now import Now

_STUDY_COLUMNS = """
    study_id,
    remote_id,
    user_id,
    name,
    last_modified_on_remote,
    last_fetched,
    pgn,
    guessed_color,
    preview_fen,
    included,
    hidden,
    removed_on_remote,
    rep_for_white,
    only_variant
"""

_STUDY_PLACEHOLDERS = ", ".join(["?"] * 14)

_STUDY_UPDATE_COLUMNS = """
    study_id,
    fetched,
    last_modified_on_remote,
    num_new_moves,
    num_new_own_moves,
    num_removed_moves,
    num_removed_own_moves,
    pgn
"""


def _fetch_rows(result: duckdb.DuckDBPyConnection) -> list[dict[str, object]]:
    columns = [desc[0] for desc in result.description]
    return [dict(zip(columns, row, strict=True)) for row in result.fetchall()]


def _study_from_row(row: Mapping[str, object]) -> Study:
    return Study(
        study_id=str(row["study_id"]),
        remote_id=str(row["remote_id"]),
        user_id=str(row["user_id"]),
        name=str(row["name"] or ""),
        last_modified_on_remote=Now.to_utc(row["last_modified_on_remote"]),
        last_fetched=Now.to_utc(row["last_fetched"]),
        pgn=str(row["pgn"] or ""),
        guessed_color=row["guessed_color"],
        preview_fen=row["preview_fen"],
        included=bool(row["included"]),
        hidden=bool(row["hidden"]),
        removed_on_remote=bool(row["removed_on_remote"]),
        rep_for_white=row["rep_for_white"],
        only_variant=bool(row["only_variant"]),
    )


def _study_update_from_row(row: Mapping[str, object]) -> StudyUpdate:
    return StudyUpdate(
        study_id=str(row["study_id"]),
        fetched=Now.to_utc(row["fetched"]),
        last_modified_on_remote=Now.to_utc(row["last_modified_on_remote"]),
        num_new_moves=int(row["num_new_moves"] or 0),
        num_new_own_moves=int(row["num_new_own_moves"] or 0),
        num_removed_moves=int(row["num_removed_moves"] or 0),
        num_removed_own_moves=int(row["num_removed_own_moves"] or 0),
        pgn=str(row["pgn"] or ""),
    )


class DuckDbStudyRepository:
    """Encapsulates study and pending update persistence for DuckDB."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def fetch_studies_for_user(self, user_id: str) -> list[Study]:
        result = self._conn.execute(
            f"SELECT {_STUDY_COLUMNS} FROM studies WHERE user_id = ? ORDER BY name, study_id",
            [user_id],
        )
        return [_study_from_row(row) for row in _fetch_rows(result)]

    def fetch_study(self, study_id: str) -> Study | None:
        result = self._conn.execute(
            f"SELECT {_STUDY_COLUMNS} FROM studies WHERE study_id = ?",
            [study_id],
        )
        rows = _fetch_rows(result)
        return _study_from_row(rows[0]) if rows else None

    def fetch_study_updates_for_user(self, user_id: str) -> dict[str, StudyUpdate]:
        result = self._conn.execute(
            f"""
            SELECT {_STUDY_UPDATE_COLUMNS}
            FROM study_updates
            WHERE study_id IN (SELECT study_id FROM studies WHERE user_id = ?)
            """,
            [user_id],
        )
        updates = [_study_update_from_row(row) for row in _fetch_rows(result)]
        return {update.study_id: update for update in updates}

    def fetch_study_update(self, study_id: str) -> StudyUpdate | None:
        result = self._conn.execute(
            f"SELECT {_STUDY_UPDATE_COLUMNS} FROM study_updates WHERE study_id = ?",
            [study_id],
        )
        rows = _fetch_rows(result)
        return _study_update_from_row(rows[0]) if rows else None

    def insert_study(self, study: Study) -> None:
        self._conn.execute(
            f"INSERT INTO studies ({_STUDY_COLUMNS}) VALUES ({_STUDY_PLACEHOLDERS})",
            [
                study.study_id,
                study.remote_id,
                study.user_id,
                study.name,
                Now.to_naive_utc(study.last_modified_on_remote),
                Now.to_naive_utc(study.last_fetched),
                study.pgn,
                study.guessed_color,
                study.preview_fen,
                study.included,
                study.hidden,
                study.removed_on_remote,
                study.rep_for_white,
                study.only_variant,
            ],
        )

    def rename_study(self, study_id: str, name: str) -> None:
        self._conn.execute("UPDATE studies SET name = ? WHERE study_id = ?", [name, study_id])

    def set_removed_on_remote(self, study_id: str, removed: bool) -> None:
        self._conn.execute(
            "UPDATE studies SET removed_on_remote = ? WHERE study_id = ?",
            [removed, study_id],
        )

    def set_hidden(self, study_id: str, hidden: bool) -> None:
        self._conn.execute("UPDATE studies SET hidden = ? WHERE study_id = ?", [hidden, study_id])

    def set_included(
        self,
        study_id: str,
        included: bool,
        rep_for_white: bool | None,
        only_variant: bool,
    ) -> None:
        if included:
            self._conn.execute(
                """
                UPDATE studies
                SET included = TRUE, rep_for_white = ?, only_variant = ?
                WHERE study_id = ?
                """,
                [rep_for_white, only_variant, study_id],
            )
            return
        self._conn.execute(
            "UPDATE studies SET included = FALSE, removed_on_remote = FALSE WHERE study_id = ?",
            [study_id],
        )

    def update_content(self, content: UpdateStudyContent) -> None:
        self._conn.execute(
            """
            UPDATE studies
            SET pgn = ?,
                last_modified_on_remote = ?,
                last_fetched = ?,
                guessed_color = COALESCE(?, guessed_color),
                preview_fen = COALESCE(?, preview_fen)
            WHERE study_id = ?
            """,
            [
                content.pgn,
                Now.to_naive_utc(content.last_modified_on_remote),
                Now.to_naive_utc(content.last_fetched),
                content.guessed_color,
                content.preview_fen,
                content.study_id,
            ],
        )

    def delete_study(self, study_id: str) -> None:
        self._conn.execute("DELETE FROM study_updates WHERE study_id = ?", [study_id])
        self._conn.execute("DELETE FROM studies WHERE study_id = ?", [study_id])

    def save_study_update(self, update: StudyUpdate) -> None:
        """Create or replace the pending update of a study.

        ``study_id`` is the table's primary key, so a concurrent transaction
        staging the same study fails instead of adding a second row.
        """
        values = [
            Now.to_naive_utc(update.fetched),
            Now.to_naive_utc(update.last_modified_on_remote),
            update.num_new_moves,
            update.num_new_own_moves,
            update.num_removed_moves,
            update.num_removed_own_moves,
            update.pgn,
        ]
        if self.fetch_study_update(update.study_id) is not None:
            self._conn.execute(
                """
                UPDATE study_updates
                SET fetched = ?,
                    last_modified_on_remote = ?,
                    num_new_moves = ?,
                    num_new_own_moves = ?,
                    num_removed_moves = ?,
                    num_removed_own_moves = ?,
                    pgn = ?
                WHERE study_id = ?
                """,
                [*values, update.study_id],
            )
            return
        self._conn.execute(
            f"INSERT INTO study_updates ({_STUDY_UPDATE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [update.study_id, *values],
        )

    def delete_study_update(self, study_id: str) -> None:
        self._conn.execute("DELETE FROM study_updates WHERE study_id = ?", [study_id])


def study_repository(conn: duckdb.DuckDBPyConnection) -> DuckDbStudyRepository:
    """Return a DuckDbStudyRepository bound to the provided connection."""
    return DuckDbStudyRepository(conn)
