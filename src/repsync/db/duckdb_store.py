"""DuckDB connection and schema helpers."""

from __future__ import annotations

from pathlib import Path

import duckdb

from repsync.utils.logger import get_logger

logger = get_logger(__name__)


USERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    lichess_username TEXT,
    lichess_access_token TEXT,
    last_repertoire_update_check TIMESTAMP
);
"""

STUDIES_SCHEMA = """
CREATE TABLE IF NOT EXISTS studies (
    study_id TEXT PRIMARY KEY,
    remote_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    name TEXT,
    last_modified_on_remote TIMESTAMP,
    last_fetched TIMESTAMP,
    pgn TEXT,
    guessed_color TEXT,
    preview_fen TEXT,
    included BOOLEAN DEFAULT FALSE,
    hidden BOOLEAN DEFAULT FALSE,
    removed_on_remote BOOLEAN DEFAULT FALSE,
    rep_for_white BOOLEAN,
    only_variant BOOLEAN DEFAULT FALSE
);
"""

STUDY_UPDATES_SCHEMA = """
CREATE TABLE IF NOT EXISTS study_updates (
    study_id TEXT PRIMARY KEY,
    fetched TIMESTAMP,
    last_modified_on_remote TIMESTAMP,
    num_new_moves INTEGER,
    num_new_own_moves INTEGER,
    num_removed_moves INTEGER,
    num_removed_own_moves INTEGER,
    pgn TEXT
);
"""

MOVES_SCHEMA = """
CREATE TABLE IF NOT EXISTS moves (
    move_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    rep_for_white BOOLEAN NOT NULL,
    from_fen TEXT NOT NULL,
    to_fen TEXT NOT NULL,
    own_move BOOLEAN NOT NULL,
    deleted BOOLEAN DEFAULT FALSE,
    UNIQUE (user_id, rep_for_white, from_fen, to_fen)
);
"""

MOVE_STUDIES_SCHEMA = """
CREATE TABLE IF NOT EXISTS move_studies (
    move_id TEXT NOT NULL,
    study_id TEXT NOT NULL,
    PRIMARY KEY (move_id, study_id)
);
"""

SCHEMA_VERSION_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER,
    updated_at TIMESTAMP
);
"""

SCHEMA_VERSION = 1

_SCHEMAS = (
    USERS_SCHEMA,
    STUDIES_SCHEMA,
    STUDY_UPDATES_SCHEMA,
    MOVES_SCHEMA,
    MOVE_STUDIES_SCHEMA,
)


def get_connection(db_path: Path | str) -> duckdb.DuckDBPyConnection:
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Opening DuckDB at %s", path)
    return duckdb.connect(str(path))


def init_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create missing tables and record the schema version."""
    conn.execute(SCHEMA_VERSION_SCHEMA)
    for schema in _SCHEMAS:
        conn.execute(schema)
    if get_schema_version(conn) < SCHEMA_VERSION:
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version VALUES (?, CURRENT_TIMESTAMP)",
            [SCHEMA_VERSION],
        )


def get_schema_version(conn: duckdb.DuckDBPyConnection) -> int:
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    if not row or row[0] is None:
        return 0
    return int(row[0])
