"""DuckDB unit-of-work implementation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import duckdb

from repsync.db.duckdb_store import get_connection, init_schema
from repsync.ports.unit_of_work import UnitOfWork
from repsync.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class DuckDbUnitOfWork(UnitOfWork[duckdb.DuckDBPyConnection]):
    """A single DuckDB transaction over the repsync store.

    The schema is created when the connection is opened, outside the
    transaction, so a rolled back batch never takes table creation with it.
    """

    db_path: Path | str
    connection_factory: Callable[[Path | str], duckdb.DuckDBPyConnection] = get_connection
    schema_initializer: Callable[[duckdb.DuckDBPyConnection], None] | None = init_schema
    _conn: duckdb.DuckDBPyConnection | None = None
    _active: bool = False

    def begin(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = self.connection_factory(self.db_path)
            if self.schema_initializer is not None:
                self.schema_initializer(self._conn)
        if not self._active:
            self._conn.execute("BEGIN TRANSACTION")
            self._active = True
        return self._conn

    def commit(self) -> None:
        if self._conn is None or not self._active:
            return
        try:
            self._conn.execute("COMMIT")
        finally:
            # A failed COMMIT ends the transaction in DuckDB.
            self._active = False

    def rollback(self) -> None:
        if self._conn is None or not self._active:
            return
        logger.debug("Rolling back transaction on %s", self.db_path)
        try:
            self._conn.execute("ROLLBACK")
        finally:
            self._active = False

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            if self._active:
                self.rollback()
        finally:
            self._conn.close()
            self._conn = None
