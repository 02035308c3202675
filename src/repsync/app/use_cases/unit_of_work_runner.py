"""Run reads and atomic mutation batches inside DuckDB units of work."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import duckdb

from repsync.db.duckdb_mutation_applier import mutation_applier
from repsync.db.duckdb_unit_of_work import DuckDbUnitOfWork
from repsync.domain.mutations import StudyMutation
from repsync.errors import StorageTransactionError
from repsync.ports.repositories import MutationApplier
from repsync.ports.unit_of_work import UnitOfWork
from repsync.utils.logger import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")
Planner = Callable[[Any], tuple[ResultT, list[StudyMutation]]]


def _safe_rollback(uow: UnitOfWork) -> None:
    try:
        uow.rollback()
    except duckdb.Error:
        logger.warning("Rollback after failed transaction raised", exc_info=True)


@dataclass
class UnitOfWorkRunner:
    db_path: Path | str
    unit_of_work_factory: Callable[[Path | str], UnitOfWork] = DuckDbUnitOfWork
    applier_factory: Callable[[Any], MutationApplier] = mutation_applier

    def read(self, handler: Callable[[Any], ResultT]) -> ResultT:
        """Run ``handler`` against a fresh connection and return its result."""
        result, _ = self.transact(lambda conn: (handler(conn), []))
        return result

    def run_atomically(self, mutations: Iterable[StudyMutation]) -> None:
        """Apply every mutation or none of them."""
        batch = list(mutations)
        if not batch:
            return
        self.transact(lambda _conn: (None, batch))

    def transact(self, planner: Planner[ResultT]) -> tuple[ResultT, list[StudyMutation]]:
        """Plan mutations from the current state and apply them in one transaction.

        Errors raised by ``planner`` roll the transaction back and propagate
        unchanged. Storage errors are raised as StorageTransactionError.
        """
        uow = self.unit_of_work_factory(self.db_path)
        try:
            conn = uow.begin()
            result, mutations = planner(conn)
            if mutations:
                self.applier_factory(conn).apply(mutations)
            uow.commit()
        except duckdb.Error as exc:
            _safe_rollback(uow)
            raise StorageTransactionError(f"Transaction rolled back: {exc}") from exc
        except Exception:
            _safe_rollback(uow)
            raise
        finally:
            uow.close()
        return result, mutations
