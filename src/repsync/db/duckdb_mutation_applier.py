"""Apply staged study and move mutations on a DuckDB connection."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import duckdb

from repsync.db.duckdb_move_repository import DuckDbMoveRepository, move_repository
from repsync.db.duckdb_study_repository import DuckDbStudyRepository, study_repository
from repsync.db.duckdb_user_repository import DuckDbUserRepository, user_repository
from repsync.domain.mutations import (
    DeleteStudy,
    DeleteStudyUpdate,
    DetachMoveFromStudy,
    DetachStudyMoves,
    InsertStudy,
    RecordUpdateCheck,
    RenameStudy,
    SaveStudyUpdate,
    SetRemovedOnRemote,
    SetStudyHidden,
    SetStudyIncluded,
    SoftDeleteMove,
    StudyMutation,
    UpdateStudyContent,
    UpsertStudyMove,
)


class DuckDbMutationApplier:
    """Dispatch mutations to the study, move and user repositories.

    The applier never begins or commits a transaction; callers run it inside
    a unit of work so a list of mutations lands together or not at all.
    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        *,
        studies: DuckDbStudyRepository | None = None,
        moves: DuckDbMoveRepository | None = None,
        users: DuckDbUserRepository | None = None,
    ) -> None:
        self._studies = studies or study_repository(conn)
        self._moves = moves or move_repository(conn)
        self._users = users or user_repository(conn)
        self._handlers: dict[type, Callable[[Any], object]] = {
            InsertStudy: lambda m: self._studies.insert_study(m.study),
            RenameStudy: lambda m: self._studies.rename_study(m.study_id, m.name),
            SetRemovedOnRemote: lambda m: self._studies.set_removed_on_remote(
                m.study_id, m.removed
            ),
            SetStudyHidden: lambda m: self._studies.set_hidden(m.study_id, m.hidden),
            SetStudyIncluded: lambda m: self._studies.set_included(
                m.study_id, m.included, m.rep_for_white, m.only_variant
            ),
            UpdateStudyContent: self._studies.update_content,
            DeleteStudy: lambda m: self._studies.delete_study(m.study_id),
            SaveStudyUpdate: lambda m: self._studies.save_study_update(m.update),
            DeleteStudyUpdate: lambda m: self._studies.delete_study_update(m.study_id),
            UpsertStudyMove: lambda m: self._moves.upsert_study_move(
                m.user_id, m.study_id, m.move
            ),
            SoftDeleteMove: lambda m: self._moves.soft_delete_move(m.move_id),
            DetachMoveFromStudy: lambda m: self._moves.detach_move_from_study(
                m.move_id, m.study_id
            ),
            DetachStudyMoves: lambda m: self._moves.detach_study_moves(m.study_id),
            RecordUpdateCheck: lambda m: self._users.record_update_check(
                m.user_id, m.checked_at
            ),
        }

    def apply(self, mutations: Iterable[StudyMutation]) -> None:
        for mutation in mutations:
            handler = self._handlers.get(type(mutation))
            if handler is None:
                raise TypeError(f"Unsupported mutation: {type(mutation).__name__}")
            handler(mutation)


def mutation_applier(conn: duckdb.DuckDBPyConnection) -> DuckDbMutationApplier:
    """Return a DuckDbMutationApplier bound to the provided connection."""
    return DuckDbMutationApplier(conn)
