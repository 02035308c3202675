"""Move studies into and out of the user's repertoire."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from repsync.app.use_cases.study_access import require_study
from repsync.app.use_cases.unit_of_work_runner import UnitOfWorkRunner
from repsync.db.duckdb_move_repository import move_repository
from repsync.db.duckdb_study_repository import study_repository
from repsync.domain.move_diff import MoveDiff, compare_moves_lists
from repsync.domain.moves import StudyMove, unique_moves
from repsync.domain.mutations import (
    DeleteStudy,
    DeleteStudyUpdate,
    SetStudyHidden,
    SetStudyIncluded,
    StudyMutation,
    UpdateStudyContent,
    UpsertStudyMove,
)
from repsync.domain.orphans import find_orphan_moves, plan_move_detachment
from repsync.errors import StudyStateError
from repsync.ports.move_parser import PgnMoveParser
from repsync.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class RepertoireUseCase:
    runner: UnitOfWorkRunner
    move_parser: PgnMoveParser
    study_repository_factory: Callable[[Any], Any] = study_repository
    move_repository_factory: Callable[[Any], Any] = move_repository
    only_variant: bool = True

    def include_study(
        self,
        user_id: str,
        study_id: str,
        rep_for_white: bool,
        only_variant: bool | None = None,
    ) -> int:
        """Add the study's moves to the repertoire and return how many were attached.

        Existing moves with the same key are shared with the study and revived
        if they were soft-deleted.
        """
        variant_only = self.only_variant if only_variant is None else only_variant

        def plan(conn: Any) -> tuple[int, list[StudyMutation]]:
            study = require_study(self.study_repository_factory(conn), study_id, user_id)
            if study.hidden:
                raise StudyStateError(
                    "Adding study failed: can't include a hidden study, unhide it first"
                )
            if study.included:
                raise StudyStateError("Adding study failed: study is already included")
            moves = unique_moves(
                self.move_parser.pgn_to_moves(study.pgn, rep_for_white, variant_only)
            )
            mutations: list[StudyMutation] = [
                UpsertStudyMove(user_id, study_id, move) for move in moves
            ]
            mutations.append(SetStudyIncluded(study_id, True, rep_for_white, variant_only))
            return len(moves), mutations

        num_moves, _ = self.runner.transact(plan)
        logger.info("Included study #%s with %s moves", study_id, num_moves)
        return num_moves

    def uninclude_study(self, user_id: str, study_id: str) -> int:
        """Remove the study from the repertoire and return the number of moves soft-deleted."""

        def plan(conn: Any) -> tuple[int, list[StudyMutation]]:
            require_study(self.study_repository_factory(conn), study_id, user_id)
            moves = self.move_repository_factory(conn).fetch_study_moves(study_id)
            mutations = plan_move_detachment(moves, study_id, detach_all=True)
            mutations.append(SetStudyIncluded(study_id, False))
            mutations.append(DeleteStudyUpdate(study_id))
            return len(find_orphan_moves(moves, study_id)), mutations

        num_deleted_moves, _ = self.runner.transact(plan)
        logger.info("Unincluded study #%s, soft-deleted %s moves", study_id, num_deleted_moves)
        return num_deleted_moves

    def delete_study(self, user_id: str, study_id: str) -> None:
        """Delete a study completely, unincluding it first when needed."""
        study = self.runner.read(
            lambda conn: require_study(self.study_repository_factory(conn), study_id, user_id)
        )
        if study.included:
            self.uninclude_study(user_id, study_id)
        self.runner.run_atomically([DeleteStudy(study_id)])
        logger.info("Deleted study #%s", study_id)

    def set_study_hidden(self, user_id: str, study_id: str, hidden: bool) -> None:
        def plan(conn: Any) -> tuple[None, list[StudyMutation]]:
            study = require_study(self.study_repository_factory(conn), study_id, user_id)
            if hidden and study.included:
                raise StudyStateError(
                    "Studies in your repertoire cannot be hidden, remove them first"
                )
            return None, [SetStudyHidden(study_id, hidden)]

        self.runner.transact(plan)

    def list_repertoire_moves(
        self, user_id: str, rep_for_white: bool | None = None
    ) -> list[StudyMove]:
        """Return the user's live move nodes, optionally for one side only."""
        moves = self.runner.read(
            lambda conn: self.move_repository_factory(conn).fetch_user_moves(user_id)
        )
        if rep_for_white is None:
            return moves
        return [move for move in moves if move.rep_for_white == rep_for_white]

    def apply_study_update(self, user_id: str, study_id: str) -> MoveDiff:
        """Apply the pending update of an included study to the move graph."""

        def plan(conn: Any) -> tuple[MoveDiff, list[StudyMutation]]:
            studies = self.study_repository_factory(conn)
            study = require_study(studies, study_id, user_id)
            if not study.included:
                raise StudyStateError("Only studies in your repertoire have updates to apply")
            update = studies.fetch_study_update(study_id)
            if update is None:
                raise StudyStateError(f"Study #{study_id} has no pending update")
            rep_for_white = bool(study.rep_for_white)
            existing = self.move_repository_factory(conn).fetch_study_moves(study_id)
            updated = self.move_parser.pgn_to_moves(update.pgn, rep_for_white, study.only_variant)
            diff = compare_moves_lists(existing, updated)
            mutations: list[StudyMutation] = [
                UpsertStudyMove(user_id, study_id, move) for move in diff.new_moves
            ]
            mutations.extend(plan_move_detachment(diff.removed_moves, study_id))
            mutations.append(
                UpdateStudyContent(
                    study_id=study_id,
                    pgn=update.pgn,
                    last_modified_on_remote=update.last_modified_on_remote,
                    last_fetched=update.fetched,
                    guessed_color=self.move_parser.guess_color(update.pgn),
                    preview_fen=self.move_parser.make_preview_fen(update.pgn),
                )
            )
            mutations.append(DeleteStudyUpdate(study_id))
            return diff, mutations

        diff, _ = self.runner.transact(plan)
        logger.info("Applied update to study #%s: %s", study_id, diff.counts())
        return diff
