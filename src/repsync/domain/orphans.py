"""Ownership bookkeeping for moves shared between studies."""

from __future__ import annotations

from collections.abc import Iterable

from repsync.domain.moves import StudyMove
from repsync.domain.mutations import (
    DetachMoveFromStudy,
    DetachStudyMoves,
    SoftDeleteMove,
    StudyMutation,
)


def remaining_owners(move: StudyMove, study_id: str) -> frozenset[str]:
    """Return the owners a move keeps once ``study_id`` lets go of it."""
    return move.owner_study_ids - {study_id}


def find_orphan_moves(moves: Iterable[StudyMove], study_id: str) -> list[StudyMove]:
    """Return moves left without any owning study after detaching ``study_id``."""
    return [move for move in moves if not remaining_owners(move, study_id)]


def orphan_move_soft_deletions(
    moves: Iterable[StudyMove],
    study_id: str,
) -> list[SoftDeleteMove]:
    """Return soft-delete mutations for moves orphaned by detaching ``study_id``."""
    return [SoftDeleteMove(move.move_id) for move in find_orphan_moves(moves, study_id)]


def plan_move_detachment(
    moves: Iterable[StudyMove],
    study_id: str,
    *,
    detach_all: bool = False,
) -> list[StudyMutation]:
    """Plan edge removals between ``study_id`` and ``moves``.

    Every edge removal is paired with soft deletes for the moves it leaves
    without owners. With ``detach_all`` the study's whole edge set is severed,
    including edges to moves that are not listed.
    """
    moves = list(moves)
    mutations: list[StudyMutation] = list(orphan_move_soft_deletions(moves, study_id))
    if detach_all:
        mutations.append(DetachStudyMoves(study_id))
    else:
        mutations.extend(DetachMoveFromStudy(move.move_id, study_id) for move in moves)
    return mutations
