"""Compare two versions of a study's move list."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from repsync.domain.moves import MoveKey, MoveRecord, StudyMove

MoveLike = MoveRecord | StudyMove


@dataclass(frozen=True)
class MoveDiff:
    """Moves present only in the updated list, and only in the existing list."""

    new_moves: list[MoveLike] = field(default_factory=list)
    removed_moves: list[MoveLike] = field(default_factory=list)

    @property
    def num_new_moves(self) -> int:
        return len(self.new_moves)

    @property
    def num_removed_moves(self) -> int:
        return len(self.removed_moves)

    @property
    def num_new_own_moves(self) -> int:
        return sum(1 for move in self.new_moves if move.own_move)

    @property
    def num_removed_own_moves(self) -> int:
        return sum(1 for move in self.removed_moves if move.own_move)

    def counts(self) -> dict[str, int]:
        return {
            "num_new_moves": self.num_new_moves,
            "num_new_own_moves": self.num_new_own_moves,
            "num_removed_moves": self.num_removed_moves,
            "num_removed_own_moves": self.num_removed_own_moves,
        }


def _index_by_key(moves: Iterable[MoveLike]) -> dict[MoveKey, MoveLike]:
    indexed: dict[MoveKey, MoveLike] = {}
    for move in moves:
        indexed.setdefault(move.key, move)
    return indexed


def compare_moves_lists(
    existing: Iterable[MoveLike],
    updated: Iterable[MoveLike],
) -> MoveDiff:
    """Return the moves added and removed between two move lists.

    Membership is decided by move key only, so ordering and repeated
    entries in either list do not produce differences.
    """
    existing_by_key = _index_by_key(existing)
    updated_by_key = _index_by_key(updated)
    return MoveDiff(
        new_moves=[move for key, move in updated_by_key.items() if key not in existing_by_key],
        removed_moves=[move for key, move in existing_by_key.items() if key not in updated_by_key],
    )
