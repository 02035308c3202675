"""Move records and their identity within a user's repertoire."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple


class MoveKey(NamedTuple):
    """Identity of a move within one user's repertoire."""

    rep_for_white: bool
    from_fen: str
    to_fen: str


@dataclass(frozen=True, slots=True)
class MoveRecord:
    """A single parsed ply, as produced by the PGN parser."""

    rep_for_white: bool
    from_fen: str
    to_fen: str
    own_move: bool

    @property
    def key(self) -> MoveKey:
        return MoveKey(self.rep_for_white, self.from_fen, self.to_fen)


@dataclass(frozen=True, slots=True)
class StudyMove:
    """A stored move node together with the studies that own it."""

    move_id: str
    rep_for_white: bool
    from_fen: str
    to_fen: str
    own_move: bool
    deleted: bool = False
    owner_study_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def key(self) -> MoveKey:
        return MoveKey(self.rep_for_white, self.from_fen, self.to_fen)

    def to_record(self) -> MoveRecord:
        return MoveRecord(self.rep_for_white, self.from_fen, self.to_fen, self.own_move)


def unique_moves(moves: Iterable[MoveRecord]) -> list[MoveRecord]:
    """Return moves deduplicated by key, keeping the first occurrence."""
    seen: set[MoveKey] = set()
    result: list[MoveRecord] = []
    for move in moves:
        if move.key in seen:
            continue
        seen.add(move.key)
        result.append(move)
    return result
