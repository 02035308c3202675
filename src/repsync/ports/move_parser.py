"""Port interface for PGN interpretation."""

from __future__ import annotations

from typing import Protocol

from repsync.domain.moves import MoveRecord


class PgnMoveParser(Protocol):
    """Turn study PGN text into move records and preview metadata."""

    def pgn_to_moves(self, pgn: str, rep_for_white: bool, only_variant: bool) -> list[MoveRecord]:
        """Return every move in the PGN, tagged for the given repertoire side."""

    def guess_color(self, pgn: str) -> str:
        """Return ``"white"`` or ``"black"``, the side the study is likely written for."""

    def make_preview_fen(self, pgn: str) -> str:
        """Return a FEN representative of the study's opening."""
