"""Interpret Lichess study PGN exports with python-chess."""

from __future__ import annotations

import io
from collections import Counter
from collections.abc import Iterator

import chess
import chess.pgn

from repsync.domain.moves import MoveRecord, unique_moves
from repsync.errors import StudyParseError
from repsync.utils.logger import get_logger

logger = get_logger(__name__)

_STANDARD_VARIANTS = {"standard", "from position"}


def normalize_fen(board: chess.Board) -> str:
    """Return the FEN of ``board`` without move counters.

    Dropping the clocks lets transpositions map onto the same position.
    """
    return board.epd()


def iter_chapters(pgn: str) -> Iterator[chess.pgn.Game]:
    """Yield every chapter of a multi-game study export."""
    handle = io.StringIO(pgn)
    while True:
        try:
            game = chess.pgn.read_game(handle)
        except ValueError as exc:
            raise StudyParseError(f"Unreadable study chapter: {exc}") from exc
        if game is None:
            return
        if game.errors:
            logger.warning(
                "Chapter %s has %s unparseable moves, its tree is truncated",
                game.headers.get("Event"),
                len(game.errors),
            )
        yield game


def chapter_board(game: chess.pgn.Game) -> chess.Board:
    """Return the starting position of a chapter, honouring its FEN header."""
    try:
        return game.board()
    except ValueError as exc:
        raise StudyParseError(
            f"Chapter {game.headers.get('Event')!r} has an invalid starting position: {exc}"
        ) from exc


def is_standard_chapter(game: chess.pgn.Game) -> bool:
    return game.headers.get("Variant", "Standard").strip().lower() in _STANDARD_VARIANTS


def _chapter_moves(game: chess.pgn.Game, rep_for_white: bool) -> list[MoveRecord]:
    own_color = chess.WHITE if rep_for_white else chess.BLACK
    moves: list[MoveRecord] = []
    stack: list[tuple[chess.pgn.GameNode, chess.Board]] = [(game, chapter_board(game))]
    while stack:
        node, board = stack.pop()
        from_fen = normalize_fen(board)
        for child in node.variations:
            child_board = board.copy(stack=False)
            child_board.push(child.move)
            moves.append(
                MoveRecord(
                    rep_for_white=rep_for_white,
                    from_fen=from_fen,
                    to_fen=normalize_fen(child_board),
                    own_move=board.turn == own_color,
                )
            )
            stack.append((child, child_board))
    return moves


class PythonChessMoveParser:
    """Move-tree parser backed by ``chess.pgn``."""

    def pgn_to_moves(self, pgn: str, rep_for_white: bool, only_variant: bool) -> list[MoveRecord]:
        """Return the deduplicated moves of every chapter.

        Args:
            pgn: Study export, one game per chapter.
            rep_for_white: Side the repertoire is built for.
            only_variant: Skip chapters of non-standard chess variants.

        Returns:
            Move records in tree order, first occurrence of each key kept.

        Raises:
            StudyParseError: When a chapter cannot be read or has an invalid FEN.
        """
        moves: list[MoveRecord] = []
        for game in iter_chapters(pgn):
            if only_variant and not is_standard_chapter(game):
                logger.debug("Skipping %s chapter", game.headers.get("Variant"))
                continue
            moves.extend(_chapter_moves(game, rep_for_white))
        return unique_moves(moves)

    def guess_color(self, pgn: str) -> str:
        """Guess the repertoire side from chapter orientations, defaulting to white."""
        votes = Counter(
            game.headers.get("Orientation", "white").strip().lower() for game in iter_chapters(pgn)
        )
        return "black" if votes["black"] > votes["white"] else "white"

    def make_preview_fen(self, pgn: str) -> str:
        """Return the position where the first chapter's main line first branches."""
        game = next(iter_chapters(pgn), None)
        if game is None:
            return chess.STARTING_FEN
        board = chapter_board(game)
        node: chess.pgn.GameNode = game
        while len(node.variations) == 1:
            node = node.variations[0]
            board.push(node.move)
        return board.fen()
