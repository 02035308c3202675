"""In-memory collaborators and seed helpers for study tests.

Test PGNs use a compact notation understood by ``FakeMoveParser``:
``"a>b+;b>c-"`` is two moves, ``a -> b`` played by the user and
``b -> c`` expected from the opponent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from repsync.app.use_cases.unit_of_work_runner import UnitOfWorkRunner
from repsync.db.duckdb_move_repository import move_repository
from repsync.db.duckdb_study_repository import study_repository
from repsync.db.duckdb_user_repository import user_repository
from repsync.domain.moves import MoveRecord
from repsync.domain.study import (
    RemoteStudyContent,
    RemoteStudyMetadata,
    Study,
    StudyUpdate,
    UserAccount,
)
from repsync.errors import RemoteFetchError

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
T1 = T0 + timedelta(days=1)
T2 = T0 + timedelta(days=2)
NOW = T0 + timedelta(days=10)


def parse_fake_pgn(pgn: str, rep_for_white: bool) -> list[MoveRecord]:
    moves = []
    for token in filter(None, (part.strip() for part in pgn.split(";"))):
        own = token.endswith("+")
        from_fen, to_fen = token.rstrip("+-").split(">")
        moves.append(MoveRecord(rep_for_white, from_fen, to_fen, own))
    return moves


class FakeMoveParser:
    def pgn_to_moves(self, pgn: str, rep_for_white: bool, only_variant: bool) -> list[MoveRecord]:
        return parse_fake_pgn(pgn, rep_for_white)

    def guess_color(self, pgn: str) -> str:
        return "black" if pgn.startswith("black:") else "white"

    def make_preview_fen(self, pgn: str) -> str:
        moves = parse_fake_pgn(pgn, True)
        return moves[0].from_fen if moves else "start"


@dataclass
class FakeStudySource:
    metadata: list[RemoteStudyMetadata] = field(default_factory=list)
    contents: dict[str, RemoteStudyContent] = field(default_factory=dict)
    failing_ids: set[str] = field(default_factory=set)
    fetched_ids: list[str] = field(default_factory=list)

    def fetch_studies_metadata(self, user: UserAccount) -> list[RemoteStudyMetadata]:
        return list(self.metadata)

    def fetch_study(self, remote_id: str, user: UserAccount) -> RemoteStudyContent:
        self.fetched_ids.append(remote_id)
        if remote_id in self.failing_ids:
            raise RemoteFetchError(f"boom: {remote_id}")
        return self.contents[remote_id]


def make_study(study_id: str, **overrides: object) -> Study:
    values: dict[str, object] = {
        "study_id": study_id,
        "remote_id": f"remote-{study_id}",
        "user_id": "user-1",
        "name": f"Study {study_id}",
        "last_modified_on_remote": T0,
        "last_fetched": T0,
        "pgn": "",
    }
    values.update(overrides)
    return Study(**values)  # type: ignore[arg-type]


def make_runner(tmp_dir: Path) -> UnitOfWorkRunner:
    return UnitOfWorkRunner(tmp_dir / "repsync.duckdb")


def seed_user(runner: UnitOfWorkRunner, user_id: str = "user-1") -> UserAccount:
    user = UserAccount(
        user_id=user_id, lichess_username=f"{user_id}-name", lichess_access_token="tok"
    )
    runner.read(lambda conn: user_repository(conn).insert_user(user))
    return user


def seed_study(runner: UnitOfWorkRunner, study: Study) -> Study:
    runner.read(lambda conn: study_repository(conn).insert_study(study))
    return study


def seed_study_update(runner: UnitOfWorkRunner, update: StudyUpdate) -> StudyUpdate:
    runner.read(lambda conn: study_repository(conn).save_study_update(update))
    return update


def attach_moves(
    runner: UnitOfWorkRunner,
    study_id: str,
    pgn: str,
    rep_for_white: bool = True,
    user_id: str = "user-1",
) -> None:
    def _attach(conn) -> None:
        repo = move_repository(conn)
        for move in parse_fake_pgn(pgn, rep_for_white):
            repo.upsert_study_move(user_id, study_id, move)

    runner.read(_attach)


def fetch_study(runner: UnitOfWorkRunner, study_id: str) -> Study | None:
    return runner.read(lambda conn: study_repository(conn).fetch_study(study_id))


def fetch_update(runner: UnitOfWorkRunner, study_id: str) -> StudyUpdate | None:
    return runner.read(lambda conn: study_repository(conn).fetch_study_update(study_id))


def fetch_user_moves(runner: UnitOfWorkRunner, include_deleted: bool = True):
    return runner.read(
        lambda conn: move_repository(conn).fetch_user_moves(
            "user-1", include_deleted=include_deleted
        )
    )
