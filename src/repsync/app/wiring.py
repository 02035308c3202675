"""Default dependency wiring for use-cases."""

from __future__ import annotations

from dataclasses import dataclass

from repsync.app.use_cases.repertoire import RepertoireUseCase
from repsync.app.use_cases.study_sync import StudySyncUseCase
from repsync.app.use_cases.unit_of_work_runner import UnitOfWorkRunner
from repsync.config import Settings, get_settings
from repsync.infra.clients.lichess_study_client import LichessStudyClient
from repsync.infra.pgn_moves import PythonChessMoveParser
from repsync.ports.move_parser import PgnMoveParser
from repsync.ports.study_source import StudySource


@dataclass(frozen=True)
class UseCases:
    study_sync: StudySyncUseCase
    repertoire: RepertoireUseCase


def build_use_cases(
    settings: Settings | None = None,
    *,
    study_source: StudySource | None = None,
    move_parser: PgnMoveParser | None = None,
) -> UseCases:
    """Build use cases backed by DuckDB, Lichess and python-chess."""
    settings = settings or get_settings()
    runner = UnitOfWorkRunner(settings.duckdb_path)
    parser = move_parser or PythonChessMoveParser()
    source = study_source or LichessStudyClient(settings.lichess)
    return UseCases(
        study_sync=StudySyncUseCase(
            runner=runner,
            study_source=source,
            move_parser=parser,
            update_check_interval_s=settings.update_check_interval_s,
        ),
        repertoire=RepertoireUseCase(
            runner=runner,
            move_parser=parser,
            only_variant=settings.only_variant,
        ),
    )
