"""Keep Lichess studies and the repertoire built from them in sync."""

from repsync.app.use_cases import RepertoireUseCase, StudySyncResult, StudySyncUseCase
from repsync.app.wiring import UseCases, build_use_cases

__all__ = [
    "RepertoireUseCase",
    "StudySyncResult",
    "StudySyncUseCase",
    "UseCases",
    "build_use_cases",
]
