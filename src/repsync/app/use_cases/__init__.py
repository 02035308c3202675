"""Use-case layer for repsync application services."""

from repsync.app.use_cases.repertoire import RepertoireUseCase
from repsync.app.use_cases.study_sync import StudySyncResult, StudySyncUseCase
from repsync.app.use_cases.unit_of_work_runner import UnitOfWorkRunner

__all__ = [
    "RepertoireUseCase",
    "StudySyncResult",
    "StudySyncUseCase",
    "UnitOfWorkRunner",
]
