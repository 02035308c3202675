"""Port interfaces for repsync collaborators."""

from repsync.ports.move_parser import PgnMoveParser
from repsync.ports.repositories import (
    MoveRepository,
    MutationApplier,
    StudyRepository,
    UserRepository,
)
from repsync.ports.study_source import StudySource
from repsync.ports.unit_of_work import UnitOfWork

__all__ = [
    "MoveRepository",
    "MutationApplier",
    "PgnMoveParser",
    "StudyRepository",
    "StudySource",
    "UnitOfWork",
    "UserRepository",
]
