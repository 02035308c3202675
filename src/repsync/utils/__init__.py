"""Utility exports for the repsync package."""

from .logger import get_logger, set_level
from .now import Now
from .record_ids import new_move_id, new_study_id

__all__ = [
    "Now",
    "get_logger",
    "new_move_id",
    "new_study_id",
    "set_level",
]
