"""Infrastructure clients."""

from .lichess_study_client import LichessStudyClient

__all__ = ["LichessStudyClient"]
