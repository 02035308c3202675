"""Repository port interfaces for database access boundaries."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from repsync.domain.moves import StudyMove
from repsync.domain.mutations import StudyMutation
from repsync.domain.study import Study, StudyUpdate, UserAccount


class UserRepository(Protocol):
    """Repository interface for user accounts."""

    def fetch_user(self, user_id: str) -> UserAccount | None:
        """Return the user account, or None when missing."""

    def insert_user(self, user: UserAccount) -> None:
        """Insert a user account."""

    def record_update_check(self, user_id: str, checked_at: datetime) -> None:
        """Store the time of the last completed synchronisation pass."""


class StudyRepository(Protocol):
    """Repository interface for studies and their pending updates."""

    def fetch_studies_for_user(self, user_id: str) -> list[Study]:
        """Return every stored study of a user."""

    def fetch_study(self, study_id: str) -> Study | None:
        """Return a study by local id."""

    def fetch_study_updates_for_user(self, user_id: str) -> dict[str, StudyUpdate]:
        """Return pending updates keyed by study id."""

    def fetch_study_update(self, study_id: str) -> StudyUpdate | None:
        """Return the pending update of a study."""


class MoveRepository(Protocol):
    """Repository interface for the shared move graph."""

    def fetch_study_moves(self, study_id: str) -> list[StudyMove]:
        """Return moves owned by a study, each with its full owner set."""

    def fetch_user_moves(self, user_id: str, include_deleted: bool = False) -> list[StudyMove]:
        """Return the moves of a user's repertoire."""


class MutationApplier(Protocol):
    """Apply staged mutations on the active connection."""

    def apply(self, mutations: Iterable[StudyMutation]) -> None:
        """Apply the mutations in order."""
