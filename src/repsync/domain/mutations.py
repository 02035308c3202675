"""Staged storage mutations.

Use cases collect these values and hand them to the storage layer, which
applies a whole list inside a single unit of work or none of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from repsync.domain.moves import MoveRecord
from repsync.domain.study import Study, StudyUpdate


@dataclass(frozen=True, slots=True)
class InsertStudy:
    study: Study


@dataclass(frozen=True, slots=True)
class RenameStudy:
    study_id: str
    name: str


@dataclass(frozen=True, slots=True)
class SetRemovedOnRemote:
    study_id: str
    removed: bool


@dataclass(frozen=True, slots=True)
class SetStudyHidden:
    study_id: str
    hidden: bool


@dataclass(frozen=True, slots=True)
class SetStudyIncluded:
    study_id: str
    included: bool
    rep_for_white: bool | None = None
    only_variant: bool = False


@dataclass(frozen=True, slots=True)
class UpdateStudyContent:
    study_id: str
    pgn: str
    last_modified_on_remote: datetime
    last_fetched: datetime
    guessed_color: str | None = None
    preview_fen: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteStudy:
    """Hard delete of a study row and any update staged for it."""

    study_id: str


@dataclass(frozen=True, slots=True)
class SaveStudyUpdate:
    """Create or replace the single pending update of a study."""

    update: StudyUpdate


@dataclass(frozen=True, slots=True)
class DeleteStudyUpdate:
    study_id: str


@dataclass(frozen=True, slots=True)
class UpsertStudyMove:
    """Attach a study to the move with this key, creating or reviving it."""

    user_id: str
    study_id: str
    move: MoveRecord


@dataclass(frozen=True, slots=True)
class SoftDeleteMove:
    move_id: str


@dataclass(frozen=True, slots=True)
class DetachMoveFromStudy:
    move_id: str
    study_id: str


@dataclass(frozen=True, slots=True)
class DetachStudyMoves:
    """Remove every move edge owned by a study."""

    study_id: str


@dataclass(frozen=True, slots=True)
class RecordUpdateCheck:
    user_id: str
    checked_at: datetime


StudyMutation = (
    InsertStudy
    | RenameStudy
    | SetRemovedOnRemote
    | SetStudyHidden
    | SetStudyIncluded
    | UpdateStudyContent
    | DeleteStudy
    | SaveStudyUpdate
    | DeleteStudyUpdate
    | UpsertStudyMove
    | SoftDeleteMove
    | DetachMoveFromStudy
    | DetachStudyMoves
    | RecordUpdateCheck
)
