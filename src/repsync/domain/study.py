"""Study, pending update and user records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from repsync.errors import StudyStateError


class StudyState(str, Enum):
    """Explicit lifecycle state derived from a study's flags."""

    AVAILABLE = "available"
    HIDDEN = "hidden"
    INCLUDED = "included"
    REMOVED_ON_REMOTE = "removed_on_remote"


def resolve_study_state(included: bool, hidden: bool, removed_on_remote: bool) -> StudyState:
    """Map flag combinations to a state, rejecting combinations that cannot occur."""
    if included and hidden:
        raise StudyStateError("A study in the repertoire cannot be hidden")
    if included:
        return StudyState.REMOVED_ON_REMOTE if removed_on_remote else StudyState.INCLUDED
    if removed_on_remote:
        raise StudyStateError("Only studies in the repertoire can be kept after remote removal")
    return StudyState.HIDDEN if hidden else StudyState.AVAILABLE


@dataclass(frozen=True, slots=True)
class UserAccount:
    user_id: str
    lichess_username: str
    lichess_access_token: str | None = None
    last_repertoire_update_check: datetime | None = None


@dataclass(frozen=True, slots=True)
class Study:
    """Local copy of a remote study."""

    study_id: str
    remote_id: str
    user_id: str
    name: str
    last_modified_on_remote: datetime
    last_fetched: datetime
    pgn: str = ""
    guessed_color: str | None = None
    preview_fen: str | None = None
    included: bool = False
    hidden: bool = False
    removed_on_remote: bool = False
    rep_for_white: bool | None = None
    only_variant: bool = False

    @property
    def state(self) -> StudyState:
        return resolve_study_state(self.included, self.hidden, self.removed_on_remote)


@dataclass(frozen=True, slots=True)
class StudyUpdate:
    """Fetched but unapplied remote content for an included study."""

    study_id: str
    fetched: datetime
    last_modified_on_remote: datetime
    num_new_moves: int
    num_new_own_moves: int
    num_removed_moves: int
    num_removed_own_moves: int
    pgn: str

    def counts(self) -> dict[str, int]:
        return {
            "num_new_moves": self.num_new_moves,
            "num_new_own_moves": self.num_new_own_moves,
            "num_removed_moves": self.num_removed_moves,
            "num_removed_own_moves": self.num_removed_own_moves,
        }


@dataclass(frozen=True, slots=True)
class RemoteStudyMetadata:
    remote_id: str
    name: str
    last_modified: datetime


@dataclass(frozen=True, slots=True)
class RemoteStudyContent:
    pgn: str
    last_modified: datetime | None = None
