"""Lookup helpers that enforce existence and ownership."""

from __future__ import annotations

from repsync.domain.study import Study, UserAccount
from repsync.errors import StudyAccessError, StudyNotFoundError, UserNotFoundError
from repsync.ports.repositories import StudyRepository, UserRepository


def require_user(users: UserRepository, user_id: str) -> UserAccount:
    user = users.fetch_user(user_id)
    if user is None:
        raise UserNotFoundError(f"User #{user_id} not found")
    return user


def require_study(studies: StudyRepository, study_id: str, user_id: str) -> Study:
    """Return the study, checking that it exists, belongs to the user and has a valid state."""
    study = studies.fetch_study(study_id)
    if study is None:
        raise StudyNotFoundError(f"Study #{study_id} not found")
    if study.user_id != user_id:
        raise StudyAccessError("Study does not belong to this user (are you logged in?)")
    _ = study.state
    return study
