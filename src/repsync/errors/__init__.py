"""Custom error types used in repsync."""

import requests


class RateLimitError(requests.HTTPError):
    """HTTP rate limit error."""


class StudyAccessError(PermissionError):
    """Raised when a user acts on a study that belongs to another user."""


class StudyNotFoundError(LookupError):
    """Raised when a referenced study does not exist."""


class UserNotFoundError(LookupError):
    """Raised when a referenced user does not exist."""


class StudyStateError(ValueError):
    """Raised when an operation is not valid for the study's current state."""


class StudyParseError(ValueError):
    """Raised when a study export cannot be read as PGN."""


class StorageTransactionError(RuntimeError):
    """Raised when an atomic batch of mutations fails and is rolled back."""


class RemoteFetchError(RuntimeError):
    """Raised when the remote study service cannot be read."""


class StudySyncError(RuntimeError):
    """Raised after a sync pass in which some studies could not be processed.

    Work for every other study, and the structural batch, is committed.
    ``study_ids`` holds the remote ids of the studies that failed.
    """

    def __init__(self, message: str, study_ids: list[str] | None = None) -> None:
        super().__init__(message)
        self.study_ids = list(study_ids or [])


__all__ = [
    "RateLimitError",
    "RemoteFetchError",
    "StorageTransactionError",
    "StudyAccessError",
    "StudyNotFoundError",
    "StudyParseError",
    "StudyStateError",
    "StudySyncError",
    "UserNotFoundError",
]
