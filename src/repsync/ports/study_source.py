"""Port interface for the remote study service."""

# pylint: disable=too-few-public-methods

from __future__ import annotations

from typing import Protocol

from repsync.domain.study import RemoteStudyContent, RemoteStudyMetadata, UserAccount


class StudySource(Protocol):
    """Stable interface for remote study listings and exports."""

    def fetch_studies_metadata(self, user: UserAccount) -> list[RemoteStudyMetadata]:
        """Return metadata for every study the user can see remotely."""

    def fetch_study(self, remote_id: str, user: UserAccount) -> RemoteStudyContent:
        """Return the full PGN of one study."""
