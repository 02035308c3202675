"""Synchronise a user's local studies with Lichess."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from repsync.app.use_cases.study_access import require_study, require_user
from repsync.app.use_cases.unit_of_work_runner import UnitOfWorkRunner
from repsync.config import DEFAULT_UPDATE_CHECK_INTERVAL_S
from repsync.db.duckdb_move_repository import move_repository
from repsync.db.duckdb_study_repository import study_repository
from repsync.db.duckdb_user_repository import user_repository
from repsync.domain.move_diff import compare_moves_lists
from repsync.domain.mutations import (
    InsertStudy,
    RecordUpdateCheck,
    SaveStudyUpdate,
    UpdateStudyContent,
)
from repsync.domain.study import (
    RemoteStudyContent,
    RemoteStudyMetadata,
    Study,
    StudyUpdate,
    UserAccount,
)
from repsync.domain.study_changes import plan_study_changes
from repsync.errors import (
    RemoteFetchError,
    StorageTransactionError,
    StudyParseError,
    StudyStateError,
    StudySyncError,
)
from repsync.ports.move_parser import PgnMoveParser
from repsync.ports.study_source import StudySource
from repsync.should_fetch_study_changes__study_sync import should_fetch_study_changes
from repsync.utils.record_ids import new_study_id
from repsync.utils.logger import get_logger
from repsync.utils.now import Now

logger = get_logger(__name__)

_STUDY_STEP_ERRORS = (RemoteFetchError, StudyParseError, StorageTransactionError)


@dataclass
class StudySyncResult:
    num_new_studies: int = 0
    num_updates_fetched: int = 0
    num_renamed_studies: int = 0
    num_removed_studies: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _resolve_last_modified(
    content: RemoteStudyContent,
    listed: datetime | None,
    fallback: datetime,
    not_before: datetime | None = None,
) -> datetime:
    candidates = [value for value in (content.last_modified, listed) if value is not None]
    resolved = max(candidates) if candidates else fallback
    if not_before is not None and resolved < not_before:
        return not_before
    return resolved


@dataclass
class StudySyncUseCase:
    """Fetch new, changed, renamed and removed studies for a user.

    Studies in the repertoire receive a pending update for review; other
    studies are overwritten in place unless hidden.
    """

    runner: UnitOfWorkRunner
    study_source: StudySource
    move_parser: PgnMoveParser
    user_repository_factory: Callable[[Any], Any] = user_repository
    study_repository_factory: Callable[[Any], Any] = study_repository
    move_repository_factory: Callable[[Any], Any] = move_repository
    clock: Callable[[], datetime] = Now.as_datetime
    id_factory: Callable[[], str] = new_study_id
    update_check_interval_s: int = DEFAULT_UPDATE_CHECK_INTERVAL_S

    def fetch_all_study_changes(self, user_id: str) -> StudySyncResult:
        """Run one synchronisation pass for the user.

        Raises:
            UserNotFoundError: When the user does not exist.
            RemoteFetchError: When the study listing could not be fetched.
            StudySyncError: When some studies could not be fetched, parsed or stored.
                Work for other studies and the structural batch is still committed.
            StorageTransactionError: When the structural batch fails.
        """
        user, existing, pending_updates = self.runner.read(
            lambda conn: (
                require_user(self.user_repository_factory(conn), user_id),
                self.study_repository_factory(conn).fetch_studies_for_user(user_id),
                self.study_repository_factory(conn).fetch_study_updates_for_user(user_id),
            )
        )
        remote = self.study_source.fetch_studies_metadata(user)
        plan = plan_study_changes(existing, remote, pending_updates)
        result = StudySyncResult()
        failures: list[str] = []

        for remote_study in plan.new_studies:
            if self._run_study_step(
                failures,
                remote_study.remote_id,
                lambda item=remote_study: self._insert_new_study(user, item),
            ):
                result.num_new_studies += 1
        for refresh in plan.staged_updates:
            if self._run_study_step(
                failures,
                refresh.remote.remote_id,
                lambda item=refresh: self._stage_study_update(
                    user, item.study, item.remote.last_modified
                ),
            ):
                result.num_updates_fetched += 1
        for refresh in plan.direct_updates:
            if self._run_study_step(
                failures,
                refresh.remote.remote_id,
                lambda item=refresh: self._refresh_unincluded_study(
                    user, item.study, item.remote.last_modified
                ),
            ):
                result.num_updates_fetched += 1

        try:
            self.runner.run_atomically(plan.mutations)
        except StorageTransactionError as exc:
            raise StorageTransactionError(
                f"Updating studies of user #{user_id} failed: {exc}"
            ) from exc
        result.num_renamed_studies = plan.num_renamed_studies
        result.num_removed_studies = plan.num_removed_studies

        if failures:
            raise StudySyncError(
                f"{len(failures)} studies could not be synchronised",
                study_ids=failures,
            )
        self.runner.run_atomically([RecordUpdateCheck(user_id, self.clock())])
        logger.info("Study sync for user #%s: %s", user_id, result.to_dict())
        return result

    def fetch_all_study_changes_unless_fetched_recently(
        self,
        user_id: str,
        min_interval_s: int | None = None,
    ) -> StudySyncResult | None:
        """Run a pass unless one completed within the interval; return None when skipped."""
        user = self.runner.read(
            lambda conn: require_user(self.user_repository_factory(conn), user_id)
        )
        interval = self.update_check_interval_s if min_interval_s is None else min_interval_s
        last_check = user.last_repertoire_update_check
        if not should_fetch_study_changes(last_check, self.clock(), interval):
            logger.debug("Skipping study sync for user #%s, checked recently", user_id)
            return None
        return self.fetch_all_study_changes(user_id)

    def fetch_study_update(
        self,
        user_id: str,
        study_id: str,
        remote_last_modified: datetime | None = None,
    ) -> StudyUpdate:
        """Fetch the latest remote version of an included study and stage it.

        The update is stored separately and applied to the study later.
        """
        user, study = self._read_user_and_study(user_id, study_id)
        if not study.included:
            raise StudyStateError(
                "Only studies that are part of your repertoire can be updated with "
                "fetch_study_update, use update_unincluded_study"
            )
        return self._stage_study_update(user, study, remote_last_modified)

    def update_unincluded_study(
        self,
        user_id: str,
        study_id: str,
        remote_last_modified: datetime | None = None,
    ) -> None:
        """Overwrite an unincluded study with its latest remote content."""
        user, study = self._read_user_and_study(user_id, study_id)
        if study.included:
            raise StudyStateError(
                "Studies that are part of your repertoire cannot be updated with "
                "update_unincluded_study, use fetch_study_update"
            )
        self._refresh_unincluded_study(user, study, remote_last_modified)

    def _read_user_and_study(self, user_id: str, study_id: str) -> tuple[UserAccount, Study]:
        return self.runner.read(
            lambda conn: (
                require_user(self.user_repository_factory(conn), user_id),
                require_study(self.study_repository_factory(conn), study_id, user_id),
            )
        )

    def _run_study_step(
        self,
        failures: list[str],
        remote_id: str,
        step: Callable[[], object],
    ) -> bool:
        try:
            step()
        except _STUDY_STEP_ERRORS:
            logger.exception("Syncing study %s failed, continuing with other studies", remote_id)
            failures.append(remote_id)
            return False
        return True

    def _insert_new_study(self, user: UserAccount, remote: RemoteStudyMetadata) -> Study:
        content = self.study_source.fetch_study(remote.remote_id, user)
        study = Study(
            study_id=self.id_factory(),
            remote_id=remote.remote_id,
            user_id=user.user_id,
            name=remote.name,
            last_modified_on_remote=remote.last_modified,
            last_fetched=self.clock(),
            pgn=content.pgn,
            guessed_color=self.move_parser.guess_color(content.pgn),
            preview_fen=self.move_parser.make_preview_fen(content.pgn),
        )
        self.runner.run_atomically([InsertStudy(study)])
        logger.debug("Inserted new study %s (%s)", study.remote_id, study.name)
        return study

    def _stage_study_update(
        self,
        user: UserAccount,
        study: Study,
        remote_last_modified: datetime | None,
    ) -> StudyUpdate:
        existing_moves = self.runner.read(
            lambda conn: self.move_repository_factory(conn).fetch_study_moves(study.study_id)
        )
        content = self.study_source.fetch_study(study.remote_id, user)
        updated_moves = self.move_parser.pgn_to_moves(
            content.pgn,
            bool(study.rep_for_white),
            study.only_variant,
        )
        diff = compare_moves_lists(existing_moves, updated_moves)
        fetched = self.clock()
        update = StudyUpdate(
            study_id=study.study_id,
            fetched=fetched,
            last_modified_on_remote=_resolve_last_modified(
                content, remote_last_modified, fetched, not_before=study.last_fetched
            ),
            num_new_moves=diff.num_new_moves,
            num_new_own_moves=diff.num_new_own_moves,
            num_removed_moves=diff.num_removed_moves,
            num_removed_own_moves=diff.num_removed_own_moves,
            pgn=content.pgn,
        )
        self.runner.run_atomically([SaveStudyUpdate(update)])
        logger.debug("Staged update for study %s: %s", study.remote_id, update.counts())
        return update

    def _refresh_unincluded_study(
        self,
        user: UserAccount,
        study: Study,
        remote_last_modified: datetime | None,
    ) -> None:
        content = self.study_source.fetch_study(study.remote_id, user)
        fetched = self.clock()
        self.runner.run_atomically(
            [
                UpdateStudyContent(
                    study_id=study.study_id,
                    pgn=content.pgn,
                    last_modified_on_remote=_resolve_last_modified(
                        content, remote_last_modified, fetched
                    ),
                    last_fetched=fetched,
                    guessed_color=self.move_parser.guess_color(content.pgn),
                    preview_fen=self.move_parser.make_preview_fen(content.pgn),
                )
            ]
        )
        logger.debug("Refreshed unincluded study %s", study.remote_id)
