from __future__ import annotations

import tempfile
import unittest
from datetime import timedelta
from pathlib import Path

from repsync.app.use_cases.study_sync import StudySyncResult, StudySyncUseCase
from repsync.db.duckdb_mutation_applier import mutation_applier
from repsync.db.duckdb_study_repository import study_repository
from repsync.domain.mutations import InsertStudy
from repsync.domain.study import RemoteStudyContent, RemoteStudyMetadata, StudyUpdate
from repsync.errors import (
    StudyAccessError,
    StudyStateError,
    StudySyncError,
    UserNotFoundError,
)
from repsync.infra.pgn_moves import PythonChessMoveParser
from tests.study_fakes import (
    NOW,
    T0,
    T1,
    FakeMoveParser,
    FakeStudySource,
    attach_moves,
    fetch_study,
    fetch_update,
    make_runner,
    make_study,
    seed_study,
    seed_study_update,
    seed_user,
)


def _remote_ids(runner) -> list[str]:
    studies = runner.read(lambda conn: study_repository(conn).fetch_studies_for_user("user-1"))
    return [study.remote_id for study in studies]


class _FailingInsertApplier:
    def __init__(self, conn, remote_id: str) -> None:
        self._conn = conn
        self._remote_id = remote_id
        self._applier = mutation_applier(conn)

    def apply(self, mutations) -> None:
        for mutation in mutations:
            if isinstance(mutation, InsertStudy) and mutation.study.remote_id == self._remote_id:
                self._conn.execute("SELECT * FROM missing_table")
        self._applier.apply(mutations)


class StudySyncUseCaseTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = make_runner(Path(tempfile.mkdtemp()))
        seed_user(self.runner)
        self.source = FakeStudySource()
        self.ids = iter(f"new-{index}" for index in range(100))
        self.use_case = StudySyncUseCase(
            runner=self.runner,
            study_source=self.source,
            move_parser=FakeMoveParser(),
            clock=lambda: NOW,
            id_factory=lambda: next(self.ids),
        )

    def _remote(self, remote_id: str, name: str, last_modified=T0, pgn: str = "") -> None:
        self.source.metadata.append(RemoteStudyMetadata(remote_id, name, last_modified))
        self.source.contents[remote_id] = RemoteStudyContent(pgn=pgn, last_modified=last_modified)

    def test_full_pass_renames_stages_inserts_and_removes(self) -> None:
        seed_study(
            self.runner,
            make_study(
                "a", remote_id="A", name="X", included=True, rep_for_white=True, pgn="e>f+;f>g-"
            ),
        )
        attach_moves(self.runner, "a", "e>f+;f>g-")
        seed_study(self.runner, make_study("b", remote_id="B"))
        self._remote("A", "Y", T1, pgn="e>f+;f>h-;h>i+")
        self._remote("C", "Brand new", T1, pgn="black:c>d+")

        result = self.use_case.fetch_all_study_changes("user-1")

        self.assertEqual(
            result.to_dict(),
            {
                "num_new_studies": 1,
                "num_updates_fetched": 1,
                "num_renamed_studies": 1,
                "num_removed_studies": 1,
            },
        )
        study_a = fetch_study(self.runner, "a")
        self.assertEqual(study_a.name, "Y")
        self.assertEqual(study_a.pgn, "e>f+;f>g-")
        self.assertEqual(study_a.last_fetched, T0)
        update = fetch_update(self.runner, "a")
        self.assertEqual(update.last_modified_on_remote, T1)
        self.assertEqual(update.fetched, NOW)
        self.assertEqual(
            update.counts(),
            {
                "num_new_moves": 2,
                "num_new_own_moves": 1,
                "num_removed_moves": 1,
                "num_removed_own_moves": 0,
            },
        )
        self.assertIsNone(fetch_study(self.runner, "b"))
        new_study = fetch_study(self.runner, "new-0")
        self.assertEqual(new_study.remote_id, "C")
        self.assertFalse(new_study.included)
        self.assertFalse(new_study.hidden)
        self.assertEqual(new_study.guessed_color, "black")
        self.assertEqual(new_study.last_modified_on_remote, T1)

    def test_pass_records_last_check(self) -> None:
        self.use_case.fetch_all_study_changes("user-1")

        self.assertIsNone(self.use_case.fetch_all_study_changes_unless_fetched_recently("user-1"))

    def test_unless_fetched_recently_runs_after_interval(self) -> None:
        self.use_case.fetch_all_study_changes("user-1")
        self.use_case.clock = lambda: NOW + timedelta(minutes=6)

        result = self.use_case.fetch_all_study_changes_unless_fetched_recently("user-1")

        self.assertEqual(result, StudySyncResult())

    def test_current_pending_update_is_not_refetched(self) -> None:
        seed_study(self.runner, make_study("a", remote_id="A", included=True, rep_for_white=True))
        existing = seed_study_update(self.runner, StudyUpdate("a", T1, T1, 1, 1, 0, 0, "x>y+"))
        self._remote("A", "Study a", T1, pgn="x>y+;y>z-")

        result = self.use_case.fetch_all_study_changes("user-1")

        self.assertEqual(result.num_updates_fetched, 0)
        self.assertEqual(self.source.fetched_ids, [])
        self.assertEqual(fetch_update(self.runner, "a"), existing)

    def test_unincluded_study_is_overwritten_in_place(self) -> None:
        seed_study(self.runner, make_study("v", remote_id="V", pgn="old>pgn+"))
        seed_study(self.runner, make_study("h", remote_id="H", hidden=True, pgn="keep>me+"))
        self._remote("V", "Study v", T1, pgn="new>pgn+")
        self._remote("H", "Study h", T1, pgn="ignored>pgn+")

        result = self.use_case.fetch_all_study_changes("user-1")

        self.assertEqual(result.num_updates_fetched, 1)
        visible = fetch_study(self.runner, "v")
        self.assertEqual(visible.pgn, "new>pgn+")
        self.assertEqual(visible.last_fetched, NOW)
        self.assertEqual(visible.last_modified_on_remote, T1)
        self.assertEqual(visible.preview_fen, "new")
        self.assertEqual(fetch_study(self.runner, "h").pgn, "keep>me+")
        self.assertIsNone(fetch_update(self.runner, "v"))

    def test_included_study_missing_remotely_is_flagged_then_restored(self) -> None:
        seed_study(self.runner, make_study("a", remote_id="A", included=True, rep_for_white=True))

        first = self.use_case.fetch_all_study_changes("user-1")
        second = self.use_case.fetch_all_study_changes("user-1")

        self.assertEqual(first.num_removed_studies, 1)
        self.assertEqual(second.num_removed_studies, 0)
        self.assertTrue(fetch_study(self.runner, "a").removed_on_remote)

        self._remote("A", "Study a")
        self.use_case.fetch_all_study_changes("user-1")

        self.assertFalse(fetch_study(self.runner, "a").removed_on_remote)

    def test_failed_fetch_does_not_block_other_studies(self) -> None:
        seed_study(self.runner, make_study("a", remote_id="A", name="Old"))
        seed_study(self.runner, make_study("gone", remote_id="GONE"))
        self._remote("A", "New name")
        self._remote("BAD", "Broken", T1)
        self._remote("C", "Fine", T1, pgn="c>d+")
        self.source.failing_ids.add("BAD")

        with self.assertRaises(StudySyncError) as ctx:
            self.use_case.fetch_all_study_changes("user-1")

        self.assertEqual(ctx.exception.study_ids, ["BAD"])
        self.assertEqual(fetch_study(self.runner, "a").name, "New name")
        self.assertIsNone(fetch_study(self.runner, "gone"))
        self.assertEqual(fetch_study(self.runner, "new-0").remote_id, "C")
        self.source.failing_ids.clear()
        result = self.use_case.fetch_all_study_changes_unless_fetched_recently("user-1")
        self.assertIsNotNone(result)

    def test_unparseable_study_does_not_block_other_studies(self) -> None:
        self.use_case.move_parser = PythonChessMoveParser()
        seed_study(self.runner, make_study("a", remote_id="A", name="Old"))
        seed_study(self.runner, make_study("gone", remote_id="GONE"))
        self._remote("A", "New")
        self._remote("BAD", "Broken", T1, pgn='[Event "Broken"]\n[FEN "not a fen"]\n\n*\n')
        self._remote("GOOD", "Fine", T1, pgn='[Event "Fine"]\n\n1. e4 e5 *\n')

        with self.assertRaises(StudySyncError) as ctx:
            self.use_case.fetch_all_study_changes("user-1")

        self.assertEqual(ctx.exception.study_ids, ["BAD"])
        self.assertEqual(fetch_study(self.runner, "a").name, "New")
        self.assertIsNone(fetch_study(self.runner, "gone"))
        self.assertEqual(sorted(_remote_ids(self.runner)), ["A", "GOOD"])

    def test_storage_failure_for_one_study_does_not_block_others(self) -> None:
        self.runner.applier_factory = lambda conn: _FailingInsertApplier(conn, "BROKEN")
        seed_study(self.runner, make_study("a", remote_id="A", name="Old"))
        seed_study(self.runner, make_study("gone", remote_id="GONE"))
        self._remote("A", "New")
        self._remote("BROKEN", "Broken", T1, pgn="b>c+")
        self._remote("C", "Fine", T1, pgn="c>d+")

        with self.assertRaises(StudySyncError) as ctx:
            self.use_case.fetch_all_study_changes("user-1")

        self.assertEqual(ctx.exception.study_ids, ["BROKEN"])
        self.assertEqual(fetch_study(self.runner, "a").name, "New")
        self.assertIsNone(fetch_study(self.runner, "gone"))
        self.assertEqual(sorted(_remote_ids(self.runner)), ["A", "C"])

    def test_unknown_user_fails(self) -> None:
        with self.assertRaises(UserNotFoundError):
            self.use_case.fetch_all_study_changes("missing")

    def test_fetch_study_update_requires_included_owned_study(self) -> None:
        seed_study(self.runner, make_study("u", remote_id="U"))
        seed_study(self.runner, make_study("o", remote_id="O", user_id="user-2", included=True))

        with self.assertRaises(StudyStateError):
            self.use_case.fetch_study_update("user-1", "u")
        with self.assertRaises(StudyAccessError):
            self.use_case.fetch_study_update("user-1", "o")

    def test_fetch_study_update_replaces_single_pending_update(self) -> None:
        seed_study(self.runner, make_study("a", remote_id="A", included=True, rep_for_white=True))
        seed_study_update(self.runner, StudyUpdate("a", T0, T0, 9, 9, 9, 9, "stale"))
        self.source.contents["A"] = RemoteStudyContent(pgn="a>b+;b>c-", last_modified=T1)

        update = self.use_case.fetch_study_update("user-1", "a")

        self.assertEqual(fetch_update(self.runner, "a"), update)
        self.assertEqual(update.num_new_moves, 2)
        self.assertEqual(update.num_new_own_moves, 1)
        self.assertEqual(update.last_modified_on_remote, T1)

    def test_fetch_study_update_never_predates_last_fetch(self) -> None:
        seed_study(
            self.runner,
            make_study("a", remote_id="A", included=True, rep_for_white=True, last_fetched=T1),
        )
        self.source.contents["A"] = RemoteStudyContent(pgn="a>b+", last_modified=T0)

        update = self.use_case.fetch_study_update("user-1", "a")

        self.assertEqual(update.last_modified_on_remote, T1)
        self.assertEqual(fetch_update(self.runner, "a").last_modified_on_remote, T1)

    def test_update_unincluded_study_rejects_included(self) -> None:
        seed_study(self.runner, make_study("a", remote_id="A", included=True, rep_for_white=True))

        with self.assertRaises(StudyStateError):
            self.use_case.update_unincluded_study("user-1", "a")


if __name__ == "__main__":
    unittest.main()
