import tempfile
import unittest
from pathlib import Path

from repsync import build_use_cases
from repsync.config import Settings
from repsync.infra.clients.lichess_study_client import LichessStudyClient
from repsync.infra.pgn_moves import PythonChessMoveParser
from tests.study_fakes import FakeMoveParser, FakeStudySource


class WiringTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp_dir = Path(tempfile.mkdtemp())
        self.settings = Settings(data_dir=tmp_dir, update_check_interval_s=42, only_variant=False)

    def test_defaults_use_lichess_and_python_chess(self) -> None:
        use_cases = build_use_cases(self.settings)

        self.assertIsInstance(use_cases.study_sync.study_source, LichessStudyClient)
        self.assertIsInstance(use_cases.study_sync.move_parser, PythonChessMoveParser)
        self.assertIs(use_cases.study_sync.runner, use_cases.repertoire.runner)
        self.assertEqual(use_cases.study_sync.runner.db_path, self.settings.duckdb_path)
        self.assertEqual(use_cases.study_sync.update_check_interval_s, 42)
        self.assertFalse(use_cases.repertoire.only_variant)

    def test_collaborators_can_be_injected(self) -> None:
        source = FakeStudySource()
        parser = FakeMoveParser()

        use_cases = build_use_cases(self.settings, study_source=source, move_parser=parser)

        self.assertIs(use_cases.study_sync.study_source, source)
        self.assertIs(use_cases.repertoire.move_parser, parser)


if __name__ == "__main__":
    unittest.main()
