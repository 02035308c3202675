import logging
import unittest

from repsync.utils.logger import get_logger, set_level


class LoggingUtilsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logger = logging.getLogger("repsync")
        self.original_handlers = list(self.logger.handlers)
        self.original_level = self.logger.level

    def tearDown(self) -> None:
        self.logger.handlers = list(self.original_handlers)
        self.logger.setLevel(self.original_level)

    def test_get_logger_reuses_existing_handlers(self) -> None:
        handler = logging.StreamHandler()
        self.logger.handlers = [handler]

        logger = get_logger("repsync")

        self.assertIs(logger, self.logger)
        self.assertEqual(len(logger.handlers), 1)
        self.assertFalse(logger.propagate)

    def test_get_logger_defaults_to_package_logger(self) -> None:
        self.assertIs(get_logger(), self.logger)

    def test_set_level_updates_named_loggers(self) -> None:
        set_level(logging.WARNING)
        set_level(logging.DEBUG, ["repsync.db.duckdb_store"])

        self.assertEqual(logging.getLogger("repsync").level, logging.WARNING)
        self.assertEqual(logging.getLogger("repsync.db.duckdb_store").level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
