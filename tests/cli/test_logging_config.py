"""Tests for logging setup and the CLI verbosity flags."""

import logging
import os
import unittest
from unittest.mock import patch

from solsys.cli.common import configure_logging
from solsys.logging import LOG_LEVEL_ENV_VAR, get_logger, set_log_level


class TestLogging(unittest.TestCase):
    def setUp(self):
        logging.getLogger("solsys").setLevel(logging.NOTSET)

    def tearDown(self):
        set_log_level(logging.WARNING)
        logging.getLogger("solsys").setLevel(logging.NOTSET)

    def test_env_var_sets_level(self):
        with patch.dict(os.environ, {LOG_LEVEL_ENV_VAR: "debug"}):
            logger = get_logger("solsys.test_env_var_sets_level")
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)
        self.assertEqual(len(logger.handlers), 1)

    def test_get_logger_is_idempotent(self):
        first = get_logger("solsys.test_idempotent")
        second = get_logger("solsys.test_idempotent")
        self.assertIs(first, second)
        self.assertEqual(len(second.handlers), 1)

    def test_set_log_level_reaches_existing_loggers(self):
        logger = get_logger("solsys.test_set_level")
        set_log_level(logging.ERROR)
        self.assertEqual(logger.level, logging.ERROR)
        self.assertEqual(logger.handlers[0].level, logging.ERROR)

    def test_configure_logging_flags(self):
        cases = [
            ({"quiet": True, "debug": True, "verbose": 2}, logging.ERROR),
            ({"debug": True}, logging.DEBUG),
            ({"verbose": 0}, logging.WARNING),
            ({"verbose": 1}, logging.INFO),
            ({"verbose": 3}, logging.DEBUG),
        ]
        logger = get_logger("solsys.test_flags")
        for args, level in cases:
            with self.subTest(args=args):
                configure_logging(args)
                self.assertEqual(logging.getLogger("solsys").level, level)
                self.assertEqual(logger.level, level)


if __name__ == "__main__":
    unittest.main()
