"""Tests for environment overrides in the config module."""

from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from novgo_crawler import config


class TestEnvNumber(unittest.TestCase):

    def setUp(self):
        patcher = patch.object(config, "ENV_ERRORS", [])
        self.errors = patcher.start()
        self.addCleanup(patcher.stop)

    def test_unset_uses_default(self):
        with patch.dict(os.environ, {}, clear=True):
            self.assertEqual(config._env_number("NOVGO_CONCURRENCY", 5, int), 5)
        self.assertEqual(self.errors, [])

    def test_valid_override(self):
        with patch.dict(os.environ, {"NOVGO_RETRY_DELAY": "0.25"}):
            self.assertEqual(config._env_number("NOVGO_RETRY_DELAY", 2.0, float), 0.25)
        self.assertEqual(self.errors, [])

    def test_malformed_value_recorded_not_raised(self):
        with patch.dict(os.environ, {"NOVGO_CONCURRENCY": "lots"}):
            self.assertEqual(config._env_number("NOVGO_CONCURRENCY", 5, int), 5)
        self.assertEqual(len(self.errors), 1)
        self.assertIn("NOVGO_CONCURRENCY='lots'", self.errors[0])
        self.assertIn("int", self.errors[0])


if __name__ == "__main__":
    unittest.main()
