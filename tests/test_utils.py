"""Tests for filename sanitizing and atomic writes."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from novgo_crawler.utils import atomic_write, output_path_for, sanitize_title


class TestSanitizeTitle(unittest.TestCase):

    def test_non_alphanumerics_replaced_one_for_one(self):
        self.assertEqual(sanitize_title("Re:Zero − Starting Life!"), "Re_Zero___Starting_Life_")

    def test_plain_title_unchanged(self):
        self.assertEqual(sanitize_title("Overgeared2"), "Overgeared2")

    def test_non_ascii_letters_replaced(self):
        self.assertEqual(sanitize_title("Café"), "Caf_")

    def test_empty_title(self):
        self.assertEqual(sanitize_title(""), "untitled")

    def test_output_path(self):
        self.assertEqual(
            output_path_for("My Novel", "results", "epub"), Path("results") / "My_Novel.epub"
        )


class TestAtomicWrite(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _write_text(self, text):
        def _write(tmp_path):
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(text)
        return _write

    def test_creates_parent_and_writes(self):
        target = self.dir / "nested" / "out.txt"
        atomic_write(target, self._write_text("hello"))
        self.assertEqual(target.read_text(encoding="utf-8"), "hello")
        self.assertEqual(os.listdir(target.parent), ["out.txt"])

    def test_replaces_existing_file(self):
        target = self.dir / "out.txt"
        target.write_text("old", encoding="utf-8")
        atomic_write(target, self._write_text("new"))
        self.assertEqual(target.read_text(encoding="utf-8"), "new")

    def test_failure_leaves_no_temp_and_keeps_old_file(self):
        target = self.dir / "out.txt"
        target.write_text("old", encoding="utf-8")

        def _boom(tmp_path):
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write("partial")
            raise RuntimeError("disk full")

        with self.assertRaises(RuntimeError):
            atomic_write(target, _boom)

        self.assertEqual(target.read_text(encoding="utf-8"), "old")
        self.assertEqual(os.listdir(self.dir), ["out.txt"])


if __name__ == "__main__":
    unittest.main()
