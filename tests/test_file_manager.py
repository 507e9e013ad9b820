# tests/test_file_manager.py

"""Tests for the FileManager storage module."""

import tempfile
import unittest
from pathlib import Path

from catalog_schedule.storage.file_manager import FileManager


class TestFileManager(unittest.TestCase):
    """Tests for saving generated documents."""

    def setUp(self) -> None:
        """Set up a temp directory for output."""
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.fm = FileManager(self.tmp_dir / "output")

    def test_creates_output_dir(self) -> None:
        """The output directory is created on init."""
        self.assertTrue((self.tmp_dir / "output").is_dir())

    def test_save_document_writes_bytes(self) -> None:
        """Content lands under the given file name."""
        path = self.fm.save_document("schedule.docx", b"docx-bytes")
        self.assertEqual(path.name, "schedule.docx")
        self.assertEqual(path.read_bytes(), b"docx-bytes")

    def test_existing_file_gets_suffix(self) -> None:
        """A second save with the same name does not overwrite."""
        first = self.fm.save_document("schedule.docx", b"one")
        second = self.fm.save_document("schedule.docx", b"two")
        third = self.fm.save_document("schedule.docx", b"three")
        self.assertEqual(second.name, "schedule-1.docx")
        self.assertEqual(third.name, "schedule-2.docx")
        self.assertEqual(first.read_bytes(), b"one")

    def test_directory_parts_are_ignored(self) -> None:
        """Names cannot escape the output directory."""
        path = self.fm.save_document("../../evil.docx", b"x")
        self.assertEqual(path.parent, self.tmp_dir / "output")
        self.assertEqual(path.name, "evil.docx")


if __name__ == "__main__":
    unittest.main()
