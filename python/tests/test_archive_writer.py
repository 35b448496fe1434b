"""
Tests for the ZIP archive writer.
"""

import os
import shutil
import stat
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest.mock import Mock, patch

from zip_ops import ArchiveEntry, ProgressReporter, ZipArchiveWriter, from_external_attr


class TestZipArchiveWriter(unittest.TestCase):
    """Test ZIP writing component."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.archive_path = self.temp_dir / "out.zip"
        self.writer = ZipArchiveWriter()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _entry(self, name: str, content: bytes, mode: int = stat.S_IFREG | 0o644):
        path = self.temp_dir / f"src_{name}"
        path.write_bytes(content)
        return ArchiveEntry(name, path, mode)

    def test_writes_entries_with_modes(self):
        entries = [
            self._entry("a.txt", b"alpha", stat.S_IFREG | 0o700),
            self._entry("b.txt", b"beta", stat.S_IFREG | 0o407),
        ]

        result = self.writer.write_archive(entries, self.archive_path)

        self.assertEqual(result, self.archive_path)
        with zipfile.ZipFile(self.archive_path) as zf:
            self.assertIsNone(zf.testzip())
            self.assertEqual(zf.namelist(), ["a.txt", "b.txt"])
            self.assertEqual(zf.read("a.txt"), b"alpha")
            infos = {info.filename: info for info in zf.infolist()}

        self.assertEqual(from_external_attr(infos["a.txt"].external_attr), 0o100700)
        self.assertEqual(from_external_attr(infos["b.txt"].external_attr), 0o100407)
        self.assertEqual(infos["a.txt"].create_system, 3)
        self.assertEqual(infos["a.txt"].compress_type, zipfile.ZIP_DEFLATED)

    def test_large_files_are_streamed(self):
        """Files above the threshold go through the streaming path."""
        content = os.urandom(4096) * 4
        entry = self._entry("big.bin", content, stat.S_IFREG | 0o755)

        with patch("zip_ops.archive_writer.LARGE_FILE_THRESHOLD", 1024):
            with patch.object(
                self.writer, "_add_small_file", side_effect=AssertionError
            ):
                self.writer.write_archive([entry], self.archive_path)

        with zipfile.ZipFile(self.archive_path) as zf:
            self.assertEqual(zf.read("big.bin"), content)
            info = zf.getinfo("big.bin")
        self.assertEqual(from_external_attr(info.external_attr), 0o100755)

    def test_streamed_entries_use_configured_level(self):
        content = b"a" * 16384
        sizes = {}

        for level in (0, 9):
            writer = ZipArchiveWriter(compression_level=level)
            entry = self._entry(f"level{level}.txt", content)
            archive_path = self.temp_dir / f"level{level}.zip"

            with patch("zip_ops.archive_writer.LARGE_FILE_THRESHOLD", 1024):
                with patch.object(writer, "_add_small_file", side_effect=AssertionError):
                    writer.write_archive([entry], archive_path)

            with zipfile.ZipFile(archive_path) as zf:
                self.assertEqual(zf.read(entry.name), content)
                sizes[level] = zf.getinfo(entry.name).compress_size

        self.assertGreaterEqual(sizes[0], len(content))
        self.assertLess(sizes[9], len(content) // 10)

    def test_replaces_existing_file_and_removes_temp(self):
        self.archive_path.write_bytes(b"stale")

        self.writer.write_archive([self._entry("a.txt", b"a")], self.archive_path)

        self.assertTrue(zipfile.is_zipfile(self.archive_path))
        leftovers = [p.name for p in self.temp_dir.iterdir() if p.suffix != ".txt"]
        self.assertEqual(leftovers, ["out.zip"])

    def test_missing_source_removes_temp_and_keeps_destination_absent(self):
        entry = ArchiveEntry(
            "gone.txt", self.temp_dir / "gone.txt", stat.S_IFREG | 0o644
        )

        with self.assertRaises(FileNotFoundError):
            self.writer.write_archive([entry], self.archive_path)

        self.assertFalse(self.archive_path.exists())
        self.assertEqual(list(self.temp_dir.glob("out.zip.tmp.*")), [])

    def test_empty_entry_list_writes_empty_archive(self):
        self.writer.write_archive([], self.archive_path)

        with zipfile.ZipFile(self.archive_path) as zf:
            self.assertEqual(zf.namelist(), [])

    def test_progress_callback_is_called(self):
        entries = [self._entry(f"{i}.txt", b"x") for i in range(5)]
        callback = Mock()

        self.writer.write_archive(entries, self.archive_path, callback)

        callback.assert_called_with(5, 5)

    def test_invalid_compression_level(self):
        for level in (-1, 10):
            with self.subTest(level=level):
                with self.assertRaises(ValueError):
                    ZipArchiveWriter(compression_level=level)


class TestProgressReporter(unittest.TestCase):
    """Test progress reporting intervals."""

    def test_reports_first_and_last(self):
        reporter = ProgressReporter()

        self.assertTrue(reporter.should_report_progress(0, 100))
        self.assertTrue(reporter.should_report_progress(99, 100))
        self.assertTrue(reporter.should_report_progress(5, 100))
        self.assertFalse(reporter.should_report_progress(7, 100))

    def test_no_callback_is_a_no_op(self):
        ProgressReporter().report_progress_safely(None, 1, 1)


if __name__ == "__main__":
    unittest.main()
