"""
ZIP writing for assembled archive entries.

The writer builds the archive in a temporary file next to the destination and
renames it into place once every entry has been written.
"""

import os
import zipfile
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

from colored_logger import get_colored_logger

from .models import ArchiveEntry, PathLike
from .permissions import to_external_attr

logger = get_colored_logger(__name__)

ProgressCallback = Callable[[int, int], None]

# Unix host system in the "version made by" field
ZIP_CREATE_SYSTEM_UNIX = 3
LARGE_FILE_THRESHOLD = 10 * 1024 * 1024  # 10MB


class ProgressReporter:
    """Decides when to report progress and invokes the callback."""

    def should_report_progress(self, current_index: int, total_files: int) -> bool:
        """Report roughly every 5% and always for the last file."""
        return (
            current_index % max(1, total_files // 20) == 0
            or current_index == total_files - 1
        )

    def report_progress_safely(
        self, progress_callback: Optional[ProgressCallback], current: int, total: int
    ) -> None:
        if progress_callback:
            progress_callback(current, total)


class ArchiveWriter(Protocol):
    """Interface of the component that turns entries into an archive file."""

    def write_archive(
        self,
        entries: Sequence[ArchiveEntry],
        archive_path: PathLike,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        ...


class ZipArchiveWriter:
    """Writes ZIP archives carrying each entry's Unix mode."""

    def __init__(self, compression_level: int = 6, chunk_size: int = 8192):
        if not 0 <= compression_level <= 9:
            raise ValueError(
                f"ZIP compression level must be between 0 and 9, got {compression_level}"
            )
        self.compression_level = compression_level
        self.chunk_size = max(1024, chunk_size)  # Minimum 1KB chunks
        self.progress_reporter = ProgressReporter()

    def _create_zipfile_instance(self, temp_archive_path: str) -> zipfile.ZipFile:
        return zipfile.ZipFile(
            temp_archive_path,
            "w",
            zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
            allowZip64=True,
        )

    def _build_zipinfo(self, entry: ArchiveEntry) -> zipfile.ZipInfo:
        zinfo = zipfile.ZipInfo.from_file(
            entry.source_path, arcname=entry.name, strict_timestamps=False
        )
        zinfo.create_system = ZIP_CREATE_SYSTEM_UNIX
        zinfo.external_attr = to_external_attr(entry.mode)
        zinfo.compress_type = zipfile.ZIP_DEFLATED
        # ZipFile.open(zinfo, "w") reads the level from the ZipInfo, not the archive
        zinfo._compresslevel = self.compression_level
        return zinfo

    def _add_large_file(
        self, zipf: zipfile.ZipFile, zinfo: zipfile.ZipInfo, source_path: Path
    ) -> None:
        with open(source_path, "rb") as src_file:
            with zipf.open(zinfo, "w") as dst_file:
                while True:
                    chunk = src_file.read(self.chunk_size)
                    if not chunk:
                        break
                    dst_file.write(chunk)

    def _add_small_file(
        self, zipf: zipfile.ZipFile, zinfo: zipfile.ZipInfo, source_path: Path
    ) -> None:
        with open(source_path, "rb") as src_file:
            data = src_file.read()
        zipf.writestr(zinfo, data, compresslevel=self.compression_level)

    def add_entry(self, zipf: zipfile.ZipFile, entry: ArchiveEntry) -> None:
        """Add one entry, streaming files above the large-file threshold."""
        zinfo = self._build_zipinfo(entry)

        if zinfo.file_size > LARGE_FILE_THRESHOLD:
            self._add_large_file(zipf, zinfo, entry.source_path)
        else:
            self._add_small_file(zipf, zinfo, entry.source_path)

        logger.debug(
            "Added %s (mode %o) from %s", entry.name, entry.mode, entry.source_path
        )

    def _cleanup_temp_file(self, temp_file_path: str) -> None:
        if os.path.exists(temp_file_path):
            try:
                os.remove(temp_file_path)
            except OSError as e:
                logger.debug("Failed to cleanup temp file %s: %s", temp_file_path, e)

    def write_archive(
        self,
        entries: Sequence[ArchiveEntry],
        archive_path: PathLike,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Write ``entries`` to ``archive_path``, replacing any existing file.

        Returns:
            Path of the written archive

        Raises:
            OSError: If a source file cannot be read or the archive cannot be written
        """
        archive_path = Path(archive_path)
        temp_archive_path = f"{archive_path}.tmp.{os.getpid()}"
        total = len(entries)

        try:
            with self._create_zipfile_instance(temp_archive_path) as zipf:
                for i, entry in enumerate(entries):
                    self.add_entry(zipf, entry)

                    if self.progress_reporter.should_report_progress(i, total):
                        self.progress_reporter.report_progress_safely(
                            progress_callback, i + 1, total
                        )

            # Atomic move to final location
            os.replace(temp_archive_path, archive_path)

        except BaseException:
            self._cleanup_temp_file(temp_archive_path)
            raise

        return archive_path
