"""
ZIP assembly operation - configures and orchestrates archive creation.

``ZipOperation`` holds the configuration. Its collections are live lists that
can be mutated directly or through the fluent ``set_*``/``add_*`` methods.
``execute()`` hands the operation to ``ArchiveAssembler``, which coordinates
source collection, pattern filtering, permission mapping and ZIP writing.
"""

import os
import re
import time
from collections import OrderedDict
from collections.abc import Iterable as IterableABC
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from colored_logger import get_colored_logger

from .archive_writer import ArchiveWriter, ProgressCallback, ZipArchiveWriter
from .errors import ConfigurationError
from .models import ArchiveEntry, NamedFile, PathLike
from .pattern_matcher import PatternMatcher
from .patterns import PatternLike, compile_pattern, compile_patterns
from .permissions import PermissionMapper
from .source_collector import SourceCollector

logger = get_colored_logger(__name__)

DEFAULT_COMPRESSION_LEVEL = 6

# Values that are added as one item even though they may be iterable
_SINGLE_ITEM_TYPES = (str, bytes, os.PathLike, NamedFile, re.Pattern)


def _flatten(items: Iterable[Any]) -> Iterator[Any]:
    """Expand single items, lists and varargs into one stream of items."""
    for item in items:
        if isinstance(item, _SINGLE_ITEM_TYPES) or not isinstance(item, IterableABC):
            yield item
        else:
            yield from item


def _as_items(value: Any) -> Iterable[Any]:
    """Wrap a lone item in a tuple so it is not iterated character by character."""
    if isinstance(value, _SINGLE_ITEM_TYPES):
        return (value,)
    return value


class ZipOperation:
    """
    Builds a ZIP archive from source directories and named files.

    Files found under source directories are stored under their basename.
    Named files are stored under their configured entry name. Candidates are
    selected by the ``included`` and ``excluded`` patterns, and each entry
    keeps the permission bits of its source file.
    """

    def __init__(self):
        self._source_directories: List[Path] = []
        self._source_files: List[NamedFile] = []
        self._destination_directory: Optional[Path] = None
        self._destination_file_name: Optional[str] = None
        self._included: List[Any] = []
        self._excluded: List[Any] = []
        self.compression_level = DEFAULT_COMPRESSION_LEVEL

    # Source directories

    @property
    def source_directories(self) -> List[Path]:
        return self._source_directories

    @source_directories.setter
    def source_directories(self, directories: Iterable[PathLike]) -> None:
        items = _flatten(_as_items(directories))
        self._source_directories[:] = [Path(d) for d in items]

    def set_source_directories(self, *directories) -> "ZipOperation":
        self.source_directories = directories
        return self

    def add_source_directories(self, *directories) -> "ZipOperation":
        self._source_directories.extend(Path(d) for d in _flatten(directories))
        return self

    # Named source files

    @property
    def source_files(self) -> List[NamedFile]:
        return self._source_files

    @source_files.setter
    def source_files(self, files: Iterable[NamedFile]) -> None:
        self._source_files[:] = list(_flatten(_as_items(files)))

    def set_source_files(self, *files) -> "ZipOperation":
        self.source_files = files
        return self

    def add_source_files(self, *files) -> "ZipOperation":
        self._source_files.extend(_flatten(files))
        return self

    def add_source_file(self, name: str, path: PathLike) -> "ZipOperation":
        """Add a single file stored in the archive as ``name``."""
        self._source_files.append(NamedFile(name, Path(path)))
        return self

    # Destination

    @property
    def destination_directory(self) -> Optional[Path]:
        return self._destination_directory

    @destination_directory.setter
    def destination_directory(self, directory: Optional[PathLike]) -> None:
        self._destination_directory = Path(directory) if directory is not None else None

    def set_destination_directory(self, directory: PathLike) -> "ZipOperation":
        self.destination_directory = directory
        return self

    @property
    def destination_file_name(self) -> Optional[str]:
        return self._destination_file_name

    @destination_file_name.setter
    def destination_file_name(self, name: Optional[str]) -> None:
        self._destination_file_name = name

    def set_destination_file_name(self, name: str) -> "ZipOperation":
        self.destination_file_name = name
        return self

    @property
    def destination_file(self) -> Optional[Path]:
        """The archive path, or None until both directory and file name are set."""
        if self._destination_directory is None or self._destination_file_name is None:
            return None
        return self._destination_directory / self._destination_file_name

    # Patterns

    @property
    def included(self) -> List[Any]:
        return self._included

    @included.setter
    def included(self, patterns: Iterable[PatternLike]) -> None:
        self._included[:] = compile_patterns(_flatten(_as_items(patterns)))

    def set_included(self, *patterns) -> "ZipOperation":
        self.included = patterns
        return self

    def add_included(self, *patterns) -> "ZipOperation":
        self._included.extend(compile_pattern(p) for p in _flatten(patterns))
        return self

    @property
    def excluded(self) -> List[Any]:
        return self._excluded

    @excluded.setter
    def excluded(self, patterns: Iterable[PatternLike]) -> None:
        self._excluded[:] = compile_patterns(_flatten(_as_items(patterns)))

    def set_excluded(self, *patterns) -> "ZipOperation":
        self.excluded = patterns
        return self

    def add_excluded(self, *patterns) -> "ZipOperation":
        self._excluded.extend(compile_pattern(p) for p in _flatten(patterns))
        return self

    # Compression

    def set_compression_level(self, level: int) -> "ZipOperation":
        self.compression_level = level
        return self

    def execute(self, progress_callback: Optional[ProgressCallback] = None) -> None:
        """
        Create or overwrite the destination archive.

        Raises:
            ConfigurationError: If the destination directory or file name is unset
            FileNotFoundError: If a named source file does not exist
            OSError: If a source cannot be read or the archive cannot be written
        """
        ArchiveAssembler().assemble(self, progress_callback)

    def __repr__(self) -> str:
        return (
            f"ZipOperation(destination={self.destination_file}, "
            f"directories={len(self._source_directories)}, "
            f"files={len(self._source_files)}, "
            f"included={len(self._included)}, excluded={len(self._excluded)})"
        )


@dataclass
class AssemblyResult:
    """Outcome of one archive assembly."""

    archive_path: Path
    entries: List[ArchiveEntry] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def entry_names(self) -> List[str]:
        return [entry.name for entry in self.entries]


class ArchiveAssembler:
    """
    Orchestrates archive creation for a ``ZipOperation``.

    Delegates to focused components:
    - Candidate discovery: SourceCollector
    - Selection: PatternMatcher
    - Mode resolution: PermissionMapper
    - Output: ZipArchiveWriter (or any ArchiveWriter)
    """

    def __init__(
        self,
        writer: Optional[ArchiveWriter] = None,
        permission_mapper: Optional[PermissionMapper] = None,
    ):
        self.writer = writer
        self.permission_mapper = permission_mapper or PermissionMapper()

    def _prepare_destination(self, operation: ZipOperation) -> Path:
        """Validate the destination and create its directory."""
        if operation.destination_directory is None:
            raise ConfigurationError("Destination directory is not set")
        if not operation.destination_file_name:
            raise ConfigurationError("Destination file name is not set")
        level = operation.compression_level
        if not 0 <= level <= 9:
            raise ConfigurationError(
                f"Compression level must be between 0 and 9, got {level}"
            )

        operation.destination_directory.mkdir(parents=True, exist_ok=True)
        return operation.destination_file

    def build_entries(
        self, operation: ZipOperation
    ) -> Tuple[List[ArchiveEntry], Dict[str, Any]]:
        """
        Collect, filter and resolve modes for every candidate of ``operation``.

        Entries sharing a name are collapsed: the last one wins and keeps the
        position of the first.
        """
        collector = SourceCollector(operation.source_directories, operation.source_files)
        matcher = PatternMatcher(
            compile_patterns(operation.included), compile_patterns(operation.excluded)
        )

        candidates, stats = collector.collect()
        entries: "OrderedDict[str, ArchiveEntry]" = OrderedDict()
        rejected = 0

        for candidate in candidates:
            if not matcher.accepts(candidate.filter_name):
                rejected += 1
                continue

            mode = self.permission_mapper.resolve(candidate.source_path)
            if candidate.entry_name in entries:
                logger.debug(
                    "Entry %s from %s replaces %s",
                    candidate.entry_name,
                    candidate.source_path,
                    entries[candidate.entry_name].source_path,
                )
            entries[candidate.entry_name] = ArchiveEntry(
                candidate.entry_name, candidate.source_path, mode
            )

        stats_dict = stats.to_dict()
        stats_dict["rejected_files"] = rejected
        stats_dict["total_entries"] = len(entries)
        return list(entries.values()), stats_dict

    def _log_collection_results(self, stats: Dict[str, Any]) -> None:
        logger.info(
            "Collected %d files from %d directories and %d named files: "
            "%d rejected by patterns, %d entries",
            stats["discovered_files"],
            stats["directories_scanned"],
            stats["named_files"],
            stats["rejected_files"],
            stats["total_entries"],
        )

    def assemble(
        self,
        operation: ZipOperation,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AssemblyResult:
        """
        Write the archive described by ``operation``.

        Returns:
            AssemblyResult with the archive path, written entries and statistics
        """
        archive_path = self._prepare_destination(operation)
        logger.info("Creating ZIP archive: %s", archive_path)

        entries, stats = self.build_entries(operation)
        self._log_collection_results(stats)

        if not entries:
            logger.warning("No files selected for archive: %s", archive_path)

        writer = self.writer or ZipArchiveWriter(operation.compression_level)
        start_time = time.time()
        writer.write_archive(entries, archive_path, progress_callback)

        logger.success(
            "Archive created: %s (%d entries, %.2f KB, %.2f seconds)",
            archive_path,
            len(entries),
            archive_path.stat().st_size / 1024,
            time.time() - start_time,
        )

        return AssemblyResult(archive_path, entries, stats)
