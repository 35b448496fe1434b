"""
Discovery of archive candidates from source directories and named files.

Directory trees are walked recursively and every regular file becomes a
candidate named after its basename. Named files follow in configured order
under their explicit entry names.
"""

import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from colored_logger import get_colored_logger

from .models import Candidate, NamedFile, PathLike

logger = get_colored_logger(__name__)


class CollectionStats:
    """Container for source collection statistics."""

    def __init__(self):
        self.directories_scanned = 0
        self.directories_missing = 0
        self.discovered_files = 0
        self.named_files = 0

    @property
    def total_candidates(self) -> int:
        return self.discovered_files + self.named_files

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            "directories_scanned": self.directories_scanned,
            "directories_missing": self.directories_missing,
            "discovered_files": self.discovered_files,
            "named_files": self.named_files,
        }


def _raise_walk_error(error: OSError) -> None:
    raise error


class SourceCollector:
    """Enumerates candidate files for an archive."""

    def __init__(
        self,
        source_directories: Optional[Iterable[PathLike]] = None,
        source_files: Optional[Iterable[NamedFile]] = None,
    ):
        self.source_directories = [Path(d) for d in (source_directories or [])]
        self.source_files = list(source_files or [])

    def scan_directory(self, source_path: Path) -> List[Path]:
        """
        Return the regular files below ``source_path`` sorted by relative path.

        Directory symlinks are not descended into. File symlinks are kept when
        they resolve to a regular file; dangling links are skipped.
        """
        files = []
        for root, _dirs, names in os.walk(
            source_path, onerror=_raise_walk_error, followlinks=False
        ):
            for name in names:
                file_path = Path(root) / name
                if file_path.is_file():
                    files.append(file_path)
                else:
                    logger.trace("Skipping non-regular file: %s", file_path)

        return sorted(files, key=lambda p: p.relative_to(source_path).parts)

    def collect_directory(
        self, source_path: Path, stats: CollectionStats
    ) -> List[Candidate]:
        """Collect flattened candidates for one source directory."""
        if not source_path.exists():
            logger.debug("Source directory does not exist, skipping: %s", source_path)
            stats.directories_missing += 1
            return []

        if not source_path.is_dir():
            logger.warning("Source path is not a directory, skipping: %s", source_path)
            stats.directories_missing += 1
            return []

        stats.directories_scanned += 1
        candidates = [
            Candidate(file_path.name, file_path, file_path.name)
            for file_path in self.scan_directory(source_path)
        ]
        stats.discovered_files += len(candidates)

        logger.debug("Found %d files in %s", len(candidates), source_path)
        return candidates

    def collect_named_file(
        self, named_file: NamedFile, stats: CollectionStats
    ) -> Candidate:
        """Turn an explicitly named file into a candidate, failing if it is absent."""
        path = named_file.path

        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {path}")

        if path.is_dir():
            raise IsADirectoryError(f"Source file is a directory: {path}")

        stats.named_files += 1
        # Named files are filtered on the name of the underlying file
        return Candidate(named_file.name, path, path.name)

    def collect(self) -> Tuple[List[Candidate], CollectionStats]:
        """
        Collect all candidates: directory files first, then named files.

        Returns:
            Tuple of (candidates in archive order, collection statistics)

        Raises:
            FileNotFoundError: If a named file does not exist
            OSError: If a source directory cannot be read
        """
        stats = CollectionStats()
        candidates: List[Candidate] = []

        for source_path in self.source_directories:
            candidates.extend(self.collect_directory(source_path, stats))

        for named_file in self.source_files:
            candidates.append(self.collect_named_file(named_file, stats))

        return candidates, stats
