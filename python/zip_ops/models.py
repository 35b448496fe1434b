"""
Value types shared by the collection, filtering and writing stages.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class NamedFile:
    """A single file placed in the archive under an explicit entry name."""

    name: str
    path: Path

    def __post_init__(self):
        # Accept plain strings for convenience, store a Path
        object.__setattr__(self, "path", Path(self.path))


@dataclass(frozen=True)
class Candidate:
    """A file discovered by the collector, before filtering."""

    entry_name: str
    source_path: Path
    filter_name: str


@dataclass(frozen=True)
class ArchiveEntry:
    """A file accepted for the archive with its resolved Unix mode."""

    name: str
    source_path: Path
    mode: int
