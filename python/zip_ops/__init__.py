"""
ZIP archive assembly from source directories and named files.
"""

from .errors import ConfigurationError, PatternCompileError
from .models import NamedFile, ArchiveEntry, Candidate
from .patterns import compile_pattern, compile_patterns
from .pattern_matcher import PatternMatcher
from .source_collector import SourceCollector, CollectionStats
from .permissions import (
    PermissionMapper,
    permission_bits,
    to_external_attr,
    from_external_attr,
)
from .archive_writer import ArchiveWriter, ZipArchiveWriter, ProgressReporter
from .zip_operation import ZipOperation, ArchiveAssembler, AssemblyResult
from .config import load_config, operation_from_config

__all__ = [
    # Configuration and orchestration
    "ZipOperation",
    "ArchiveAssembler",
    "AssemblyResult",
    "load_config",
    "operation_from_config",
    # Models
    "NamedFile",
    "ArchiveEntry",
    "Candidate",
    # Errors
    "ConfigurationError",
    "PatternCompileError",
    # Filtering
    "compile_pattern",
    "compile_patterns",
    "PatternMatcher",
    # Collection
    "SourceCollector",
    "CollectionStats",
    # Permissions
    "PermissionMapper",
    "permission_bits",
    "to_external_attr",
    "from_external_attr",
    # Writing
    "ArchiveWriter",
    "ZipArchiveWriter",
    "ProgressReporter",
]
