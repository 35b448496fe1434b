"""
Mapping of filesystem permission bits onto ZIP Unix modes.

The mode stored for an entry is ``S_IFREG | permission bits``; the writer
places it in the upper 16 bits of the entry's external attributes.
"""

import os
import stat
from pathlib import Path
from typing import Optional

from colored_logger import get_colored_logger

from .models import PathLike

logger = get_colored_logger(__name__)

PERMISSION_MASK = 0o777
MSDOS_READ_ONLY = 0x01
DEFAULT_FILE_PERMISSIONS = 0o644


def posix_permissions_supported() -> bool:
    """Whether the host exposes meaningful POSIX permission bits."""
    return os.name == "posix"


def permission_bits(mode: int) -> int:
    """Strip file-type bits from a Unix mode, leaving rwx for owner/group/other."""
    return mode & PERMISSION_MASK


def to_external_attr(mode: int) -> int:
    """
    Encode a Unix mode into a ZIP external attributes value.

    The low byte carries the MS-DOS read-only flag when the owner cannot write.
    """
    external_attr = (mode & 0xFFFF) << 16
    if not mode & stat.S_IWUSR:
        external_attr |= MSDOS_READ_ONLY
    return external_attr


def from_external_attr(external_attr: int) -> int:
    """Decode the Unix mode held in a ZIP external attributes value."""
    return (external_attr >> 16) & 0xFFFF


class PermissionMapper:
    """Resolves the archive mode for a source file."""

    def __init__(
        self,
        posix: Optional[bool] = None,
        default_permissions: int = DEFAULT_FILE_PERMISSIONS,
    ):
        self.posix = posix_permissions_supported() if posix is None else posix
        self.default_permissions = default_permissions

    def resolve(self, path: PathLike) -> int:
        """
        Return ``S_IFREG | permission bits`` for ``path``.

        Raises:
            OSError: If the file cannot be stat'ed
        """
        file_stat = os.stat(path)

        if not self.posix:
            return stat.S_IFREG | self.default_permissions

        mode = stat.S_IFREG | permission_bits(file_stat.st_mode)
        logger.trace("Resolved mode %o for %s", mode, Path(path).name)
        return mode
