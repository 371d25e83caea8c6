"""Mount table queries used to decide whether a path is currently mounted."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from .errors import ProbeError

logger = logging.getLogger(__name__)

DEFAULT_MOUNTS_FILE = Path("/proc/mounts")

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


class MountProber:
    """Answers whether a path is a mount point according to the live mount table."""

    def __init__(self, mounts_file: Union[str, Path] = DEFAULT_MOUNTS_FILE):
        self._mounts_file = Path(mounts_file)

    def probe(self, path: Union[str, Path]) -> bool:
        """Return True if ``path`` is the destination of a current mount.

        Any failure, whether resolving ``path`` or reading the mount table,
        is reported as not mounted.
        """

        canonical_path = _canonicalize(path)
        if canonical_path is None:
            logger.debug("Could not resolve %s; treating as unmounted", path)
            return False

        try:
            destinations = read_mount_destinations(self._mounts_file)
        except ProbeError as exc:
            logger.debug("%s; treating %s as unmounted", exc, path)
            return False

        for destination in destinations:
            if _canonicalize(destination) == canonical_path:
                return True
        return False


def read_mount_destinations(mounts_file: Union[str, Path] = DEFAULT_MOUNTS_FILE) -> List[str]:
    """Return the mount destinations listed in ``mounts_file``, in table order."""

    try:
        content = Path(mounts_file).read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as exc:
        raise ProbeError(f"Unable to read mount table {mounts_file}: {exc}") from exc

    destinations: List[str] = []
    for line in content.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        destinations.append(unescape_mount_field(fields[1]))
    return destinations


def unescape_mount_field(value: str) -> str:
    """Decode the octal escapes the kernel uses for whitespace and backslashes."""

    return _OCTAL_ESCAPE.sub(lambda match: chr(int(match.group(1), 8)), value)


def _canonicalize(path: Union[str, Path]) -> Optional[Path]:
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError):
        # RuntimeError covers symlink loops on older interpreters
        return None
