"""Retention of backup archives in a destination directory."""

from __future__ import annotations

import glob
import logging
from dataclasses import dataclass, field
from pathlib import Path

from dirbak.archive import ARCHIVE_MARKER

logger = logging.getLogger(__name__)

DEFAULT_KEEP = 1000
TIMESTAMP_GLOB = "????-??-??_??-??-??"


@dataclass
class RotationResult:
    """Archives deleted by a rotation pass, and those that could not be."""

    removed: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)


def archive_glob(base_name: str, extension: str) -> str:
    """Return the file name glob for archives of ``base_name``.

    The base name is matched literally even if it contains glob characters,
    and only a run timestamp may follow it, so ``api`` never picks up
    ``api-gateway`` archives.
    """
    return f"{glob.escape(base_name)}-{TIMESTAMP_GLOB}{ARCHIVE_MARKER}.{extension}"


def find_backup_archives(destination_directory: Path, base_name: str, extension: str) -> list[Path]:
    """List archives for ``base_name``, most recently modified first."""
    directory = Path(destination_directory)
    if not directory.is_dir():
        return []
    dated: list[tuple[float, str, Path]] = []
    for path in directory.glob(archive_glob(base_name, extension)):
        try:
            if not path.is_file():
                continue
            modified = path.stat().st_mtime
        except OSError as error:
            # Removed or unreadable since the listing.
            logger.warning("Skipping archive %s: %s", path, error)
            continue
        dated.append((modified, path.name, path))
    dated.sort(reverse=True)
    return [path for _, _, path in dated]


def rotate_archives(
    destination_directory: Path,
    base_name: str,
    extension: str,
    keep: int = DEFAULT_KEEP,
) -> RotationResult:
    """Delete the oldest archives of ``base_name`` beyond the ``keep`` most recent.

    Nothing is deleted unless the archive count is strictly greater than
    ``keep``. Deletion failures are logged and reported, never raised.
    """
    result = RotationResult()
    archives = find_backup_archives(destination_directory, base_name, extension)
    if len(archives) <= keep:
        logger.debug("%d archives for %s, keeping all (limit %d)", len(archives), base_name, keep)
        return result

    for archive in archives[keep:]:
        try:
            archive.unlink()
        except OSError as error:
            logger.warning("Could not remove old archive %s: %s", archive, error)
            result.failed.append(archive)
            continue
        logger.info("Removed old archive %s", archive)
        result.removed.append(archive)

    return result
