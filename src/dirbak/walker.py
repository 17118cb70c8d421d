"""Copy a source tree into a staging directory, skipping blacklisted entries."""

from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from dirbak.patterns import is_directory_excluded, is_file_excluded

logger = logging.getLogger(__name__)


@dataclass
class TraversalCounters:
    """Counts accumulated by a single walk."""

    files_copied: int = 0
    files_excluded: int = 0
    directories_excluded: int = 0


def relative_path(path: Path, source_root: Path) -> str:
    """Return ``path`` relative to ``source_root`` in forward-slash form."""
    return path.relative_to(source_root).as_posix()


def stage_file(source_file: Path, destination_file: Path) -> float:
    """Copy one file into the staging tree, creating parent directories.

    Overwrites an existing destination file.

    Returns:
        Elapsed copy time in seconds.
    """
    started = time.perf_counter()
    destination_file.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source_file, destination_file)
    elapsed = max(time.perf_counter() - started, 0.0)
    logger.debug("Copied %s in %.4fs", source_file, elapsed)
    return elapsed


def walk_directory(
    current_directory: Path,
    source_root: Path,
    staging_root: Path,
    patterns: Sequence[str],
    counters: TraversalCounters,
    skip_directories: frozenset[Path] = frozenset(),
) -> TraversalCounters:
    """Stage the direct children of ``current_directory`` and recurse into subdirectories.

    Excluded directories are pruned before they are opened, so nothing below
    them is listed or read. Symbolic links and special files are skipped.
    """
    with os.scandir(current_directory) as iterator:
        entries = sorted(iterator, key=lambda entry: entry.name)

    for entry in entries:
        path = current_directory / entry.name
        relative = relative_path(path, source_root)

        if entry.is_dir(follow_symlinks=False):
            if path in skip_directories:
                logger.debug("Skipping working directory %s", relative)
                continue
            if is_directory_excluded(relative, patterns):
                logger.debug("Excluded directory %s", relative)
                counters.directories_excluded += 1
                continue
            walk_directory(path, source_root, staging_root, patterns, counters, skip_directories)
        elif entry.is_file(follow_symlinks=False):
            if is_file_excluded(relative, patterns):
                logger.debug("Excluded file %s", relative)
                counters.files_excluded += 1
                continue
            stage_file(path, staging_root / relative)
            counters.files_copied += 1
        else:
            logger.debug("Skipping non-regular entry %s", relative)

    return counters


def copy_tree(
    source_root: Path,
    staging_root: Path,
    patterns: Sequence[str],
    skip_directories: Iterable[Path] = (),
) -> TraversalCounters:
    """Copy every non-blacklisted file under ``source_root`` into ``staging_root``.

    Args:
        source_root: Directory to back up.
        staging_root: Directory receiving the mirrored tree.
        patterns: Blacklist patterns.
        skip_directories: Directories never entered (e.g. the staging
            directory itself when it lives inside the source tree).

    Returns:
        Counters for this walk.
    """
    source_root = Path(os.path.abspath(source_root))
    staging_root = Path(os.path.abspath(staging_root))
    skipped = frozenset(Path(os.path.abspath(directory)) for directory in skip_directories)
    skipped |= {staging_root}

    counters = TraversalCounters()
    walk_directory(source_root, source_root, staging_root, patterns, counters, skipped)
    logger.info(
        "Staged %d files from %s (%d files, %d directories excluded)",
        counters.files_copied,
        source_root,
        counters.files_excluded,
        counters.directories_excluded,
    )
    return counters
