"""Run a backup: validate, stage, archive, rotate, clean up."""

from __future__ import annotations

import logging
import shutil
import time
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from dirbak.archive import (
    archive_extension,
    archive_stem,
    build_archive,
    generate_timestamp,
    seven_zip_executable,
)
from dirbak.blacklist import load_blacklist
from dirbak.config import DEFAULT_TEMP_DIRECTORY, default_blacklist_path
from dirbak.errors import ValidationError
from dirbak.rotation import DEFAULT_KEEP, RotationResult, rotate_archives
from dirbak.walker import TraversalCounters, copy_tree

logger = logging.getLogger(__name__)


@dataclass
class BackupOptions:
    """Resolved options for a single backup run."""

    source: Path
    destination: Path | None
    temp_directory: Path = Path(DEFAULT_TEMP_DIRECTORY)
    blacklist: Path | None = None
    base_name: str | None = None
    keep: int = DEFAULT_KEEP
    password_protect: bool = False
    password: str | None = field(default=None, repr=False)
    seven_zip_directory: Path | None = None

    def resolved_base_name(self) -> str:
        """Return the archive base name, defaulting to the source directory name."""
        return self.base_name or Path(self.source).resolve().name

    def resolved_blacklist(self) -> Path:
        return Path(self.blacklist) if self.blacklist else default_blacklist_path()


@dataclass
class BackupResult:
    """Summary of a completed backup run."""

    archive_path: Path
    counters: TraversalCounters
    rotation: RotationResult
    elapsed_seconds: float

    @property
    def archive_size(self) -> int:
        return self.archive_path.stat().st_size if self.archive_path.exists() else 0


def validate_options(options: BackupOptions) -> None:
    """Check every option before any staging or archiving work.

    Raises:
        ValidationError: On the first missing or unusable option.
    """
    if not options.source:
        raise ValidationError("Source directory is required")
    source = Path(options.source)
    if not source.exists():
        raise ValidationError(f"Source directory does not exist: {source}")
    if not source.is_dir():
        raise ValidationError(f"Source is not a directory: {source}")

    if not options.destination:
        raise ValidationError("Destination directory is required")
    destination = Path(options.destination)
    if destination.exists() and not destination.is_dir():
        raise ValidationError(f"Destination is not a directory: {destination}")

    temp_directory = Path(options.temp_directory)
    if temp_directory.exists() and not temp_directory.is_dir():
        raise ValidationError(f"Temporary path is not a directory: {temp_directory}")

    if options.resolved_blacklist().is_dir():
        raise ValidationError(f"Blacklist path is a directory: {options.resolved_blacklist()}")

    if not options.resolved_base_name():
        raise ValidationError("Cannot derive an archive name from the source; pass a pattern")

    if options.keep < 0:
        raise ValidationError(f"Keep count must be zero or more, got {options.keep}")

    if options.password_protect:
        if not options.password:
            raise ValidationError("Password protection requires a non-empty password")
        if not options.seven_zip_directory:
            raise ValidationError("Password protection requires the 7-Zip directory")
        seven_zip_directory = Path(options.seven_zip_directory)
        if not seven_zip_directory.is_dir():
            raise ValidationError(f"7-Zip directory does not exist: {seven_zip_directory}")
        executable = seven_zip_executable(seven_zip_directory)
        if not executable.is_file():
            raise ValidationError(f"7-Zip executable not found: {executable}")


def prepare_directories(options: BackupOptions) -> bool:
    """Create the destination and temporary directories if missing.

    Returns True if the temporary directory was created by this call.
    """
    Path(options.destination).mkdir(parents=True, exist_ok=True)
    temp_directory = Path(options.temp_directory)
    created = not temp_directory.exists()
    temp_directory.mkdir(parents=True, exist_ok=True)
    return created


def remove_staging(staging_root: Path, temp_directory: Path, remove_temp: bool = False) -> None:
    """Delete the staging root, and the temporary directory too if asked and empty."""
    if staging_root.exists():
        shutil.rmtree(staging_root)
        logger.debug("Removed staging directory %s", staging_root)
    if remove_temp:
        # Fails while other runs still stage there.
        with suppress(OSError):
            temp_directory.rmdir()


def run_backup(options: BackupOptions, now: datetime | None = None) -> BackupResult:
    """Back up ``options.source`` into a new archive in ``options.destination``.

    Steps run strictly in order: validation, blacklist load, staging copy,
    archive build, rotation of old archives. The staging directory is removed
    whether or not the run succeeds.

    Raises:
        ValidationError: If an option is unusable. Nothing has been written.
        BuildError: If compression fails.
        OSError: If copying into the staging directory fails.
    """
    started = time.perf_counter()
    validate_options(options)

    source = Path(options.source).resolve()
    destination = Path(options.destination).resolve()
    temp_directory = Path(options.temp_directory).resolve()
    base_name = options.resolved_base_name()
    extension = archive_extension(options.password_protect)

    patterns = load_blacklist(options.resolved_blacklist())
    created_temp = prepare_directories(options)

    stem = archive_stem(base_name, generate_timestamp(now))
    staging_root = temp_directory / stem
    if staging_root.exists():
        logger.warning("Removing leftover staging directory %s", staging_root)
        shutil.rmtree(staging_root)
    staging_root.mkdir(parents=True)

    try:
        logger.info("Backing up %s with %d blacklist patterns", source, len(patterns))
        counters = copy_tree(
            source,
            staging_root,
            patterns,
            skip_directories=(temp_directory, destination),
        )
        archive_path = build_archive(
            staging_root,
            destination,
            stem,
            password_mode=options.password_protect,
            password=options.password,
            seven_zip_directory=options.seven_zip_directory,
        )
        logger.info("Created archive %s", archive_path)
        rotation = rotate_archives(destination, base_name, extension, options.keep)
    finally:
        remove_staging(staging_root, temp_directory, remove_temp=created_temp)

    return BackupResult(
        archive_path=archive_path,
        counters=counters,
        rotation=rotation,
        elapsed_seconds=time.perf_counter() - started,
    )
