"""Build timestamped backup archives from a staging directory."""

from __future__ import annotations

import logging
import os
import subprocess
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pyzipper

from dirbak.errors import BuildError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
ARCHIVE_MARKER = ".bak"
PLAIN_EXTENSION = "zip"
PROTECTED_EXTENSION = "7z"


@dataclass
class SevenZipResult:
    """Outcome of a 7-Zip invocation."""

    exit_code: int
    success: bool


def generate_timestamp(now: datetime | None = None) -> str:
    """Return the run timestamp in YYYY-MM-DD_HH-mm-ss format."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def archive_extension(password_mode: bool) -> str:
    """Return ``7z`` for password-protected archives, ``zip`` otherwise."""
    return PROTECTED_EXTENSION if password_mode else PLAIN_EXTENSION


def archive_stem(base_name: str, timestamp: str) -> str:
    """Return the archive name without extension: ``<base>-<timestamp>.bak``."""
    return f"{base_name}-{timestamp}{ARCHIVE_MARKER}"


def archive_filename(base_name: str, timestamp: str, password_mode: bool) -> str:
    """Return the full archive file name, e.g. ``proj-2024-01-01_00-00-00.bak.zip``."""
    return f"{archive_stem(base_name, timestamp)}.{archive_extension(password_mode)}"


def seven_zip_executable(directory: Path) -> Path:
    """Return the 7-Zip executable path inside ``directory``."""
    name = "7z.exe" if os.name == "nt" else "7z"
    return Path(directory) / name


def create_zip_archive(archive_path: Path, source_directory: Path) -> int:
    """Compress every file below ``source_directory`` into a deflated zip.

    Archive member names are relative to ``source_directory``.

    Returns:
        Number of files written.
    """
    file_count = 0
    with pyzipper.ZipFile(archive_path, "w", compression=pyzipper.ZIP_DEFLATED) as zip_file:
        for directory, directory_names, file_names in os.walk(source_directory):
            directory_names.sort()
            for file_name in sorted(file_names):
                file_path = Path(directory) / file_name
                archive_name = file_path.relative_to(source_directory).as_posix()
                zip_file.write(file_path, arcname=archive_name)
                file_count += 1
    return file_count


def run_seven_zip(
    executable: Path,
    archive_path: Path,
    source_directory: Path,
    password: str,
) -> SevenZipResult:
    """Run 7-Zip to create an encrypted 7z archive of ``source_directory``.

    Header encryption (``-mhe=on``) hides file names as well as content.
    Blocks until 7-Zip exits; no timeout is applied.
    """
    command = [
        str(executable),
        "a",
        "-t7z",
        "-mhe=on",
        f"-p{password}",
        "-y",
        str(Path(archive_path).resolve()),
        "*",
    ]
    logger.info("Running 7-Zip: %s a -t7z -mhe=on -p*** %s", executable, archive_path)
    completed = subprocess.run(
        command,
        cwd=str(source_directory),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
    )
    if completed.returncode != 0:
        logger.error("7-Zip exited with code %d: %s", completed.returncode, completed.stderr.strip())
    return SevenZipResult(exit_code=completed.returncode, success=completed.returncode == 0)


def discard_partial_archive(archive_path: Path) -> None:
    """Remove whatever a failed build left at ``archive_path``."""
    with suppress(OSError):
        archive_path.unlink()
        logger.warning("Removed incomplete archive %s", archive_path)


def build_archive(
    staging_root: Path,
    destination_directory: Path,
    stem: str,
    password_mode: bool = False,
    password: str | None = None,
    seven_zip_directory: Path | None = None,
) -> Path:
    """Compress ``staging_root`` into ``destination_directory/<stem>.<ext>``.

    An existing archive at the target path is deleted first.

    Returns:
        Path of the created archive.

    Raises:
        BuildError: If compression fails. Carries the exit code when 7-Zip
            exited non-zero.
    """
    archive_path = Path(destination_directory) / f"{stem}.{archive_extension(password_mode)}"

    try:
        if archive_path.exists():
            logger.warning("Replacing existing archive %s", archive_path)
            archive_path.unlink()
    except OSError as error:
        raise BuildError(f"Cannot replace existing archive {archive_path}: {error}") from error

    if password_mode:
        if not password:
            raise BuildError("Password mode requires a non-empty password")
        if seven_zip_directory is None:
            raise BuildError("Password mode requires the 7-Zip directory")
        try:
            result = run_seven_zip(
                seven_zip_executable(seven_zip_directory), archive_path, staging_root, password
            )
        except OSError as error:
            discard_partial_archive(archive_path)
            raise BuildError(f"Cannot run 7-Zip: {error}") from error
        if not result.success:
            discard_partial_archive(archive_path)
            raise BuildError(
                f"7-Zip failed with exit code {result.exit_code}", exit_code=result.exit_code
            )
    else:
        try:
            file_count = create_zip_archive(archive_path, staging_root)
        except (OSError, pyzipper.BadZipFile) as error:
            discard_partial_archive(archive_path)
            raise BuildError(f"Cannot write {archive_path}: {error}") from error
        logger.info("Wrote %d files to %s", file_count, archive_path)

    return archive_path
