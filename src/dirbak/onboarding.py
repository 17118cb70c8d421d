"""First-run setup and environment checking for dirbak."""

from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from dirbak.archive import seven_zip_executable
from dirbak.blacklist import ensure_blacklist
from dirbak.config import (
    config_path,
    default_blacklist_path,
    default_config,
    load_config,
    resolve_setting,
    save_config,
)

console = Console()


@dataclass
class EnvironmentCheckResult:
    """Result of an environment check."""

    name: str
    available: bool
    version: str
    message: str


def check_python() -> EnvironmentCheckResult:
    """Check Python version."""
    version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    return EnvironmentCheckResult(name="Python", available=True, version=version, message="")


def _seven_zip_version(executable: str) -> str:
    try:
        result = subprocess.run([executable], capture_output=True, text=True, timeout=10)
    except (subprocess.TimeoutExpired, OSError):
        return "unknown"
    for line in result.stdout.splitlines():
        if line.strip():
            return line.strip()
    return "unknown"


def check_seven_zip(directory: Path | None = None) -> EnvironmentCheckResult:
    """Check that 7-Zip is available for password-protected backups.

    With ``directory`` the executable must sit inside it; otherwise PATH is searched.
    """
    if directory is not None:
        executable = seven_zip_executable(Path(directory))
        path = str(executable) if executable.is_file() else None
        missing_message = f"7-Zip executable not found: {executable}"
    else:
        path = shutil.which("7z")
        missing_message = (
            "7-Zip is not on PATH. It is only needed for --password-protect.\n\n"
            "  Pass its directory with --seven-zip-dir or set defaults.seven_zip_directory."
        )
    if not path:
        return EnvironmentCheckResult(
            name="7-Zip", available=False, version="", message=missing_message
        )
    return EnvironmentCheckResult(
        name="7-Zip", available=True, version=_seven_zip_version(path), message=""
    )


def run_environment_checks(seven_zip_directory: Path | None = None) -> list[EnvironmentCheckResult]:
    """Run all environment checks and return results."""
    return [check_python(), check_seven_zip(seven_zip_directory)]


def display_environment_checks(checks: list[EnvironmentCheckResult]) -> bool:
    """Display environment check results. Returns True if all passed."""
    console.print("\nChecking environment...")
    all_passed = True
    for check in checks:
        if check.available:
            console.print(f"  [green]OK[/green] {check.name} {check.version}")
        else:
            console.print(f"  [red]FAIL[/red] {check.name}")
            if check.message:
                console.print(f"\n  {check.message}")
            all_passed = False
    return all_passed


def run_init() -> None:
    """Write config.yaml and the default blacklist if they don't exist yet."""
    console.print(Panel("dirbak setup", style="cyan"))

    if load_config() is None:
        save_config(default_config())
        console.print(f"  [green]Created[/green] {config_path()}")
    else:
        console.print(f"  [dim]Exists[/dim]  {config_path()}")

    blacklist_path = default_blacklist_path()
    if ensure_blacklist(blacklist_path):
        console.print(f"  [green]Created[/green] {blacklist_path}")
    else:
        console.print(f"  [dim]Exists[/dim]  {blacklist_path}")

    console.print("\nEdit the blacklist to change which files are left out of backups.")


def run_doctor(seven_zip_directory: Path | None = None) -> bool:
    """Check environment and configuration. Returns True if everything is usable."""
    config = load_config()
    directory = resolve_setting(seven_zip_directory, "seven_zip_directory", config)
    checks = run_environment_checks(Path(directory) if directory else None)
    passed = display_environment_checks(checks)

    console.print("\nConfiguration:")
    if config is None:
        console.print(f"  [yellow]No config file[/yellow] ({config_path()}). Run 'dirbak init'.")
    else:
        console.print(f"  [green]OK[/green] {config_path()}")
    blacklist = Path(resolve_setting(None, "blacklist", config))
    if blacklist.exists():
        console.print(f"  [green]OK[/green] {blacklist}")
    else:
        console.print(f"  [yellow]Missing[/yellow] {blacklist} (created on first backup)")
    return passed
