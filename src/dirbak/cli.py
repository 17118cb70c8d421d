"""dirbak CLI - Typer application entry point."""

from pathlib import Path

import typer

app = typer.Typer(help="dirbak - back up project directories into rotating archives")

PASSWORD_ENVIRONMENT_VARIABLE = "DIRBAK_PASSWORD"


@app.command()
def init() -> None:
    """Create the config file and default blacklist."""
    from dirbak.onboarding import run_init

    run_init()


@app.command()
def doctor(
    seven_zip_dir: Path = typer.Option(None, "--seven-zip-dir", help="7-Zip directory to check"),
) -> None:
    """Check environment and configuration."""
    from dirbak.onboarding import run_doctor

    if not run_doctor(seven_zip_dir):
        raise typer.Exit(1)


@app.command()
def backup(
    source: Path = typer.Argument(help="Directory to back up"),
    destination: Path = typer.Option(
        None, "--destination", "-d", help="Directory receiving the archive"
    ),
    temp: Path = typer.Option(None, "--temp", help="Staging directory (default: ./tmp)"),
    blacklist: Path = typer.Option(None, "--blacklist", "-b", help="Blacklist file"),
    pattern: str = typer.Option(
        None, "--pattern", "-p", help="Archive base name (default: source directory name)"
    ),
    keep: int = typer.Option(None, "--keep", "-k", help="Number of archives to keep"),
    password_protect: bool = typer.Option(
        False, "--password-protect", help="Encrypt the archive with 7-Zip"
    ),
    seven_zip_dir: Path = typer.Option(None, "--seven-zip-dir", help="Directory containing 7z"),
    log_level: str = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Back up SOURCE into a timestamped archive and rotate old archives."""
    import os

    from rich.console import Console
    from rich.panel import Panel

    from dirbak.backup import BackupOptions, run_backup
    from dirbak.config import load_config, resolve_setting
    from dirbak.errors import BuildError, ValidationError
    from dirbak.utils import format_size, setup_logging

    console = Console()
    config = load_config()
    setup_logging(resolve_setting(log_level, "log_level", config, section="settings"))

    resolved_destination = resolve_setting(destination, "destination", config)
    resolved_seven_zip = resolve_setting(seven_zip_dir, "seven_zip_directory", config)
    resolved_blacklist = resolve_setting(blacklist, "blacklist", config)

    password = None
    if password_protect:
        password = os.environ.get(PASSWORD_ENVIRONMENT_VARIABLE)
        if password is None:
            password = typer.prompt(
                "Archive password",
                default="",
                show_default=False,
                hide_input=True,
                confirmation_prompt=True,
            )

    configured_keep = resolve_setting(keep, "keep", config)
    try:
        keep_count = int(configured_keep)
    except (TypeError, ValueError):
        console.print(
            f"[red]Invalid options: keep count must be an integer, got {configured_keep!r}[/red]"
        )
        raise typer.Exit(1)

    options = BackupOptions(
        source=source,
        destination=Path(resolved_destination) if resolved_destination else None,
        temp_directory=Path(resolve_setting(temp, "temp_directory", config)),
        blacklist=Path(resolved_blacklist) if resolved_blacklist else None,
        base_name=pattern,
        keep=keep_count,
        password_protect=password_protect,
        password=password,
        seven_zip_directory=Path(resolved_seven_zip) if resolved_seven_zip else None,
    )

    try:
        result = run_backup(options)
    except ValidationError as error:
        console.print(f"[red]Invalid options: {error}[/red]")
        raise typer.Exit(1)
    except BuildError as error:
        console.print(f"[red]Archive failed: {error}[/red]")
        raise typer.Exit(1)
    except OSError as error:
        console.print(f"[red]Copy failed: {error}[/red]")
        raise typer.Exit(1)
    finally:
        options.password = None

    counters = result.counters
    lines = [
        f"Archive:   [cyan]{result.archive_path}[/cyan]",
        f"Size:      {format_size(result.archive_size)}",
        f"Copied:    {counters.files_copied} files",
        f"Excluded:  {counters.files_excluded} files, "
        f"{counters.directories_excluded} directories",
        f"Rotated:   {len(result.rotation.removed)} old archives removed",
        f"Elapsed:   {result.elapsed_seconds:.1f}s",
    ]
    console.print(Panel("\n".join(lines), title="Backup complete", style="green"))

    for failed in result.rotation.failed:
        console.print(f"[yellow]Could not remove old archive: {failed}[/yellow]")


@app.command("list")
def list_archives(
    destination: Path = typer.Argument(help="Directory holding the archives"),
    pattern: str = typer.Option(..., "--pattern", "-p", help="Archive base name"),
    extension: str = typer.Option(None, "--extension", "-e", help="zip or 7z (default: both)"),
) -> None:
    """List backup archives for a base name, newest first."""
    from datetime import datetime

    from rich.console import Console
    from rich.table import Table

    from dirbak.archive import PLAIN_EXTENSION, PROTECTED_EXTENSION
    from dirbak.rotation import find_backup_archives
    from dirbak.utils import format_size

    console = Console()
    extensions = [extension] if extension else [PLAIN_EXTENSION, PROTECTED_EXTENSION]

    archives = []
    for current in extensions:
        archives.extend(find_backup_archives(destination, pattern, current))
    archives.sort(key=lambda path: path.stat().st_mtime, reverse=True)

    if not archives:
        console.print(f"[yellow]No archives for '{pattern}' in {destination}.[/yellow]")
        return

    table = Table(title=f"Archives - {pattern}")
    table.add_column("Name", style="cyan")
    table.add_column("Size", style="magenta", justify="right")
    table.add_column("Modified", style="green")

    for archive in archives:
        stat = archive.stat()
        modified = datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        table.add_row(archive.name, format_size(stat.st_size), modified)

    console.print(table)


@app.command("blacklist")
def show_blacklist(
    path: Path = typer.Option(None, "--path", help="Blacklist file (default from config)"),
) -> None:
    """Show the active blacklist patterns, creating the default file if missing."""
    from rich.console import Console

    from dirbak.blacklist import ensure_blacklist, load_blacklist
    from dirbak.config import load_config, resolve_setting

    console = Console()
    blacklist_path = Path(resolve_setting(path, "blacklist", load_config()))

    if ensure_blacklist(blacklist_path):
        console.print(f"[green]Created default blacklist at {blacklist_path}[/green]")

    patterns = load_blacklist(blacklist_path)
    console.print(f"[cyan]{blacklist_path}[/cyan] ({len(patterns)} patterns)")
    for current in patterns:
        console.print(f"  {current}", markup=False)
