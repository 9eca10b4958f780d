"""CLI module for dumping and restoring development databases.

Provides commands for profile management, dumping every table of a database
to JSON and restoring a dump into a (possibly drifted) database.

Usage:
    db-restore setup dev --provider postgres --database app
    db-restore profiles
    db-restore dump dev --out ./db-backup
    db-restore restore dev --in ./db-backup
    db-restore validate --in ./db-backup
    db-restore remove dev

Commands:
    setup     - Create or replace a connection profile
    profiles  - List saved profiles
    remove    - Delete a profile
    dump      - Dump all tables to JSON
    restore   - Restore tables from a JSON dump
    validate  - Check a dump directory without touching a database
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from db_restore import __version__
from db_restore.backup.archive import archive_dump
from db_restore.backup.dump import perform_dump
from db_restore.backup.files import clear_dump, dump_exists, read_metadata
from db_restore.backup.restore import perform_restore
from db_restore.backup.validate import validate_dump
from db_restore.config.models import DatabaseProfile
from db_restore.config.profiles import (
    delete_profile,
    list_profiles,
    load_profile,
    profile_exists,
    save_profile,
)
from db_restore.constants import DEFAULT_DUMP_DIR, PROVIDER_DEFAULTS
from db_restore.errors import (
    DbRestoreError,
    DumpNotFoundError,
    ProfileNotFoundError,
    ProviderConnectionError,
)
from db_restore.factory import check_connection, create_provider, resolve_password

console = Console()

logger = logging.getLogger(__name__)

PROVIDERS = ["postgres", "mysql", "sqlite"]


# ============================================================================
# Output helpers
# ============================================================================


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich.

    Restore warnings are printed in the command summary, so only errors are
    logged unless ``--verbose`` is given.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _success(message: str) -> None:
    console.print(f"[bold green]v[/bold green] {escape(message)}")


def _warn(message: str) -> None:
    console.print(f"[yellow]! {escape(message)}[/yellow]")


def _error(message: str, hint: str | None = None) -> None:
    console.print(f"[bold red]x[/bold red] [red]Error: {escape(message)}[/red]")
    if hint:
        console.print(f"  [dim]Hint: {escape(hint)}[/dim]")


def _hint_for(err: Exception, profile_name: str | None, provider: str | None) -> str | None:
    """Suggest a next step for common failures."""
    message = str(err)
    lowered = message.lower()
    name = profile_name or "<name>"

    if isinstance(err, ProfileNotFoundError):
        return "Run: db-restore profiles to see available profiles"
    if isinstance(err, DumpNotFoundError):
        return f"Run: db-restore dump {name} first"
    if "refused" in lowered or "connect call failed" in lowered:
        check = "pg_isready" if provider == "postgres" else "mysqladmin ping"
        return f"Is {provider or 'the server'} running? Check with: {check}"
    if "authentication" in lowered or "access denied" in lowered or "password" in lowered:
        return (
            f"Check your password (or DB_RESTORE_PASSWORD). "
            f"Run: db-restore setup {name} to reconfigure"
        )
    if "does not exist" in lowered or "unknown database" in lowered:
        return f"Create it first or check the profile: db-restore setup {name}"
    if isinstance(err, ProviderConnectionError):
        return "Check your connection details and try again"
    return None


def _report_failure(err: Exception, profile: DatabaseProfile | None, name: str | None) -> int:
    provider = profile.provider if profile else None
    _error(str(err), _hint_for(err, name, provider))
    logger.debug("Command failed", exc_info=err)
    return 1


def _print_summary(headers: list[str], rows: list[list[str]], total: list[str]) -> None:
    table = Table(show_header=True, header_style="bold")
    for header in headers:
        table.add_column(header, justify="right" if header == "Rows" else "left")
    for row in rows:
        table.add_row(*[escape(cell) for cell in row])
    table.add_section()
    table.add_row(*[f"[bold]{cell}[/bold]" for cell in total])
    console.print(table)


def _ask_password(profile: DatabaseProfile) -> str | None:
    """``DB_RESTORE_PASSWORD`` or an interactive prompt; None for sqlite."""
    if not profile.is_server:
        return None
    password = resolve_password(profile)
    if password is None:
        password = Prompt.ask("Password", password=True, console=console)
    return password


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_setup(args: argparse.Namespace) -> int:
    """Async implementation for setup command.

    Missing required fields are prompted for; host, port and user fall back
    to the provider defaults.

    Args:
        args: Parsed arguments with name, provider, host, port, database,
            user, path, force and skip_check.

    Returns:
        0 on success or cancel, 1 on failure.
    """
    name = args.name

    if profile_exists(name) and not args.force:
        if not Confirm.ask(
            f'Profile "{name}" already exists. Overwrite?', default=False, console=console
        ):
            console.print("Setup cancelled.", style="dim")
            return 0

    provider = args.provider or Prompt.ask("Provider", choices=PROVIDERS, console=console)

    fields: dict = {"name": name, "provider": provider}
    if provider == "sqlite":
        fields["path"] = args.path or Prompt.ask("Database file path", console=console)
    else:
        defaults = PROVIDER_DEFAULTS[provider]
        fields["host"] = args.host or defaults["host"]
        fields["port"] = args.port or defaults["port"]
        fields["database"] = args.database or Prompt.ask("Database", console=console)
        fields["user"] = args.user or defaults["user"]

    try:
        profile = DatabaseProfile(**fields)
    except ValidationError as e:
        _error(f"Invalid profile: {e.errors()[0]['msg']}")
        return 1

    if not args.skip_check:
        console.print("Testing connection...", style="dim")
        try:
            await check_connection(profile, _ask_password(profile))
        except ProviderConnectionError as e:
            _error(str(e), "Check your connection details and try again")
            return 1
        _success("Connected.")

    save_profile(profile)
    _success(f'Profile "{name}" saved.')
    return 0


def _handle_previous_dump(out_dir: Path, on_existing: str) -> bool:
    """Deal with a complete dump already in ``out_dir``.

    Returns:
        False when the user cancelled the dump.
    """
    meta = read_metadata(out_dir)
    _warn(f"Previous dump found ({meta.timestamp}, {len(meta.tables)} tables)")

    choice = on_existing
    if choice == "ask":
        choice = Prompt.ask(
            "Previous dump found. What would you like to do?",
            choices=["archive", "overwrite", "cancel"],
            default="archive",
            console=console,
        )

    if choice == "cancel":
        console.print("Dump cancelled.", style="dim")
        return False
    if choice == "archive":
        archive_path = archive_dump(out_dir)
        console.print(f"Archived to {escape(str(archive_path))}", style="cyan")
    else:
        clear_dump(out_dir)
    return True


async def _async_dump(args: argparse.Namespace) -> int:
    """Async implementation for dump command.

    Args:
        args: Parsed arguments with name, out and on_existing.

    Returns:
        0 on success or cancel, 1 on failure.
    """
    profile: DatabaseProfile | None = None
    try:
        profile = load_profile(args.name)
        console.print(
            f"Profile: [bold cyan]{escape(args.name)}[/bold cyan] "
            f"({profile.provider} @ {escape(profile.describe())})"
        )

        out_dir = Path(args.out)
        if dump_exists(out_dir) and not _handle_previous_dump(out_dir, args.on_existing):
            return 0

        async with create_provider(profile, _ask_password(profile)) as provider:
            console.print("Dumping tables...", style="dim")
            result = await perform_dump(provider, profile.provider, out_dir)
    except (DbRestoreError, OSError, ValueError) as e:
        return _report_failure(e, profile, args.name)

    _print_summary(
        ["Table", "Rows"],
        [[t.table, str(t.row_count)] for t in result.tables],
        ["Total", str(result.total_rows)],
    )
    _success(f"Dump saved to {out_dir} ({len(result.tables)} files)")
    return 0


async def _async_restore(args: argparse.Namespace) -> int:
    """Async implementation for restore command.

    Args:
        args: Parsed arguments with name and in_dir.

    Returns:
        0 on success, 1 on failure.
    """
    profile: DatabaseProfile | None = None
    try:
        profile = load_profile(args.name)
        if not dump_exists(args.in_dir):
            raise DumpNotFoundError(f"No complete dump found in {args.in_dir}")

        async with create_provider(profile, _ask_password(profile)) as provider:
            console.print("Restoring...", style="dim")
            result = await perform_restore(provider, args.in_dir)
    except (DbRestoreError, OSError, ValueError) as e:
        return _report_failure(e, profile, args.name)

    _print_summary(
        ["Table", "Rows", "Strategy"],
        [[t.table, str(t.row_count), t.strategy] for t in result.tables],
        ["Total", str(result.total_rows), ""],
    )
    for warning in result.warnings:
        _warn(warning)
    _success(
        f"Restore complete ({result.total_rows} rows across {len(result.tables)} tables)"
    )
    return 0


# ============================================================================
# Sync command wrappers
# ============================================================================


def cmd_setup(args: argparse.Namespace) -> int:
    """Create or replace a profile.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_setup(args))


def cmd_dump(args: argparse.Namespace) -> int:
    """Dump all tables of a profile's database.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_dump(args))


def cmd_restore(args: argparse.Namespace) -> int:
    """Restore a dump into a profile's database.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_restore(args))


def cmd_profiles(args: argparse.Namespace) -> int:
    """List saved profiles.

    Reads only the local profile store -- no database calls.

    Returns:
        0 always (informational command).
    """
    profiles = list_profiles()

    if not profiles:
        console.print("No profiles configured. Run: db-restore setup <name>", style="cyan")
        return 0

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("Profile", style="bold cyan")
    table.add_column("Provider")
    table.add_column("Connection")

    for profile in profiles:
        table.add_row(escape(profile.name), profile.provider, escape(profile.describe()))

    console.print(table)
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    """Delete a profile.

    Returns:
        0 on success, 1 if the profile does not exist.
    """
    try:
        delete_profile(args.name)
    except ProfileNotFoundError as e:
        return _report_failure(e, None, args.name)

    _success(f'Profile "{args.name}" removed.')
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a dump directory offline.

    Returns:
        0 if the dump is valid (warnings allowed), 1 otherwise.
    """
    result = validate_dump(args.in_dir)

    console.print(f"Validating: [bold]{escape(str(args.in_dir))}[/bold]")

    for error in result.errors:
        console.print(f"  [red]- {escape(error)}[/red]")
    for warning in result.warnings:
        console.print(f"  [yellow]- {escape(warning)}[/yellow]")

    if result.valid:
        suffix = " (with warnings)" if result.warnings else ""
        _success(f"Dump is valid{suffix}")
        return 0

    console.print(f"[bold red]x[/bold red] Dump is invalid ({len(result.errors)} errors)")
    return 1


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="db-restore",
        description="Database dump & restore for local development",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show detailed (DEBUG) log output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # setup command
    p_setup = subparsers.add_parser(
        "setup",
        help="Create or replace a connection profile",
    )
    p_setup.add_argument("name", help="Profile name")
    p_setup.add_argument("--provider", choices=PROVIDERS, help="Database provider")
    p_setup.add_argument("--host", help="Server host (default: localhost)")
    p_setup.add_argument("--port", type=int, help="Server port (default: provider's port)")
    p_setup.add_argument("--database", help="Database name")
    p_setup.add_argument("--user", help="Database user (default: provider's admin user)")
    p_setup.add_argument("--path", help="Database file path (sqlite)")
    p_setup.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing profile without asking",
    )
    p_setup.add_argument(
        "--skip-check",
        action="store_true",
        help="Save without testing the connection",
    )
    p_setup.set_defaults(func=cmd_setup)

    # profiles command
    p_profiles = subparsers.add_parser(
        "profiles",
        help="List saved profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    # remove command
    p_remove = subparsers.add_parser(
        "remove",
        help="Delete a profile",
    )
    p_remove.add_argument("name", help="Profile name")
    p_remove.set_defaults(func=cmd_remove)

    # dump command
    p_dump = subparsers.add_parser(
        "dump",
        help="Dump all tables to JSON",
    )
    p_dump.add_argument("name", help="Profile name")
    p_dump.add_argument(
        "--out",
        default=DEFAULT_DUMP_DIR,
        help=f"Output directory (default: {DEFAULT_DUMP_DIR})",
    )
    p_dump.add_argument(
        "--on-existing",
        choices=["ask", "archive", "overwrite", "cancel"],
        default="ask",
        help="What to do with a previous dump in the output directory (default: ask)",
    )
    p_dump.set_defaults(func=cmd_dump)

    # restore command
    p_restore = subparsers.add_parser(
        "restore",
        help="Restore tables from a JSON dump",
    )
    p_restore.add_argument("name", help="Profile name")
    p_restore.add_argument(
        "--in",
        dest="in_dir",
        default=DEFAULT_DUMP_DIR,
        help=f"Input directory (default: {DEFAULT_DUMP_DIR})",
    )
    p_restore.set_defaults(func=cmd_restore)

    # validate command
    p_validate = subparsers.add_parser(
        "validate",
        help="Check a dump directory without touching a database",
    )
    p_validate.add_argument(
        "--in",
        dest="in_dir",
        default=DEFAULT_DUMP_DIR,
        help=f"Input directory (default: {DEFAULT_DUMP_DIR})",
    )
    p_validate.set_defaults(func=cmd_validate)

    args = parser.parse_args()
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
