"""CLI module for schema synchronization.

Provides commands for database profile management, drift planning, schema
synchronization, and audit history.

Usage:
    schema-sync profiles
    schema-sync use local
    schema-sync status
    schema-sync plan --module app.models
    schema-sync sync --module app.models --lockdown
    schema-sync history --table people --limit 20

Commands:
    profiles  - List available profiles
    use       - Test a profile's connection and make it the active profile
    status    - Show active profile and sync settings
    plan      - Show detected changes without touching the database
    sync      - Run a synchronization pass
    history   - Show recorded schema changes
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from schema_sync.config.loader import load_db_config
from schema_sync.errors import SchemaSyncError
from schema_sync.factory import (
    ProfileNotFoundError,
    get_active_profile_name,
    get_adapter,
    read_profile_lock,
    write_profile_lock,
)
from schema_sync.schema.audit import AUDIT_TABLE, ChangeAuditLog
from schema_sync.schema.introspector import SchemaIntrospector
from schema_sync.schema.models import SyncResult
from schema_sync.schema.policy import SyncOptions
from schema_sync.schema.sync import plan_schema, resolve_entities, synchronize_schema

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _sync_options(args: argparse.Namespace) -> SyncOptions:
    """Merge ``[sync]`` settings from db.toml with command-line overrides."""
    try:
        options = load_db_config().sync
    except FileNotFoundError:
        options = SyncOptions()

    updates: dict = {}
    if getattr(args, "modules", None):
        updates["modules"] = args.modules
    if getattr(args, "lockdown", False):
        updates["lockdown"] = True
    if getattr(args, "no_log", False):
        updates["log_only"] = False
    return options.model_copy(update=updates)


def _render_changes(result: SyncResult, title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Table", style="dim")
    table.add_column("Change")
    table.add_column("Column")
    table.add_column("Observed")
    table.add_column("Declared")
    table.add_column("Status")

    audited = {(r.table, r.column, r.kind) for r in result.audited}
    failed = [f.change for f in result.audit_failures]

    for change in result.changes:
        column = getattr(change, "column", "")
        observed = getattr(change, "old_type", "") or ""
        declared = getattr(change, "new_type", None) or getattr(change, "sql_type", "")

        status: list[str] = []
        if change in result.applied:
            status.append("[green]applied[/green]")
        if (change.table, column or None, change.kind) in audited:
            status.append("[cyan]logged[/cyan]")
        if change in failed:
            status.append("[red]log failed[/red]")

        table.add_row(
            change.table,
            change.kind.value,
            column,
            observed,
            declared,
            ", ".join(status) or "-",
        )

    return table


def _select_entities(options: SyncOptions) -> list[type]:
    """Resolve the record types for a pass; an empty selection is an error.

    A CLI process registers nothing on its own, so without ``--module`` or
    ``[sync] modules`` there is nothing to synchronize.
    """
    try:
        entities = resolve_entities(modules=options.modules)
    except ImportError as e:
        raise SchemaSyncError(f"Cannot import entity module: {e}") from e

    if not entities:
        raise SchemaSyncError(
            "No @entity record types found.\n"
            "Pass --module <package.models> or set modules in the [sync] section of db.toml."
        )
    return entities


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_use(args: argparse.Namespace) -> int:
    """Test the named profile's connection and write the lock file."""
    console.print(f"Connecting to profile [bold cyan]{args.profile}[/bold cyan]...", style="dim")

    adapter = await get_adapter(profile_name=args.profile)
    try:
        await adapter.test_connection()
    finally:
        await adapter.close()

    write_profile_lock(args.profile)
    console.print(f"[bold green]v[/bold green] Active profile: [bold cyan]{args.profile}[/bold cyan]")
    return 0


async def _async_plan(args: argparse.Namespace) -> int:
    """Show detected changes and unmapped tables.  Issues catalog queries only."""
    options = _sync_options(args)
    entities = _select_entities(options)

    adapter = await get_adapter(env_prefix=args.env_prefix)
    try:
        result = await plan_schema(adapter, entities=entities)
        existing = await SchemaIntrospector(adapter).list_tables()
    finally:
        await adapter.close()

    mapped = {name.lower() for name in result.tables} | {AUDIT_TABLE}
    unmapped = [name for name in existing if name.lower() not in mapped]

    if not result.has_changes:
        console.print(
            f"[bold green]v[/bold green] {len(result.tables)} table(s) in sync"
        )
    else:
        console.print(_render_changes(result, "Detected Changes"))

    if unmapped:
        console.print(f"[dim]Tables with no record type: {', '.join(unmapped)}[/dim]")
    return 0


async def _async_sync(args: argparse.Namespace) -> int:
    """Run a synchronization pass."""
    options = _sync_options(args)
    entities = _select_entities(options)

    mode = "lockdown" if options.lockdown else "apply"
    logging_mode = "log" if options.log_only else "no log"
    console.print(f"Synchronizing schema ([bold]{mode}[/bold], {logging_mode})...", style="dim")

    adapter = await get_adapter(env_prefix=args.env_prefix)
    try:
        result = await synchronize_schema(adapter, options, entities=entities)
    finally:
        await adapter.close()

    if not result.has_changes:
        console.print(
            f"[bold green]v[/bold green] {len(result.tables)} table(s) in sync"
        )
        return 0

    console.print(_render_changes(result, "Schema Changes"))

    if result.audit_failures:
        console.print(
            f"[bold yellow]![/bold yellow] {len(result.audit_failures)} audit "
            f"record(s) could not be written"
        )
        return 1
    return 0


async def _async_history(args: argparse.Namespace) -> int:
    """Print audit records, newest first."""
    adapter = await get_adapter(env_prefix=args.env_prefix)
    try:
        records = await ChangeAuditLog(adapter).history(table=args.table, limit=args.limit)
    finally:
        await adapter.close()

    if not records:
        console.print("[dim]No schema changes recorded.[/dim]")
        return 0

    table = Table(title="Schema Change Log", show_header=True, header_style="bold")
    table.add_column("Timestamp", style="dim")
    table.add_column("Table")
    table.add_column("Column")
    table.add_column("Change")
    table.add_column("Old Type")
    table.add_column("New Type")

    for record in records:
        table.add_row(
            record.timestamp.isoformat(sep=" "),
            record.table,
            record.column or "",
            record.kind.value,
            record.old_type or "",
            record.new_type or "",
        )

    console.print(table)
    return 0


def _run(coro) -> int:
    """Run an async command, printing package errors instead of tracebacks."""
    try:
        return asyncio.run(coro)
    except (SchemaSyncError, FileNotFoundError) as e:
        console.print(f"\n[bold red]x[/bold red] {e}")
        return 1


# ============================================================================
# Command wrappers
# ============================================================================


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.
    """
    try:
        config = load_db_config()
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    current = read_profile_lock()

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = current profile")

    return 0


def cmd_use(args: argparse.Namespace) -> int:
    """Make a profile active after testing its connection."""
    return _run(_async_use(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show active profile and effective sync settings.

    Reads only local files -- no database calls.
    """
    try:
        profile = get_active_profile_name(env_prefix=args.env_prefix)
    except ProfileNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        return 0

    options = _sync_options(args)

    table = Table(title="Schema Sync Status", show_header=False)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("Active profile", f"[bold cyan]{profile}[/bold cyan]")
    table.add_row("Lockdown", str(options.lockdown))
    table.add_row("Log only", str(options.log_only))
    table.add_row("Modules", ", ".join(options.modules) or "(all registered)")

    console.print(table)
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    """Show detected changes."""
    return _run(_async_plan(args))


def cmd_sync(args: argparse.Namespace) -> int:
    """Run a synchronization pass."""
    return _run(_async_sync(args))


def cmd_history(args: argparse.Namespace) -> int:
    """Show recorded schema changes."""
    return _run(_async_history(args))


# ============================================================================
# Main entry point
# ============================================================================


def _add_module_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--module",
        "-m",
        dest="modules",
        action="append",
        help="Module defining @entity record types (repeatable)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="schema-sync",
        description="Keep a MySQL schema in sync with declared record types",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help="Prefix for environment variable lookup (e.g., APP_ reads APP_DB_PROFILE)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every DDL statement",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_profiles = subparsers.add_parser("profiles", help="List available profiles")
    p_profiles.set_defaults(func=cmd_profiles)

    p_use = subparsers.add_parser("use", help="Test and activate a profile")
    p_use.add_argument("profile", help="Profile name from db.toml")
    p_use.set_defaults(func=cmd_use)

    p_status = subparsers.add_parser("status", help="Show active profile and settings")
    _add_module_option(p_status)
    p_status.set_defaults(func=cmd_status)

    p_plan = subparsers.add_parser("plan", help="Show detected changes")
    _add_module_option(p_plan)
    p_plan.set_defaults(func=cmd_plan)

    p_sync = subparsers.add_parser("sync", help="Synchronize the schema")
    _add_module_option(p_sync)
    p_sync.add_argument(
        "--lockdown",
        action="store_true",
        help="Do not execute any DDL",
    )
    p_sync.add_argument(
        "--no-log",
        action="store_true",
        help="Do not write audit records",
    )
    p_sync.set_defaults(func=cmd_sync)

    p_history = subparsers.add_parser("history", help="Show recorded schema changes")
    p_history.add_argument("--table", help="Only changes to this table")
    p_history.add_argument("--limit", type=int, default=50, help="Maximum records")
    p_history.set_defaults(func=cmd_history)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
