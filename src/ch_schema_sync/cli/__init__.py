"""CLI for checking and repairing schema drift across a replica fleet.

Usage:
    ch-schema-sync --config config.yml
    ch-schema-sync --config config.yml --sync
    ch-schema-sync --config config.yml --sync --drop-columns --debug

Options:
    --config        Path to the desired-state file (YAML or TOML)
    --sync          Apply fixes (create objects, add/modify columns)
    --drop-columns  Also drop excess columns (only with --sync)
    --debug         Debug output: every issued statement and the full drift report

Exit status is 1 when the configuration is invalid, a server cannot be
connected or disconnected, or a database cannot be selected.  Drift on its
own never fails the run.
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ch_schema_sync.config.loader import DEFAULT_CONFIG_PATH, load_sync_config
from ch_schema_sync.errors import ConfigError, DatabaseSelectError, ReplicaPoolError
from ch_schema_sync.logging_setup import configure_logging
from ch_schema_sync.schema.models import FixPolicy, SyncReport
from ch_schema_sync.schema.sync import run_sync

console = Console()
logger = logging.getLogger(__name__)


# ============================================================================
# Report rendering
# ============================================================================


def _render_report(report: SyncReport, policy: FixPolicy, verbose: bool = False) -> None:
    """Print a per-replica summary of the run.

    With ``verbose``, every divergence and read error follows the table.
    """
    summary: dict[str, dict[str, int]] = {}
    for check in report.checks:
        row = summary.setdefault(
            check.host, {"objects": 0, "divergences": 0, "errors": 0, "applied": 0, "failed": 0}
        )
        row["objects"] += 1
        row["divergences"] += len(check.divergences)
        if check.error is not None:
            row["errors"] += 1
    for fix in report.fixes:
        row = summary.setdefault(
            fix.host, {"objects": 0, "divergences": 0, "errors": 0, "applied": 0, "failed": 0}
        )
        row["applied" if fix.success else "failed"] += 1

    table = Table(title="Schema Check", show_header=True, header_style="bold")
    table.add_column("Replica")
    table.add_column("Objects", justify="right")
    table.add_column("Divergences", justify="right", style="yellow")
    table.add_column("Read errors", justify="right", style="red")
    table.add_column("Fixed", justify="right", style="green")
    table.add_column("Fix failed", justify="right", style="red")

    for host, row in summary.items():
        table.add_row(
            host,
            str(row["objects"]),
            str(row["divergences"]) if row["divergences"] else "-",
            str(row["errors"]) if row["errors"] else "-",
            str(row["applied"]) if row["applied"] else "-",
            str(row["failed"]) if row["failed"] else "-",
        )

    console.print(table)

    if verbose and not report.in_sync:
        console.print(report.format_report(), markup=False)

    if report.in_sync:
        console.print("[bold green]v[/bold green] Schema in sync on every replica.")
    elif not policy.apply_fixes:
        console.print(
            "[dim]To apply fixes, add[/dim] [cyan]--sync[/cyan] "
            "[dim](and[/dim] [cyan]--drop-columns[/cyan] [dim]to remove excess columns).[/dim]"
        )


# ============================================================================
# Command implementation
# ============================================================================


async def _async_check(args: argparse.Namespace) -> int:
    """Async implementation of the check/sync run.

    Args:
        args: Parsed arguments.

    Returns:
        0 on a completed run, 1 on a fatal error.
    """
    try:
        config = load_sync_config(args.config)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    policy = FixPolicy(apply_fixes=args.sync, allow_column_drop=args.drop_columns)
    if args.drop_columns and not args.sync:
        logger.warning("--drop-columns has no effect without --sync")

    try:
        report = await run_sync(config, policy)
    except ReplicaPoolError as e:
        console.print(f"[bold red]x[/bold red] Failed to {escape(e.operation)} replicas:")
        console.print(str(e), markup=False)
        return 1
    except DatabaseSelectError as e:
        console.print(f"[bold red]x[/bold red] Failed to select database '{escape(e.database)}':")
        console.print("\n".join(f.message for f in e.failures), markup=False)
        return 1

    _render_report(report, policy, verbose=args.debug)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Check (and with ``--sync``, repair) every configured object.

    Wraps the async implementation with ``asyncio.run()``.
    """
    configure_logging(verbose=args.debug)
    return asyncio.run(_async_check(args))


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ch-schema-sync",
        description="Detect and repair schema drift across ClickHouse replicas",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to the desired-state config (YAML or TOML, default: config.yml)",
    )
    parser.add_argument(
        "--sync",
        action="store_true",
        help="Sync schema with config (create objects, add and modify columns)",
    )
    parser.add_argument(
        "--drop-columns",
        action="store_true",
        help="Drop excess columns (only together with --sync)",
    )
    parser.add_argument(
        "--debug",
        "--verbose",
        "-v",
        dest="debug",
        action="store_true",
        help="Debug output, including issued statements",
    )
    parser.set_defaults(func=cmd_check)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for a completed run, 1 for fatal errors).
    """
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
