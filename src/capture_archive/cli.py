from __future__ import annotations

import argparse
import logging
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from .banner import build_banner_info, print_startup_banner
from .config import AppConfig, load_config
from .destination_builder import format_relative_destination
from .file_discovery import scan
from .logging_utils import configure_logging, render_fields_block
from .models import DiscoveredItem, RelocationResult, ScanStats, TransferMode, TransferProgress
from .relocation import Relocator
from .report import write_report
from .run_summary import log_run_recap, log_scan_summary
from .selection import select_complete, select_inventory_ids, selected_items
from .summary_table import SummaryTableRenderer
from .utils import format_bytes
from .validation import ValidationReport, validate_config_file
from .version import __version__

LOGGER = logging.getLogger(__name__)
CONSOLE = Console()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130

# How often the main thread wakes up while a relocation runs, so Ctrl-C is seen promptly
_JOIN_INTERVAL = 0.2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="capture-archive",
        description="Organize Capture One sessions into per-item archive folders.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, default=None, help="Path to a YAML configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging on the console")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write a full debug log to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="List masters and sidecars found below a source folder")
    scan_parser.add_argument("source", nargs="?", type=Path, help="Session folder to scan (default: settings.source_dir)")
    scan_parser.add_argument("--prefix", default=None, help="File name prefix to match (default: img_)")
    scan_parser.add_argument("--complete-only", action="store_true", help="Only list masters with a .cos sidecar")

    organize_parser = subparsers.add_parser("organize", help="Copy or move masters into per-item folders")
    organize_parser.add_argument("source", nargs="?", type=Path, help="Session folder to scan")
    organize_parser.add_argument("destination", nargs="?", type=Path, help="Archive root to relocate into")
    organize_parser.add_argument("--prefix", default=None, help="File name prefix to match (default: img_)")
    organize_parser.add_argument("--folder-prefix", default=None, help="Destination folder prefix (default: img)")
    mode_group = organize_parser.add_mutually_exclusive_group()
    mode_group.add_argument("--move", dest="mode", action="store_const", const=TransferMode.MOVE.value)
    mode_group.add_argument("--copy", dest="mode", action="store_const", const=TransferMode.COPY.value)
    organize_parser.add_argument("--complete-only", action="store_true", help="Skip masters without a .cos sidecar")
    organize_parser.add_argument(
        "--only",
        action="append",
        default=None,
        metavar="ID",
        help="Relocate only this inventory id (repeatable)",
    )
    organize_parser.add_argument(
        "--include-profiles",
        action="store_true",
        default=None,
        help="Also relocate .icm/.lcc profile sidecars",
    )
    organize_parser.add_argument("--report", type=Path, default=None, help="Write a CSV outcome report here")
    organize_parser.add_argument("--dry-run", action="store_true", help="Show planned destinations without writing")

    validate_parser = subparsers.add_parser("validate-config", help="Validate a YAML configuration file")
    validate_parser.add_argument("config_file", type=Path, help="Configuration file to validate")

    return parser


def _setup_logging(args: argparse.Namespace) -> None:
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    configure_logging(level, getattr(args, "log_file", None))


def _load_app_config(args: argparse.Namespace) -> Optional[AppConfig]:
    try:
        return load_config(getattr(args, "config", None))
    except (OSError, ValueError) as exc:
        LOGGER.error(
            render_fields_block(
                "Configuration Error",
                {"Config": getattr(args, "config", None) or "(defaults)", "Error": exc},
            )
        )
        return None


def _apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    settings = config.settings
    if getattr(args, "source", None) is not None:
        settings.source_dir = args.source
    if getattr(args, "destination", None) is not None:
        settings.destination_dir = args.destination
    if getattr(args, "prefix", None):
        settings.prefix = args.prefix
    if getattr(args, "folder_prefix", None):
        settings.folder_prefix = args.folder_prefix
    if getattr(args, "mode", None):
        settings.mode = TransferMode.parse(args.mode)
    if getattr(args, "include_profiles", None):
        settings.include_profiles = True
    if getattr(args, "report", None) is not None:
        settings.report_path = args.report


def _discover(config: AppConfig) -> tuple[list[DiscoveredItem], ScanStats]:
    settings = config.settings
    stats = ScanStats()
    items = scan(
        settings.source_dir,
        settings.prefix,
        locator=settings.sidecars.build_locator(),
        metadata_root=settings.metadata_root,
        stats=stats,
    )
    return items, stats


def run_scan(args: argparse.Namespace) -> int:
    _setup_logging(args)
    config = _load_app_config(args)
    if config is None:
        return EXIT_FAILURE
    _apply_cli_overrides(config, args)
    settings = config.settings

    if settings.source_dir is None:
        LOGGER.error("No source folder given; pass SOURCE or set settings.source_dir")
        return EXIT_FAILURE

    print_startup_banner(build_banner_info(settings, command="scan", verbose=args.verbose), CONSOLE)

    items, stats = _discover(config)
    if args.complete_only:
        select_complete(items)
        items = selected_items(items)

    log_scan_summary(items, stats)
    SummaryTableRenderer(CONSOLE).print_scan(items, settings.source_dir)
    return EXIT_OK


def _print_plan(items: Sequence[DiscoveredItem], relocator: Relocator) -> None:
    table = Table(title="Planned Destinations", header_style="bold cyan")
    table.add_column("Inventory Id", style="bold", no_wrap=True)
    table.add_column("Master")
    table.add_column("Destination")
    table.add_column("Sidecar")
    for item in items:
        plan = relocator.plan(item)
        sidecar = "[dim](none)[/dim]"
        if plan.primary_sidecar_path is not None:
            sidecar = escape(format_relative_destination(plan.primary_sidecar_path, relocator.destination_root))
        table.add_row(
            escape(item.inventory_id),
            escape(item.master_name),
            escape(format_relative_destination(plan.master_path, relocator.destination_root)),
            sidecar,
        )
    CONSOLE.print(table)


def _run_with_progress(relocator: Relocator, items: Sequence[DiscoveredItem]) -> RelocationResult:
    cancel = threading.Event()
    total = len(selected_items(items))

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.fields[speed]}"),
        TimeElapsedColumn(),
        console=CONSOLE,
        disable=not LOGGER.isEnabledFor(logging.INFO),
    ) as progress:
        task_id = progress.add_task("Relocating", total=total, speed="")

        def on_progress(update: TransferProgress) -> None:
            speed = (
                f"{format_bytes(update.throughput_bytes_per_second)}/s"
                if update.throughput_bytes_per_second
                else ""
            )
            progress.update(
                task_id,
                completed=update.items_processed,
                description=escape(update.current_file_name),
                speed=speed,
            )

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="relocate") as executor:
            future = executor.submit(relocator.run, items, progress=on_progress, cancel=cancel)
            while True:
                try:
                    return future.result(timeout=_JOIN_INTERVAL)
                except FutureTimeoutError:
                    continue
                except KeyboardInterrupt:
                    LOGGER.warning("Cancellation requested; finishing the current file...")
                    cancel.set()


def run_organize(args: argparse.Namespace) -> int:
    _setup_logging(args)
    config = _load_app_config(args)
    if config is None:
        return EXIT_FAILURE
    try:
        _apply_cli_overrides(config, args)
    except ValueError as exc:
        LOGGER.error("Invalid option: %s", exc)
        return EXIT_FAILURE
    settings = config.settings

    if settings.source_dir is None or settings.destination_dir is None:
        LOGGER.error("organize needs SOURCE and DEST (or settings.source_dir / settings.destination_dir)")
        return EXIT_FAILURE

    print_startup_banner(
        build_banner_info(settings, command="organize", dry_run=args.dry_run, verbose=args.verbose),
        CONSOLE,
    )

    items, stats = _discover(config)
    if args.complete_only:
        select_complete(items)
    if args.only:
        wanted = set(args.only)
        select_inventory_ids([item for item in items if item.selected], wanted)
    log_scan_summary(items, stats, level=logging.DEBUG)

    relocator = Relocator(
        settings.destination_dir,
        settings.folder_prefix,
        settings.mode,
        include_profiles=settings.include_profiles,
        settings_subpath=settings.destination_settings_subpath,
    )
    chosen = selected_items(items)

    if args.dry_run:
        try:
            _print_plan(chosen, relocator)
        except ValueError as exc:
            LOGGER.error("Cannot plan destinations: %s", exc)
            return EXIT_FAILURE
        LOGGER.info("Dry run: %d item(s) would be relocated", len(chosen))
        return EXIT_OK

    started = time.perf_counter()
    result = _run_with_progress(relocator, items)
    duration = time.perf_counter() - started

    report_path: Optional[Path] = None
    if settings.report_path is not None:
        try:
            report_path = write_report(result.records, settings.report_path)
        except OSError as exc:
            LOGGER.error(render_fields_block("Report Failed", {"Path": settings.report_path, "Error": exc}))

    log_run_recap(
        result,
        duration,
        stats=relocator.stats,
        mode=relocator.mode.value,
        report_path=str(report_path) if report_path is not None else None,
    )
    SummaryTableRenderer(CONSOLE).print_result(result, relocator.destination_root)

    if result.cancelled:
        return EXIT_CANCELLED
    if result.failed or (settings.report_path is not None and report_path is None):
        return EXIT_FAILURE
    return EXIT_OK


def _print_validation_report(report: ValidationReport) -> None:
    for issues, label, style in (
        (report.errors, "Validation Errors", "bold red"),
        (report.warnings, "Validation Warnings", "bold yellow"),
    ):
        if not issues:
            continue
        table = Table(title=label, title_style=style, header_style="bold cyan")
        table.add_column("Path", no_wrap=True)
        table.add_column("Code", no_wrap=True)
        table.add_column("Message")
        for issue in issues:
            table.add_row(escape(issue.path), escape(issue.code), escape(issue.message))
        CONSOLE.print(table)

    if not report.errors and not report.warnings:
        CONSOLE.print("[bold green]✓ Configuration passed validation.[/bold green]")
    elif not report.errors:
        CONSOLE.print("[bold green]✓ Configuration passed validation (with warnings).[/bold green]")
    else:
        CONSOLE.print(f"[bold red]✗ Configuration has {len(report.errors)} error(s).[/bold red]")


def run_validate_config(args: argparse.Namespace) -> int:
    report = validate_config_file(args.config_file)
    _print_validation_report(report)
    return EXIT_OK if report.is_valid else EXIT_FAILURE


_COMMANDS = {
    "scan": run_scan,
    "organize": run_organize,
    "validate-config": run_validate_config,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = _COMMANDS[args.command]
    try:
        return handler(args)
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted")
        return EXIT_CANCELLED


if __name__ == "__main__":
    sys.exit(main())
