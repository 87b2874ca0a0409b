from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import Settings
from .version import __version__


@dataclass
class BannerInfo:
    version: str
    command: str
    mode: str
    dry_run: bool
    verbose: bool
    include_profiles: bool
    prefix: str
    folder_prefix: str
    source_dir: str
    destination_dir: str


def build_banner_info(
    settings: Settings,
    *,
    command: str,
    dry_run: bool = False,
    verbose: bool = False,
) -> BannerInfo:
    """Build a BannerInfo instance from settings and runtime flags."""
    return BannerInfo(
        version=__version__,
        command=command,
        mode=settings.mode.value,
        dry_run=dry_run,
        verbose=verbose,
        include_profiles=settings.include_profiles,
        prefix=settings.prefix,
        folder_prefix=settings.folder_prefix,
        source_dir=str(settings.source_dir) if settings.source_dir else "(not set)",
        destination_dir=str(settings.destination_dir) if settings.destination_dir else "(not set)",
    )


def print_startup_banner(info: BannerInfo, console: Console) -> None:
    """Print a styled startup banner showing version and configuration."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="cyan bold", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Version", f"[bold]{escape(info.version)}[/bold]")
    table.add_row("Command", info.command)

    mode_parts = [f"[bold]{info.mode.upper()}[/bold]"] if info.command == "organize" else []
    if info.dry_run:
        mode_parts.append("[yellow]DRY-RUN[/yellow]")
    if info.verbose:
        mode_parts.append("[cyan]VERBOSE[/cyan]")
    if info.include_profiles and info.command == "organize":
        mode_parts.append("[cyan]PROFILES[/cyan]")
    if mode_parts:
        table.add_row("Mode", " ".join(mode_parts))

    table.add_row("Prefix", escape(info.prefix))
    table.add_row("Source", escape(info.source_dir))
    if info.command == "organize":
        table.add_row("Folder Prefix", escape(info.folder_prefix))
        table.add_row("Destination", escape(info.destination_dir))

    panel = Panel(
        table,
        title="[bold white]CAPTURE ARCHIVE[/bold white]",
        border_style="blue",
        padding=(1, 2),
    )

    console.print()
    console.print(panel)
    console.print()
