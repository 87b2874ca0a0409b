from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .destination_builder import format_relative_destination
from .models import DiscoveredItem, ItemStatus, OutcomeRecord, RelocationResult
from .selection import count_by_status

# Color constants for status indicators
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
DIM_COLOR = "dim"

# Symbol indicators for quick scanning
SUCCESS_SYMBOL = "✓"
WARNING_SYMBOL = "⚠"
ERROR_SYMBOL = "✗"
UNSELECTED_SYMBOL = "○"

_STATUS_LABELS = {
    ItemStatus.COMPLETE: f"[{SUCCESS_COLOR}]{SUCCESS_SYMBOL} Complete[/{SUCCESS_COLOR}]",
    ItemStatus.MISSING_COS: f"[{WARNING_COLOR}]{WARNING_SYMBOL} Missing COS[/{WARNING_COLOR}]",
    ItemStatus.MISSING_RAW: f"[{ERROR_COLOR}]{ERROR_SYMBOL} Missing RAW[/{ERROR_COLOR}]",
}


class SummaryTableRenderer:
    """Renders scan results and relocation outcomes as Rich Tables."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @staticmethod
    def _get_status_color(value: int, *, is_error: bool = False, is_warning: bool = False) -> str:
        if value == 0:
            return DIM_COLOR
        if is_error:
            return ERROR_COLOR
        if is_warning:
            return WARNING_COLOR
        return SUCCESS_COLOR

    @staticmethod
    def _colorize_value(value: int, *, is_error: bool = False, is_warning: bool = False) -> str:
        color = SummaryTableRenderer._get_status_color(value, is_error=is_error, is_warning=is_warning)
        return f"[{color}]{value}[/{color}]"

    @staticmethod
    def status_label(status: ItemStatus) -> str:
        return _STATUS_LABELS[status]

    def render_items_table(self, items: Sequence[DiscoveredItem], root: Optional[Path] = None) -> Table:
        """One row per discovered master, grouped by inventory id."""
        table = Table(title="Discovered Masters", show_lines=False, header_style="bold cyan")
        table.add_column("", no_wrap=True)
        table.add_column("Inventory Id", style="bold", no_wrap=True)
        table.add_column("Master")
        table.add_column("Status", no_wrap=True)
        table.add_column("Profiles", justify="right")

        for item in sorted(items, key=lambda entry: (entry.inventory_id, entry.parsed.counter, str(entry.master_path))):
            marker = SUCCESS_SYMBOL if item.selected else f"[{DIM_COLOR}]{UNSELECTED_SYMBOL}[/{DIM_COLOR}]"
            master = format_relative_destination(item.master_path, root) if root is not None else str(item.master_path)
            table.add_row(
                marker,
                escape(item.inventory_id),
                escape(master),
                self.status_label(item.status),
                str(len(item.additional_sidecar_paths)) if item.has_profiles else f"[{DIM_COLOR}]0[/{DIM_COLOR}]",
            )
        return table

    def render_scan_totals(self, items: Sequence[DiscoveredItem]) -> Table:
        counts = count_by_status(items)
        table = Table(title="Scan Totals", show_header=True, header_style="bold cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right")
        table.add_row("Masters", self._colorize_value(len(items)))
        table.add_row("Selected", self._colorize_value(sum(1 for item in items if item.selected)))
        table.add_row("Complete", self._colorize_value(counts[ItemStatus.COMPLETE]))
        table.add_row("Missing COS", self._colorize_value(counts[ItemStatus.MISSING_COS], is_warning=True))
        table.add_row("Inventory Ids", self._colorize_value(len({item.inventory_id for item in items})))
        return table

    def render_outcome_table(self, records: Sequence[OutcomeRecord], destination_root: Optional[Path] = None) -> Table:
        table = Table(title="Relocation Outcome", header_style="bold cyan")
        table.add_column("", no_wrap=True)
        table.add_column("Inventory Id", style="bold", no_wrap=True)
        table.add_column("Master")
        table.add_column("Destination / Error")

        for record in records:
            if record.succeeded:
                destination = record.destination_master_path
                target = (
                    format_relative_destination(destination, destination_root)
                    if destination is not None and destination_root is not None
                    else str(destination)
                )
                table.add_row(
                    f"[{SUCCESS_COLOR}]{SUCCESS_SYMBOL}[/{SUCCESS_COLOR}]",
                    escape(record.item.inventory_id),
                    escape(record.item.master_name),
                    escape(target),
                )
            else:
                table.add_row(
                    f"[{ERROR_COLOR}]{ERROR_SYMBOL}[/{ERROR_COLOR}]",
                    escape(record.item.inventory_id),
                    escape(record.item.master_name),
                    f"[{ERROR_COLOR}]{escape(record.error_detail or '')}[/{ERROR_COLOR}]",
                )
        return table

    def render_result_totals(self, result: RelocationResult) -> Table:
        succeeded = len(result.succeeded)
        failed = len(result.failed)
        table = Table(title="Run Totals", header_style="bold cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right")
        table.add_row("Succeeded", self._colorize_value(succeeded))
        table.add_row("Failed", self._colorize_value(failed, is_error=True))
        if result.cancelled:
            table.add_row("Status", f"[{WARNING_COLOR}]cancelled[/{WARNING_COLOR}]")
        return table

    def print_scan(self, items: Sequence[DiscoveredItem], root: Optional[Path] = None) -> None:
        if items:
            self.console.print(self.render_items_table(items, root))
        self.console.print(self.render_scan_totals(items))

    def print_result(self, result: RelocationResult, destination_root: Optional[Path] = None) -> None:
        if result.records:
            self.console.print(self.render_outcome_table(result.records, destination_root))
        self.console.print(self.render_result_totals(result))
