"""Log summaries for scans and relocation runs.

Builds the recap blocks printed at the end of a scan or an organize run:
counts by status, the run duration and a condensed list of failures.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, List, Sequence

from .logging_utils import LogBlockBuilder
from .models import ItemStatus
from .selection import count_by_status
from .utils import format_bytes

if TYPE_CHECKING:
    from .models import DiscoveredItem, RelocationResult, RelocationStats, ScanStats

LOGGER = logging.getLogger(__name__)


def summarize_messages(entries: List[str], *, limit: int = 5) -> List[str]:
    """Summarize messages by grouping duplicates and showing top N.

    Args:
        entries: List of message strings to summarize.
        limit: Maximum number of unique messages to show.

    Returns:
        List of summary lines with duplicate counts and verbose prompt.
    """
    if not entries:
        return []
    counter = Counter(entries)
    ordered = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    lines: List[str] = []
    for message, count in ordered[:limit]:
        lines.append(f"{message} (x{count})" if count > 1 else message)
    remaining = len(ordered) - limit
    if remaining > 0:
        lines.append(f"... {remaining} more. Run with --verbose for the full list.")
    return lines


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f} s"
    minutes, remainder = divmod(int(seconds), 60)
    return f"{minutes}m {remainder:02d}s"


def log_scan_summary(
    items: Sequence[DiscoveredItem],
    stats: ScanStats | None = None,
    *,
    level: int = logging.INFO,
) -> None:
    counts = count_by_status(items)
    builder = LogBlockBuilder("Scan Summary")
    builder.add_fields(
        {
            "Masters": len(items),
            "Complete": counts[ItemStatus.COMPLETE],
            "Missing COS": counts[ItemStatus.MISSING_COS],
            "With Profiles": sum(1 for item in items if item.has_profiles),
            "Inventory Ids": len({item.inventory_id for item in items}),
        }
    )
    if stats is not None:
        builder.add_fields(
            {
                "Directories": stats.directories_scanned,
                "Files Examined": stats.files_examined,
            }
        )
        if stats.skipped_directories:
            builder.add_section("Unreadable Directories", summarize_messages(stats.skipped_directories))
    LOGGER.log(level, builder.render())


def log_run_recap(
    result: RelocationResult,
    duration: float,
    *,
    stats: RelocationStats | None = None,
    mode: str = "copy",
    report_path: str | None = None,
) -> None:
    """Log the end-of-run recap with outcome counts and failures."""
    succeeded = len(result.succeeded)
    failed = len(result.failed)
    builder = LogBlockBuilder("Run Recap")
    fields: list[tuple[str, object]] = [
        ("Mode", mode),
        ("Duration", format_duration(duration)),
        ("Succeeded", succeeded),
        ("Failed", failed),
    ]
    if stats is not None and stats.bytes_copied:
        fields.append(("Copied", format_bytes(stats.bytes_copied)))
    if result.cancelled:
        fields.append(("Status", "cancelled"))
    if report_path:
        fields.append(("Report", report_path))
    builder.add_fields(fields)

    if failed:
        failures = [f"{record.item.master_name}: {record.error_detail}" for record in result.failed]
        builder.add_section("Failures", summarize_messages(failures))

    level = logging.WARNING if failed or result.cancelled else logging.INFO
    LOGGER.log(level, builder.render())
