"""CSV outcome report.

One header row followed by one row per outcome record, in processing order.
Only fields containing a comma, double quote or line break are quoted.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from .logging_utils import render_fields_block
from .models import OutcomeRecord
from .utils import ensure_directory

LOGGER = logging.getLogger(__name__)

REPORT_COLUMNS = ("InventoryId", "SourceMaster", "SourceCos", "DestMaster", "DestCos", "Status", "Error")
STATUS_OK = "OK"
STATUS_FAILED = "FAILED"


def _text(value: Optional[object]) -> str:
    return "" if value is None else str(value)


def report_row(record: OutcomeRecord) -> list[str]:
    item = record.item
    return [
        _text(item.inventory_id),
        _text(item.master_path),
        _text(item.primary_sidecar_path),
        _text(record.destination_master_path),
        _text(record.destination_primary_sidecar_path),
        STATUS_OK if record.succeeded else STATUS_FAILED,
        _text(record.error_detail),
    ]


def render_report(records: Iterable[OutcomeRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(REPORT_COLUMNS)
    for record in records:
        writer.writerow(report_row(record))
    return buffer.getvalue()


def write_report(records: Iterable[OutcomeRecord], output_path: str | Path) -> Path:
    """Write the CSV report as UTF-8 and return the resolved path."""
    path = Path(output_path).expanduser()
    materialized = list(records)
    ensure_directory(path.parent)
    path.write_text(render_report(materialized), encoding="utf-8", newline="")
    LOGGER.info(
        render_fields_block(
            "Report Written",
            {"Path": path, "Rows": len(materialized)},
        )
    )
    return path
