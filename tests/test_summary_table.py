from __future__ import annotations

import io
from pathlib import Path

from rich.console import Console

from capture_archive.models import DiscoveredItem, ItemStatus, OutcomeRecord, RelocationResult
from capture_archive.parsers.filename_grammar import try_parse
from capture_archive.summary_table import (
    DIM_COLOR,
    ERROR_COLOR,
    SUCCESS_COLOR,
    WARNING_COLOR,
    SummaryTableRenderer,
)


def _item(name: str, *, sidecar: bool = True, selected: bool = True) -> DiscoveredItem:
    parsed = try_parse(name)
    assert parsed is not None
    return DiscoveredItem(
        inventory_id=parsed.inventory_id,
        master_path=Path("/session") / name,
        parsed=parsed,
        primary_sidecar_path=Path("/session/CaptureOne/Settings153") / f"{name}.cos" if sidecar else None,
        selected=selected,
    )


def _renderer() -> tuple[SummaryTableRenderer, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, width=160, force_terminal=False, color_system=None)
    return SummaryTableRenderer(console), buffer


class TestColorHelpers:
    """Test color and status helpers."""

    def test_zero_is_dim(self) -> None:
        assert SummaryTableRenderer._get_status_color(0, is_error=True) == DIM_COLOR

    def test_non_zero_colors(self) -> None:
        assert SummaryTableRenderer._get_status_color(2, is_error=True) == ERROR_COLOR
        assert SummaryTableRenderer._get_status_color(2, is_warning=True) == WARNING_COLOR
        assert SummaryTableRenderer._get_status_color(2) == SUCCESS_COLOR

    def test_colorize_value(self) -> None:
        assert SummaryTableRenderer._colorize_value(3, is_error=True) == f"[{ERROR_COLOR}]3[/{ERROR_COLOR}]"

    def test_status_labels(self) -> None:
        assert "Complete" in SummaryTableRenderer.status_label(ItemStatus.COMPLETE)
        assert "Missing COS" in SummaryTableRenderer.status_label(ItemStatus.MISSING_COS)
        assert "Missing RAW" in SummaryTableRenderer.status_label(ItemStatus.MISSING_RAW)


class TestScanTables:
    """Test rendering of scan results."""

    def test_items_table_rows(self) -> None:
        renderer, buffer = _renderer()
        items = [
            _item("img_2(1)_240115.NEF"),
            _item("img_1(1)_240115.NEF", sidecar=False, selected=False),
        ]

        renderer.print_scan(items, Path("/session"))

        output = buffer.getvalue()
        assert "Discovered Masters" in output
        assert "img_1(1)_240115.NEF" in output
        assert "Missing COS" in output
        assert "Complete" in output
        assert output.index("img_1(1)_240115.NEF") < output.index("img_2(1)_240115.NEF")

    def test_totals_only_when_empty(self) -> None:
        renderer, buffer = _renderer()

        renderer.print_scan([])

        output = buffer.getvalue()
        assert "Discovered Masters" not in output
        assert "Scan Totals" in output

    def test_markup_in_ids_is_escaped(self) -> None:
        renderer, buffer = _renderer()

        renderer.print_scan([_item("img_[red]x(1)_240115.NEF")])

        assert "[red]x" in buffer.getvalue()


class TestOutcomeTables:
    """Test rendering of relocation outcomes."""

    def test_outcome_rows(self) -> None:
        renderer, buffer = _renderer()
        ok_item = _item("img_1(1)_240115.NEF")
        failed_item = _item("img_2(1)_240115.NEF")
        result = RelocationResult(
            records=[
                OutcomeRecord.ok(ok_item, Path("/archive/img_1/img_1(1)_240115.NEF")),
                OutcomeRecord.fail(failed_item, "Destination already exists"),
            ]
        )

        renderer.print_result(result, Path("/archive"))

        output = buffer.getvalue()
        assert "Relocation Outcome" in output
        assert str(Path("img_1") / "img_1(1)_240115.NEF") in output
        assert "Destination already exists" in output
        assert "Run Totals" in output

    def test_cancelled_status_row(self) -> None:
        renderer, buffer = _renderer()

        renderer.print_result(RelocationResult(cancelled=True))

        output = buffer.getvalue()
        assert "cancelled" in output
        assert "Relocation Outcome" not in output
