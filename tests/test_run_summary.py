from __future__ import annotations

import logging
from pathlib import Path

import pytest

from capture_archive.models import DiscoveredItem, OutcomeRecord, RelocationResult, RelocationStats, ScanStats
from capture_archive.parsers.filename_grammar import try_parse
from capture_archive.run_summary import format_duration, log_run_recap, log_scan_summary, summarize_messages


def _item(name: str, *, sidecar: bool = True) -> DiscoveredItem:
    parsed = try_parse(name)
    assert parsed is not None
    return DiscoveredItem(
        inventory_id=parsed.inventory_id,
        master_path=Path("/s") / name,
        parsed=parsed,
        primary_sidecar_path=Path("/s/CaptureOne/Settings153") / f"{name}.cos" if sidecar else None,
    )


class TestSummarizeMessages:
    """Test summarize_messages function."""

    def test_empty(self) -> None:
        assert summarize_messages([]) == []

    def test_groups_duplicates_most_common_first(self) -> None:
        lines = summarize_messages(["b", "a", "b", "b", "a", "c"])

        assert lines == ["b (x3)", "a (x2)", "c"]

    def test_truncates_with_hint(self) -> None:
        lines = summarize_messages([f"error {index}" for index in range(8)], limit=5)

        assert len(lines) == 6
        assert lines[-1].startswith("... 3 more")


class TestFormatDuration:
    """Test format_duration function."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0.25, "250 ms"), (4.2, "4.2 s"), (125, "2m 05s")],
    )
    def test_formats(self, seconds: float, expected: str) -> None:
        assert format_duration(seconds) == expected


class TestLogScanSummary:
    """Test log_scan_summary output."""

    def test_counts(self, caplog) -> None:
        items = [
            _item("img_1(1)_240115.NEF"),
            _item("img_1(2)_240115.NEF", sidecar=False),
            _item("img_2(1)_240115.NEF"),
        ]
        stats = ScanStats(directories_scanned=4, files_examined=9)
        stats.register_skipped_directory(Path("/s/locked"), "denied")

        with caplog.at_level(logging.INFO, logger="capture_archive.run_summary"):
            log_scan_summary(items, stats)

        text = caplog.text
        assert "Scan Summary" in text
        assert "Missing COS" in text
        assert "Unreadable Directories" in text
        assert "locked" in text


class TestLogRunRecap:
    """Test log_run_recap output and level."""

    def test_success_logs_info(self, caplog) -> None:
        result = RelocationResult(records=[OutcomeRecord.ok(_item("img_1(1)_240115.NEF"), Path("/d/a"))])
        stats = RelocationStats(succeeded=1, bytes_copied=2048)

        with caplog.at_level(logging.INFO, logger="capture_archive.run_summary"):
            log_run_recap(result, 1.5, stats=stats, report_path="/d/report.csv")

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert "2.0 KiB" in record.getMessage()
        assert "/d/report.csv" in record.getMessage()

    def test_failures_log_warning_with_details(self, caplog) -> None:
        result = RelocationResult(records=[OutcomeRecord.fail(_item("img_1(1)_240115.NEF"), "exists")])

        with caplog.at_level(logging.INFO, logger="capture_archive.run_summary"):
            log_run_recap(result, 0.1, mode="move")

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "img_1(1)_240115.NEF: exists" in record.getMessage()
        assert "move" in record.getMessage()

    def test_cancelled_logs_warning(self, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="capture_archive.run_summary"):
            log_run_recap(RelocationResult(cancelled=True), 0.1)

        assert caplog.records[-1].levelno == logging.WARNING
        assert "cancelled" in caplog.records[-1].getMessage()
