from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class ItemStatus(str, Enum):
    COMPLETE = "complete"
    MISSING_COS = "missing-cos"
    # Sidecar without a master. Scanning starts from masters, so nothing produces this yet.
    MISSING_RAW = "missing-raw"


class TransferMode(str, Enum):
    COPY = "copy"
    MOVE = "move"

    @classmethod
    def parse(cls, value: "str | TransferMode") -> "TransferMode":
        if isinstance(value, TransferMode):
            return value
        normalized = str(value).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unsupported transfer mode: {value!r} (expected 'copy' or 'move')")


@dataclass(frozen=True, slots=True)
class ParsedFilename:
    inventory_id: str
    counter: int
    capture_date: str
    extension: str
    original_name: str


@dataclass(slots=True)
class DiscoveredItem:
    inventory_id: str
    master_path: Path
    parsed: ParsedFilename
    primary_sidecar_path: Optional[Path] = None
    additional_sidecar_paths: List[Path] = field(default_factory=list)
    settings_subpath: Optional[str] = None
    selected: bool = True

    @property
    def status(self) -> ItemStatus:
        if self.primary_sidecar_path is None:
            return ItemStatus.MISSING_COS
        return ItemStatus.COMPLETE

    @property
    def has_profiles(self) -> bool:
        return bool(self.additional_sidecar_paths)

    @property
    def master_name(self) -> str:
        return self.master_path.name


@dataclass(frozen=True, slots=True)
class OutcomeRecord:
    """Result of relocating a single item.

    Use :meth:`ok` and :meth:`fail` rather than the constructor; they keep the
    destination fields and ``error_detail`` mutually exclusive.
    """

    item: DiscoveredItem
    succeeded: bool
    error_detail: Optional[str] = None
    destination_master_path: Optional[Path] = None
    destination_primary_sidecar_path: Optional[Path] = None
    destination_additional_sidecar_paths: tuple[Path, ...] = ()

    @classmethod
    def ok(
        cls,
        item: DiscoveredItem,
        destination_master_path: Path,
        destination_primary_sidecar_path: Optional[Path] = None,
        destination_additional_sidecar_paths: tuple[Path, ...] = (),
    ) -> "OutcomeRecord":
        return cls(
            item=item,
            succeeded=True,
            destination_master_path=destination_master_path,
            destination_primary_sidecar_path=destination_primary_sidecar_path,
            destination_additional_sidecar_paths=tuple(destination_additional_sidecar_paths),
        )

    @classmethod
    def fail(cls, item: DiscoveredItem, error_detail: str) -> "OutcomeRecord":
        detail = error_detail.strip() if error_detail else ""
        return cls(item=item, succeeded=False, error_detail=detail or "Unknown error")


@dataclass(frozen=True, slots=True)
class TransferProgress:
    current_file_name: str
    items_processed: int
    items_total: int
    throughput_bytes_per_second: float = 0.0


@dataclass(slots=True)
class RelocationResult:
    records: List[OutcomeRecord] = field(default_factory=list)
    cancelled: bool = False

    @property
    def completed(self) -> bool:
        return not self.cancelled

    @property
    def succeeded(self) -> List[OutcomeRecord]:
        return [record for record in self.records if record.succeeded]

    @property
    def failed(self) -> List[OutcomeRecord]:
        return [record for record in self.records if not record.succeeded]


@dataclass(slots=True)
class ScanStats:
    directories_scanned: int = 0
    files_examined: int = 0
    matched: int = 0
    skipped_directories: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def register_directory(self) -> None:
        self.directories_scanned += 1

    def register_skipped_directory(self, path: Path, reason: str) -> None:
        self.skipped_directories.append(f"{path}: {reason}")

    def register_warning(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)


@dataclass(slots=True)
class RelocationStats:
    succeeded: int = 0
    failed: int = 0
    bytes_copied: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.succeeded + self.failed

    def register_success(self, bytes_copied: int = 0) -> None:
        self.succeeded += 1
        self.bytes_copied += bytes_copied

    def register_failure(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)

    @classmethod
    def from_records(cls, records: List[OutcomeRecord]) -> "RelocationStats":
        stats = cls()
        for record in records:
            if record.succeeded:
                stats.register_success()
            else:
                stats.register_failure(f"{record.item.master_name}: {record.error_detail}")
        return stats
