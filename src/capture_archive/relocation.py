"""Grouped copy/move of discovered items into the destination layout.

Items are processed one at a time in the order given. A failure while
creating folders or transferring files is recorded against that item only and
the batch moves on; cancellation stops the batch and is reported through
:class:`RelocationResult.cancelled` rather than as a failure record.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from .destination_builder import (
    DEFAULT_FOLDER_PREFIX,
    DESTINATION_SETTINGS_SUBPATH,
    ItemDestination,
    build_destination,
)
from .logging_utils import render_fields_block
from .models import (
    DiscoveredItem,
    OutcomeRecord,
    RelocationResult,
    RelocationStats,
    TransferMode,
    TransferProgress,
)
from .utils import (
    COPY_CHUNK_SIZE,
    TransferCancelled,
    TransferResult,
    copy_file_exclusive,
    ensure_directory,
    format_bytes,
    move_file_exclusive,
)

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[TransferProgress], None]


class Relocator:
    def __init__(
        self,
        destination_root: str | Path,
        prefix: str = DEFAULT_FOLDER_PREFIX,
        mode: TransferMode | str = TransferMode.COPY,
        *,
        include_profiles: bool = False,
        settings_subpath: str = DESTINATION_SETTINGS_SUBPATH,
        chunk_size: int = COPY_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.destination_root = Path(destination_root).expanduser()
        self.prefix = prefix
        self.mode = TransferMode.parse(mode)
        self.include_profiles = include_profiles
        self.settings_subpath = settings_subpath
        self.chunk_size = chunk_size
        self.stats = RelocationStats()
        # Masters sharing a stem can share one stem-named .cos; it is relocated once per batch.
        self.relocated_sidecars: dict[Path, Path] = {}

    def plan(self, item: DiscoveredItem) -> ItemDestination:
        return build_destination(
            item,
            self.destination_root,
            self.prefix,
            settings_subpath=self.settings_subpath,
            include_profiles=self.include_profiles,
        )

    def _transfer(self, source: Path, destination: Path, cancel: threading.Event | None) -> TransferResult:
        if self.mode is TransferMode.MOVE:
            return move_file_exclusive(source, destination)
        return copy_file_exclusive(source, destination, chunk_size=self.chunk_size, cancel=cancel)

    def relocate_item(
        self,
        item: DiscoveredItem,
        cancel: threading.Event | None = None,
    ) -> tuple[OutcomeRecord, float]:
        """Relocate one item, returning its record and the master's throughput.

        Raises:
            TransferCancelled: If ``cancel`` is set while a file is streaming
        """
        try:
            destination = self.plan(item)
            ensure_directory(destination.item_folder)
            ensure_directory(destination.settings_folder)

            master = self._transfer(item.master_path, destination.master_path, cancel)
            copied = master.bytes_transferred

            sidecar_destination = destination.primary_sidecar_path
            if item.primary_sidecar_path is not None and sidecar_destination is not None:
                shared = self.relocated_sidecars.get(item.primary_sidecar_path)
                if shared is not None:
                    LOGGER.debug(
                        render_fields_block(
                            "Sidecar Already Relocated",
                            {"Sidecar": item.primary_sidecar_path, "Destination": shared},
                        )
                    )
                    sidecar_destination = shared
                else:
                    sidecar = self._transfer(item.primary_sidecar_path, sidecar_destination, cancel)
                    copied += sidecar.bytes_transferred
                    self.relocated_sidecars[item.primary_sidecar_path] = sidecar_destination

            for source, target in zip(item.additional_sidecar_paths, destination.additional_sidecar_paths):
                profile = self._transfer(source, target, cancel)
                copied += profile.bytes_transferred
        except TransferCancelled:
            raise
        except Exception as exc:
            message = str(exc)
            LOGGER.error(
                render_fields_block(
                    "Relocation Failed",
                    {
                        "Master": item.master_path,
                        "Inventory Id": item.inventory_id,
                        "Mode": self.mode.value,
                        "Error": message,
                    },
                )
            )
            record = OutcomeRecord.fail(item, message)
            self.stats.register_failure(f"{item.master_name}: {record.error_detail}")
            return record, 0.0

        self.stats.register_success(copied)
        LOGGER.debug(
            render_fields_block(
                "Relocated Item",
                {
                    "Master": item.master_path,
                    "Destination": destination.master_path,
                    "Sidecar": sidecar_destination or "(none)",
                    "Profiles": len(destination.additional_sidecar_paths),
                    "Speed": f"{format_bytes(master.throughput)}/s" if master.throughput else "-",
                },
            )
        )
        record = OutcomeRecord.ok(
            item,
            destination.master_path,
            sidecar_destination,
            destination.additional_sidecar_paths,
        )
        return record, master.throughput

    def run(
        self,
        items: Iterable[DiscoveredItem],
        *,
        progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> RelocationResult:
        selected = [item for item in items if item.selected]
        total = len(selected)
        result = RelocationResult()

        for index, item in enumerate(selected, start=1):
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                break
            try:
                record, throughput = self.relocate_item(item, cancel)
            except TransferCancelled:
                result.cancelled = True
                break
            result.records.append(record)
            if progress is not None:
                progress(
                    TransferProgress(
                        current_file_name=item.master_name,
                        items_processed=index,
                        items_total=total,
                        throughput_bytes_per_second=throughput,
                    )
                )

        if result.cancelled:
            LOGGER.warning(
                render_fields_block(
                    "Relocation Cancelled",
                    {
                        "Completed": f"{len(result.records)} of {total}",
                        "Destination": self.destination_root,
                    },
                )
            )
        return result


def relocate(
    items: Sequence[DiscoveredItem],
    destination_root: str | Path,
    prefix: str = DEFAULT_FOLDER_PREFIX,
    mode: TransferMode | str = TransferMode.COPY,
    *,
    include_profiles: bool = False,
) -> list[OutcomeRecord]:
    """Relocate every selected item and return one record per item."""
    relocator = Relocator(destination_root, prefix, mode, include_profiles=include_profiles)
    return relocator.run(items).records


def relocate_with_progress(
    items: Sequence[DiscoveredItem],
    destination_root: str | Path,
    prefix: str = DEFAULT_FOLDER_PREFIX,
    mode: TransferMode | str = TransferMode.COPY,
    *,
    progress: ProgressCallback | None = None,
    cancel: threading.Event | None = None,
    include_profiles: bool = False,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> RelocationResult:
    """Relocate selected items, reporting progress after each one.

    ``cancel`` is checked before every item and between copy chunks. Once it
    is set the batch stops and the result comes back with ``cancelled=True``;
    the interrupted item gets no record.
    """
    relocator = Relocator(
        destination_root,
        prefix,
        mode,
        include_profiles=include_profiles,
        chunk_size=chunk_size,
    )
    return relocator.run(items, progress=progress, cancel=cancel)


async def relocate_async(
    items: Sequence[DiscoveredItem],
    destination_root: str | Path,
    prefix: str = DEFAULT_FOLDER_PREFIX,
    mode: TransferMode | str = TransferMode.COPY,
    *,
    progress: ProgressCallback | None = None,
    cancel: threading.Event | None = None,
    include_profiles: bool = False,
    chunk_size: int = COPY_CHUNK_SIZE,
) -> RelocationResult:
    """Run :func:`relocate_with_progress` on a worker thread.

    ``progress`` is called from the worker thread. Setting ``cancel`` yields a
    cancelled result; cancelling the awaiting task also sets it so the worker
    stops at the next item or chunk, then re-raises ``CancelledError``.
    """
    cancel = cancel if cancel is not None else threading.Event()
    try:
        return await asyncio.to_thread(
            relocate_with_progress,
            items,
            destination_root,
            prefix,
            mode,
            progress=progress,
            cancel=cancel,
            include_profiles=include_profiles,
            chunk_size=chunk_size,
        )
    except asyncio.CancelledError:
        cancel.set()
        raise
