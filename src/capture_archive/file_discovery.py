"""Recursive discovery of master files and their sidecars.

Walks a session tree depth-first, parsing every file name with the filename
grammar and attaching sidecars found by the :class:`SidecarLocator`. The
``CaptureOne`` metadata folders are never descended into: they hold sidecars,
not masters, and can be deep.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .logging_utils import render_fields_block
from .models import DiscoveredItem, ScanStats
from .parsers.filename_grammar import DEFAULT_PREFIX, try_parse
from .sidecar_locator import METADATA_ROOT, SidecarLocator

LOGGER = logging.getLogger(__name__)


def _list_directory(directory: Path, stats: ScanStats | None) -> tuple[list[Path], list[Path]] | None:
    """Split a directory into (files, subdirectories).

    Returns None when the directory cannot be listed.
    """
    files: list[Path] = []
    subdirectories: list[Path] = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirectories.append(Path(entry.path))
                elif entry.is_file():
                    files.append(Path(entry.path))
    except OSError as exc:
        LOGGER.debug(
            render_fields_block(
                "Skipping Directory",
                {"Path": directory, "Reason": exc},
            )
        )
        if stats is not None:
            stats.register_skipped_directory(directory, str(exc))
        return None
    return files, subdirectories


def is_metadata_directory(path: Path, metadata_root: str = METADATA_ROOT) -> bool:
    return path.name.casefold() == metadata_root.casefold()


def _scan_directory(
    directory: Path,
    items: list[DiscoveredItem],
    prefix: str,
    locator: SidecarLocator,
    metadata_root: str,
    stats: ScanStats | None,
) -> None:
    listing = _list_directory(directory, stats)
    if listing is None:
        return
    files, subdirectories = listing
    if stats is not None:
        stats.register_directory()

    for path in files:
        if stats is not None:
            stats.files_examined += 1
        parsed = try_parse(path.name, prefix)
        if parsed is None:
            continue

        sidecars = locator.locate(directory, path.name)
        item = DiscoveredItem(
            inventory_id=parsed.inventory_id,
            master_path=path,
            parsed=parsed,
            primary_sidecar_path=sidecars.primary,
            additional_sidecar_paths=list(sidecars.additional),
            settings_subpath=sidecars.settings_subpath,
        )
        items.append(item)
        if stats is not None:
            stats.matched += 1
        LOGGER.debug(
            render_fields_block(
                "Discovered Master",
                {
                    "Master": path,
                    "Inventory Id": parsed.inventory_id,
                    "Sidecar": sidecars.primary or "(missing)",
                    "Profiles": len(sidecars.additional),
                },
            )
        )

    for subdirectory in subdirectories:
        if is_metadata_directory(subdirectory, metadata_root):
            continue
        _scan_directory(subdirectory, items, prefix, locator, metadata_root, stats)


def scan(
    root_folder: Optional[str | Path],
    prefix: str = DEFAULT_PREFIX,
    *,
    locator: SidecarLocator | None = None,
    metadata_root: str = METADATA_ROOT,
    stats: ScanStats | None = None,
) -> list[DiscoveredItem]:
    """Discover every master below ``root_folder``.

    Never raises for a blank, missing or unreadable root; those yield an
    empty list. Each call returns a fresh list.
    """
    if root_folder is None or not str(root_folder).strip():
        return []

    root = Path(root_folder).expanduser()
    if not root.is_dir():
        LOGGER.warning(
            render_fields_block(
                "Source Directory Missing",
                {"Path": root},
            )
        )
        if stats is not None:
            stats.register_warning(f"Source directory missing: {root}")
        return []

    items: list[DiscoveredItem] = []
    _scan_directory(root.resolve(), items, prefix, locator or SidecarLocator(), metadata_root, stats)
    return items
