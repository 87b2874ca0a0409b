"""Destination path building for relocated items.

Each inventory id gets one folder, ``<folder prefix>_<inventory id>``, holding
the masters, with the sidecars below ``CaptureOne/Settings153`` so Capture One
picks them up when the folder is opened as a session.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .models import DiscoveredItem

DEFAULT_FOLDER_PREFIX = "img"
DESTINATION_SETTINGS_SUBPATH = "CaptureOne/Settings153"

_PATH_SEPARATORS = ("/", "\\")


@dataclass(frozen=True, slots=True)
class ItemDestination:
    item_folder: Path
    settings_folder: Path
    master_path: Path
    primary_sidecar_path: Path | None
    additional_sidecar_paths: tuple[Path, ...] = ()


def build_item_folder_name(inventory_id: str, prefix: str = DEFAULT_FOLDER_PREFIX) -> str:
    """Return ``<prefix>_<inventory id>``.

    Raises:
        ValueError: If the inventory id is empty or would escape the destination root
    """
    if not inventory_id:
        raise ValueError("Inventory id must not be empty")
    if any(separator in inventory_id for separator in _PATH_SEPARATORS) or inventory_id in {".", ".."}:
        raise ValueError(f"Inventory id '{inventory_id}' is not a valid folder name")
    return f"{prefix}_{inventory_id}"


def _settings_folder(item_folder: Path, settings_subpath: str) -> Path:
    return item_folder.joinpath(*settings_subpath.replace("\\", "/").split("/"))


def build_destination(
    item: DiscoveredItem,
    destination_root: Path,
    prefix: str = DEFAULT_FOLDER_PREFIX,
    *,
    settings_subpath: str = DESTINATION_SETTINGS_SUBPATH,
    include_profiles: bool = False,
) -> ItemDestination:
    """Compute every destination path for ``item`` without touching the disk."""
    item_folder = Path(destination_root) / build_item_folder_name(item.inventory_id, prefix)
    settings_folder = _settings_folder(item_folder, settings_subpath)

    primary = None
    if item.primary_sidecar_path is not None:
        primary = settings_folder / item.primary_sidecar_path.name

    additional: tuple[Path, ...] = ()
    if include_profiles:
        additional = tuple(settings_folder / path.name for path in item.additional_sidecar_paths)

    return ItemDestination(
        item_folder=item_folder,
        settings_folder=settings_folder,
        master_path=item_folder / item.master_path.name,
        primary_sidecar_path=primary,
        additional_sidecar_paths=additional,
    )


def format_relative_destination(destination: Path, destination_dir: Path) -> str:
    """Format destination path as relative to destination directory.

    Args:
        destination: The destination path to format
        destination_dir: The base destination directory

    Returns:
        Relative path string if possible, absolute path string otherwise
    """
    try:
        relative = destination.relative_to(destination_dir)
    except ValueError:
        return str(destination)
    return str(relative)
