"""Sidecar discovery for Capture One settings folders.

Capture One keeps per-image processing settings in ``.cos`` files below a
``CaptureOne/Settings*`` folder next to the image. The folder name and the
``.cos`` naming rule changed between releases, so lookups walk an ordered list
of :class:`SidecarConvention` descriptors, newest first. ICC/LCC profile files
(``<master name>.<profile>.icm``) live in the same folders and are collected
from every folder that exists.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import List, NamedTuple, Optional

from .logging_utils import render_fields_block

LOGGER = logging.getLogger(__name__)

METADATA_ROOT = "CaptureOne"
PRIMARY_SIDECAR_EXTENSION = ".cos"
ADDITIONAL_SIDECAR_EXTENSIONS = (".icm", ".lcc")

NAMING_FULL_NAME = "full-name"
NAMING_STEM = "stem"
NAMING_RULES = (NAMING_FULL_NAME, NAMING_STEM)


@dataclass(frozen=True)
class SidecarConvention:
    """One place a primary sidecar may live and how it is named.

    ``full-name`` keeps the master's extension (``img_1(1)_240115.CR3.cos``),
    ``stem`` replaces it (``img_1(1)_240115.cos``).
    """

    subpath: str
    naming: str = NAMING_FULL_NAME

    def __post_init__(self) -> None:
        if self.naming not in NAMING_RULES:
            raise ValueError(f"Unknown sidecar naming rule '{self.naming}' (expected one of {', '.join(NAMING_RULES)})")
        if not self.subpath.strip():
            raise ValueError("Sidecar convention subpath must not be empty")

    def sidecar_name(self, master_file_name: str, extension: str = PRIMARY_SIDECAR_EXTENSION) -> str:
        if self.naming == NAMING_STEM:
            return f"{Path(master_file_name).stem}{extension}"
        return f"{master_file_name}{extension}"

    def folder(self, master_directory: Path) -> Path:
        return master_directory.joinpath(*self.subpath.replace("\\", "/").split("/"))


DEFAULT_CONVENTIONS: tuple[SidecarConvention, ...] = (
    SidecarConvention("CaptureOne/Settings153", NAMING_FULL_NAME),
    SidecarConvention("CaptureOne/Settings153", NAMING_STEM),
    SidecarConvention("CaptureOne/Settings", NAMING_FULL_NAME),
    SidecarConvention("CaptureOne/Settings", NAMING_STEM),
)


class SidecarMatch(NamedTuple):
    primary: Optional[Path]
    additional: List[Path]
    settings_subpath: Optional[str] = None


def _list_files(directory: Path) -> list[Path]:
    try:
        return [entry for entry in directory.iterdir() if entry.is_file()]
    except OSError as exc:
        LOGGER.debug(
            render_fields_block(
                "Skipping Settings Folder",
                {"Folder": directory, "Reason": exc},
            )
        )
        return []


class SidecarLocator:
    def __init__(
        self,
        conventions: Sequence[SidecarConvention] = DEFAULT_CONVENTIONS,
        *,
        primary_extension: str = PRIMARY_SIDECAR_EXTENSION,
        additional_extensions: Iterable[str] = ADDITIONAL_SIDECAR_EXTENSIONS,
    ) -> None:
        if not conventions:
            raise ValueError("At least one sidecar convention is required")
        self.conventions = tuple(conventions)
        self.primary_extension = primary_extension
        self.additional_extensions = frozenset(ext.lower() for ext in additional_extensions)

    def settings_subpaths(self) -> list[str]:
        """Distinct convention subfolders in priority order."""
        seen: list[str] = []
        for convention in self.conventions:
            if convention.subpath not in seen:
                seen.append(convention.subpath)
        return seen

    def find_primary(self, master_directory: Path, master_file_name: str) -> tuple[Optional[Path], Optional[str]]:
        for convention in self.conventions:
            candidate = convention.folder(master_directory) / convention.sidecar_name(
                master_file_name, self.primary_extension
            )
            if candidate.is_file():
                return candidate, convention.subpath
        return None, None

    def find_additional(self, master_directory: Path, master_file_name: str) -> list[Path]:
        prefix = f"{master_file_name}.".lower()
        found: list[Path] = []
        for subpath in self.settings_subpaths():
            folder = SidecarConvention(subpath).folder(master_directory)
            if not folder.is_dir():
                continue
            for entry in _list_files(folder):
                if not entry.name.lower().startswith(prefix):
                    continue
                if entry.suffix.lower() in self.additional_extensions:
                    found.append(entry)
        return found

    def locate(self, master_directory: Path, master_file_name: str) -> SidecarMatch:
        master_directory = Path(master_directory)
        primary, subpath = self.find_primary(master_directory, master_file_name)
        additional = self.find_additional(master_directory, master_file_name)
        return SidecarMatch(primary=primary, additional=additional, settings_subpath=subpath)


_DEFAULT_LOCATOR = SidecarLocator()


def locate(master_directory: Path, master_file_name: str) -> SidecarMatch:
    """Locate sidecars with the default conventions."""
    return _DEFAULT_LOCATOR.locate(master_directory, master_file_name)
