from __future__ import annotations

from pathlib import Path

import pytest

from capture_archive.destination_builder import (
    build_destination,
    build_item_folder_name,
    format_relative_destination,
)
from capture_archive.models import DiscoveredItem
from capture_archive.parsers.filename_grammar import try_parse


def _item(name: str, *, sidecar: bool = True, profiles: tuple[str, ...] = ()) -> DiscoveredItem:
    parsed = try_parse(name)
    assert parsed is not None
    source = Path("/session/Capture")
    settings = source / "CaptureOne" / "Settings"
    return DiscoveredItem(
        inventory_id=parsed.inventory_id,
        master_path=source / name,
        parsed=parsed,
        primary_sidecar_path=settings / f"{name}.cos" if sidecar else None,
        additional_sidecar_paths=[settings / profile for profile in profiles],
    )


class TestBuildItemFolderName:
    """Test destination folder naming."""

    def test_joins_prefix_and_id_with_underscore(self) -> None:
        assert build_item_folder_name("123x") == "img_123x"
        assert build_item_folder_name("124_1-5x", "scan") == "scan_124_1-5x"

    @pytest.mark.parametrize("inventory_id", ["", ".", "..", "a/b", "a\\b"])
    def test_rejects_unsafe_ids(self, inventory_id: str) -> None:
        with pytest.raises(ValueError):
            build_item_folder_name(inventory_id)


class TestBuildDestination:
    """Test the computed destination layout."""

    def test_layout(self, tmp_path: Path) -> None:
        destination = build_destination(_item("img_123x(1)_240115.CR3"), tmp_path)

        assert destination.item_folder == tmp_path / "img_123x"
        assert destination.master_path == tmp_path / "img_123x" / "img_123x(1)_240115.CR3"
        assert destination.settings_folder == tmp_path / "img_123x" / "CaptureOne" / "Settings153"
        assert destination.primary_sidecar_path == destination.settings_folder / "img_123x(1)_240115.CR3.cos"
        assert destination.additional_sidecar_paths == ()

    def test_sidecar_keeps_its_name(self, tmp_path: Path) -> None:
        item = _item("img_123x(1)_240115.CR3", sidecar=False)
        item.primary_sidecar_path = Path("/session/Capture/CaptureOne/Settings/img_123x(1)_240115.cos")

        destination = build_destination(item, tmp_path)

        assert destination.primary_sidecar_path.name == "img_123x(1)_240115.cos"

    def test_missing_sidecar(self, tmp_path: Path) -> None:
        destination = build_destination(_item("img_1(1)_240115.NEF", sidecar=False), tmp_path)

        assert destination.primary_sidecar_path is None

    def test_profiles_only_when_requested(self, tmp_path: Path) -> None:
        item = _item("img_1(1)_240115.NEF", profiles=("img_1(1)_240115.NEF.a.icm",))

        assert build_destination(item, tmp_path).additional_sidecar_paths == ()
        with_profiles = build_destination(item, tmp_path, include_profiles=True)
        assert with_profiles.additional_sidecar_paths == (
            tmp_path / "img_1" / "CaptureOne" / "Settings153" / "img_1(1)_240115.NEF.a.icm",
        )

    def test_custom_settings_subpath(self, tmp_path: Path) -> None:
        destination = build_destination(_item("img_1(1)_240115.NEF"), tmp_path, "x", settings_subpath="Meta")

        assert destination.settings_folder == tmp_path / "x_1" / "Meta"


class TestFormatRelativeDestination:
    """Test relative path display."""

    def test_relative_when_below_root(self, tmp_path: Path) -> None:
        assert format_relative_destination(tmp_path / "img_1" / "a.NEF", tmp_path) == str(Path("img_1") / "a.NEF")

    def test_absolute_when_outside(self, tmp_path: Path) -> None:
        other = Path("/elsewhere/a.NEF")

        assert format_relative_destination(other, tmp_path) == str(other)
