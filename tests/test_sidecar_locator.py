from __future__ import annotations

import errno
from pathlib import Path

import pytest

from capture_archive.sidecar_locator import (
    DEFAULT_CONVENTIONS,
    NAMING_STEM,
    SidecarConvention,
    SidecarLocator,
    locate,
)

MASTER = "img_123x(1)_240115.CR3"


def write_file(path: Path, content: bytes = b"data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


class TestSidecarConvention:
    """Test convention naming and validation."""

    def test_full_name_keeps_master_extension(self) -> None:
        convention = SidecarConvention("CaptureOne/Settings153")

        assert convention.sidecar_name(MASTER) == "img_123x(1)_240115.CR3.cos"

    def test_stem_replaces_master_extension(self) -> None:
        convention = SidecarConvention("CaptureOne/Settings", NAMING_STEM)

        assert convention.sidecar_name(MASTER) == "img_123x(1)_240115.cos"

    def test_folder_accepts_backslash_subpath(self, tmp_path: Path) -> None:
        convention = SidecarConvention("CaptureOne\\Settings")

        assert convention.folder(tmp_path) == tmp_path / "CaptureOne" / "Settings"

    def test_unknown_naming_rule_rejected(self) -> None:
        with pytest.raises(ValueError, match="naming rule"):
            SidecarConvention("CaptureOne/Settings", "basename")

    def test_empty_subpath_rejected(self) -> None:
        with pytest.raises(ValueError):
            SidecarConvention("  ")


class TestFindPrimary:
    """Test primary sidecar lookup order."""

    def test_newest_convention(self, tmp_path: Path) -> None:
        sidecar = write_file(tmp_path / "CaptureOne" / "Settings153" / f"{MASTER}.cos")

        match = locate(tmp_path, MASTER)

        assert match.primary == sidecar
        assert match.settings_subpath == "CaptureOne/Settings153"

    def test_older_stem_convention(self, tmp_path: Path) -> None:
        sidecar = write_file(tmp_path / "CaptureOne" / "Settings" / "img_123x(1)_240115.cos")

        match = locate(tmp_path, MASTER)

        assert match.primary == sidecar
        assert match.settings_subpath == "CaptureOne/Settings"

    def test_newer_convention_wins_when_both_exist(self, tmp_path: Path) -> None:
        newer = write_file(tmp_path / "CaptureOne" / "Settings153" / f"{MASTER}.cos")
        write_file(tmp_path / "CaptureOne" / "Settings" / f"{MASTER}.cos")

        assert locate(tmp_path, MASTER).primary == newer

    def test_missing_sidecar(self, tmp_path: Path) -> None:
        match = locate(tmp_path, MASTER)

        assert match.primary is None
        assert match.settings_subpath is None
        assert match.additional == []

    def test_directory_named_like_sidecar_is_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "CaptureOne" / "Settings153" / f"{MASTER}.cos").mkdir(parents=True)

        assert locate(tmp_path, MASTER).primary is None

    def test_custom_conventions_and_extension(self, tmp_path: Path) -> None:
        sidecar = write_file(tmp_path / "Meta" / "img_123x(1)_240115.xmp")
        locator = SidecarLocator([SidecarConvention("Meta", NAMING_STEM)], primary_extension=".xmp")

        assert locator.locate(tmp_path, MASTER).primary == sidecar

    def test_requires_conventions(self) -> None:
        with pytest.raises(ValueError):
            SidecarLocator([])


class TestFindAdditional:
    """Test profile sidecar collection."""

    def test_collects_profiles_from_every_settings_folder(self, tmp_path: Path) -> None:
        icm = write_file(tmp_path / "CaptureOne" / "Settings153" / f"{MASTER}.camera.icm")
        lcc = write_file(tmp_path / "CaptureOne" / "Settings" / f"{MASTER}.lens.LCC")
        write_file(tmp_path / "CaptureOne" / "Settings153" / f"{MASTER}.cos")
        write_file(tmp_path / "CaptureOne" / "Settings153" / "img_999(1)_240115.CR3.camera.icm")
        write_file(tmp_path / "CaptureOne" / "Settings153" / f"{MASTER}.notes.txt")

        match = locate(tmp_path, MASTER)

        assert sorted(match.additional) == sorted([icm, lcc])

    def test_profile_prefix_match_is_case_insensitive(self, tmp_path: Path) -> None:
        profile = write_file(tmp_path / "CaptureOne" / "Settings153" / f"{MASTER.lower()}.x.icm")

        assert locate(tmp_path, MASTER).additional == [profile]

    @pytest.mark.parametrize(
        "error",
        [PermissionError("denied"), OSError(errno.EIO, "Input/output error")],
    )
    def test_unreadable_settings_folder_counts_as_empty(self, tmp_path: Path, monkeypatch, error: OSError) -> None:
        write_file(tmp_path / "CaptureOne" / "Settings153" / f"{MASTER}.camera.icm")
        real_iterdir = Path.iterdir

        def failing_iterdir(self):
            if self.name == "Settings153":
                raise error
            return real_iterdir(self)

        monkeypatch.setattr(Path, "iterdir", failing_iterdir)

        assert SidecarLocator().find_additional(tmp_path, MASTER) == []

    def test_settings_subpaths_are_distinct_and_ordered(self) -> None:
        assert SidecarLocator(DEFAULT_CONVENTIONS).settings_subpaths() == [
            "CaptureOne/Settings153",
            "CaptureOne/Settings",
        ]
