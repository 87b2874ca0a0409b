from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console

from capture_archive.banner import BannerInfo, build_banner_info, print_startup_banner
from capture_archive.config import Settings
from capture_archive.models import TransferMode
from capture_archive.version import __version__


def _render(info: BannerInfo) -> str:
    buffer = StringIO()
    print_startup_banner(info, Console(file=buffer, width=120, color_system=None))
    return buffer.getvalue()


def test_build_banner_info_from_settings() -> None:
    settings = Settings(
        source_dir=Path("/sessions/in"),
        destination_dir=Path("/archive"),
        mode=TransferMode.MOVE,
        include_profiles=True,
    )

    info = build_banner_info(settings, command="organize", dry_run=True)

    assert info.version == __version__
    assert info.mode == "move"
    assert info.dry_run is True
    assert info.include_profiles is True
    assert info.source_dir == str(Path("/sessions/in"))
    assert info.destination_dir == str(Path("/archive"))


def test_build_banner_info_unset_paths() -> None:
    info = build_banner_info(Settings(), command="scan")

    assert info.source_dir == "(not set)"
    assert info.destination_dir == "(not set)"


def test_organize_banner_shows_mode_and_destination() -> None:
    settings = Settings(source_dir=Path("/in"), destination_dir=Path("/out"), mode=TransferMode.MOVE)

    output = _render(build_banner_info(settings, command="organize", dry_run=True, verbose=True))

    assert "CAPTURE ARCHIVE" in output
    assert "MOVE" in output
    assert "DRY-RUN" in output
    assert "VERBOSE" in output
    assert "Destination" in output
    assert "Folder Prefix" in output


def test_scan_banner_omits_destination() -> None:
    output = _render(build_banner_info(Settings(source_dir=Path("/in")), command="scan"))

    assert "Source" in output
    assert "Destination" not in output
    assert "Mode" not in output
