from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest


def _write_file(path: Path, content: bytes | str = b"data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode("utf-8")
    path.write_bytes(content)
    return path


@pytest.fixture
def session_dir(tmp_path: Path) -> Path:
    source = tmp_path / "session"
    source.mkdir()
    return source


@pytest.fixture
def destination_dir(tmp_path: Path) -> Path:
    return tmp_path / "archive"


@pytest.fixture
def add_master(session_dir: Path) -> Callable[..., Path]:
    """Create a master (and optionally its .cos sidecar) below the session folder."""

    def _add(
        name: str,
        *,
        folder: str = "Capture",
        with_sidecar: bool = True,
        settings_subpath: str = "CaptureOne/Settings153",
        content: bytes = b"raw-bytes",
    ) -> Path:
        directory = session_dir / folder if folder else session_dir
        master = _write_file(directory / name, content)
        if with_sidecar:
            _write_file(directory / settings_subpath / f"{name}.cos", b"<settings/>")
        return master

    return _add

