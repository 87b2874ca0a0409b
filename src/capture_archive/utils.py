from __future__ import annotations

import os
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

COPY_CHUNK_SIZE = 81920

# Boolean true/false string values
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class TransferCancelled(Exception):
    """Raised inside a chunked copy when the cancel event is set."""


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env(val) for key, val in value.items()}
    return value


def load_yaml_file(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return expand_env(data)


@dataclass
class TransferResult:
    destination: Path
    bytes_transferred: int = 0
    elapsed_seconds: float = 0.0

    @property
    def throughput(self) -> float:
        """Average bytes per second, 0 when nothing was streamed."""
        if self.elapsed_seconds <= 0 or self.bytes_transferred <= 0:
            return 0.0
        return self.bytes_transferred / self.elapsed_seconds


def copy_file_exclusive(
    source: Path,
    destination: Path,
    *,
    chunk_size: int = COPY_CHUNK_SIZE,
    cancel: Optional[threading.Event] = None,
) -> TransferResult:
    """Stream ``source`` into a new file at ``destination``.

    The destination is opened with exclusive creation, so an existing file
    raises :class:`FileExistsError` and is never overwritten. If ``cancel`` is
    set between chunks the partial destination is removed and
    :class:`TransferCancelled` is raised.
    """
    started = time.perf_counter()
    total = 0
    with source.open("rb") as reader:
        with destination.open("xb") as writer:
            try:
                while True:
                    if cancel is not None and cancel.is_set():
                        raise TransferCancelled(str(source))
                    chunk = reader.read(chunk_size)
                    if not chunk:
                        break
                    writer.write(chunk)
                    total += len(chunk)
            except BaseException:
                writer.close()
                destination.unlink(missing_ok=True)
                raise
    shutil.copystat(source, destination)
    elapsed = time.perf_counter() - started
    return TransferResult(destination=destination, bytes_transferred=total, elapsed_seconds=elapsed)


def move_file_exclusive(source: Path, destination: Path) -> TransferResult:
    """Move ``source`` to ``destination`` without replacing an existing file."""
    if destination.exists():
        raise FileExistsError(f"Destination already exists: {destination}")
    if not source.exists():
        raise FileNotFoundError(f"Source file not found: {source}")
    shutil.move(str(source), str(destination))
    return TransferResult(destination=destination)


def parse_env_bool(value: Optional[str]) -> Optional[bool]:
    """Parse a boolean from an environment variable string.

    Returns None if value is None or not a recognized boolean string.
    """
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def env_bool(name: str) -> Optional[bool]:
    """Get a boolean from an environment variable.

    Returns None if not set or not a recognized boolean string.
    """
    return parse_env_bool(os.getenv(name))


def env_str(name: str) -> Optional[str]:
    """Get a stripped, non-empty string from an environment variable."""
    raw = os.getenv(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def env_list(name: str, separator: str = ",") -> Optional[List[str]]:
    """Get a list of strings from an environment variable.

    Returns None if not set, empty list if set but empty.
    """
    raw = os.getenv(name)
    if raw is None:
        return None
    parts = [part.strip() for part in raw.split(separator) if part.strip()]
    return parts


def format_bytes(value: float) -> str:
    """Render a byte count with a binary unit suffix."""
    amount = float(value)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(amount) < 1024.0:
            return f"{amount:.0f} {unit}" if unit == "B" else f"{amount:.1f} {unit}"
        amount /= 1024.0
    return f"{amount:.1f} TiB"
