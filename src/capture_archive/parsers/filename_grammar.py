"""Filename grammar for tethered-capture master files.

Capture sessions name their masters ``<prefix><inventory id>(<counter>)_<YYMMDD>.<EXT>``,
for example ``img_124_1-5x(2)_240115.ARW``. The inventory id is matched
non-greedily, so the parser always settles on the shortest id that still
leaves a valid ``(<digit>)_<6 digits>.<ext>`` tail.
"""

from __future__ import annotations

import functools
import re
from pathlib import PurePath
from typing import Optional

from ..models import ParsedFilename

DEFAULT_PREFIX = "img_"

SUPPORTED_MASTER_EXTENSIONS = frozenset({"NEF", "CR3", "ARW", "RAF", "DNG", "TIF", "TIFF"})


@functools.lru_cache(maxsize=64)
def compile_grammar(prefix: str) -> re.Pattern[str]:
    """Return the anchored grammar regex for ``prefix``."""
    return re.compile(
        rf"^{re.escape(prefix)}(?P<inventory_id>.+?)\((?P<counter>[0-9])\)_(?P<date>[0-9]{{6}})\.(?P<extension>[A-Za-z0-9]+)$"
    )


def _is_supported_extension(extension: str) -> bool:
    return extension.upper() in SUPPORTED_MASTER_EXTENSIONS


def try_parse(file_name: Optional[str], prefix: str = DEFAULT_PREFIX) -> Optional[ParsedFilename]:
    """Parse a bare file name (no directory) into its components.

    Returns None for blank input, names that do not follow the grammar and
    names whose extension is not a supported master type.
    """
    if not file_name or not file_name.strip():
        return None

    match = compile_grammar(prefix).fullmatch(file_name)
    if not match:
        return None

    extension = match.group("extension")
    if not _is_supported_extension(extension):
        return None

    return ParsedFilename(
        inventory_id=match.group("inventory_id"),
        counter=int(match.group("counter")),
        capture_date=match.group("date"),
        extension=extension,
        original_name=file_name,
    )


def is_supported_master_file(file_name: str) -> bool:
    """Check only the extension of ``file_name`` against the master types."""
    suffix = PurePath(file_name).suffix
    if not suffix:
        return False
    return _is_supported_extension(suffix.lstrip("."))
