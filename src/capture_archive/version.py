"""Version detection for installed and source-tree builds."""

from __future__ import annotations

import os
import re
from importlib import metadata
from pathlib import Path

DISTRIBUTION_NAME = "capture-archive"

# Fallback version if nothing else works
_FALLBACK_VERSION = "unknown"

# Pattern to match version lines like: ## [0.3.0] - 2026-10-01
_VERSION_PATTERN = re.compile(r"^## \[(\d+\.\d+\.\d+)\]")


def _find_changelog() -> Path | None:
    """Find the CHANGELOG.md file relative to the package or repo root."""
    current_dir = Path(__file__).parent
    candidates = [
        current_dir.parent.parent / "CHANGELOG.md",  # repo root from src/capture_archive/
        current_dir / "CHANGELOG.md",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _get_version_from_changelog() -> str | None:
    changelog_path = _find_changelog()
    if not changelog_path:
        return None
    try:
        with open(changelog_path, encoding="utf-8") as handle:
            for line in handle:
                match = _VERSION_PATTERN.match(line)
                if match:
                    return match.group(1)
    except OSError:
        pass
    return None


def get_version() -> str:
    """Get the current version string.

    Priority:
    1. BUILD_VERSION environment variable (set during CI/CD)
    2. Installed distribution metadata
    3. Latest released version in CHANGELOG.md
    4. Fallback to "unknown"
    """
    build_version = os.environ.get("BUILD_VERSION")
    if build_version:
        return build_version.strip()

    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass

    return _get_version_from_changelog() or _FALLBACK_VERSION


# Cache the version on module load
__version__ = get_version()
