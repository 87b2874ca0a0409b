"""Capture archive core package.

The package is organized into focused modules with clear separation of concerns:

- **parsers.filename_grammar**: Parsing ``<prefix><id>(<n>)_<yymmdd>.<ext>`` master names
- **sidecar_locator**: Finding ``.cos`` sidecars and profile files next to a master
- **file_discovery**: Depth-first session scan producing ``DiscoveredItem`` records
- **selection**: Select all / none / complete helpers and status counts
- **destination_builder**: Building per-item destination folders and paths
- **relocation**: Copy/move of selected items with progress and cancellation
- **report**: CSV outcome report
- **run_summary**: Logging summaries and run recaps

Most modules are internal implementation details and should be imported directly
when needed (e.g., ``from capture_archive.selection import select_complete``).
"""

from .file_discovery import scan
from .models import (
    DiscoveredItem,
    ItemStatus,
    OutcomeRecord,
    ParsedFilename,
    RelocationResult,
    TransferMode,
    TransferProgress,
)
from .parsers.filename_grammar import try_parse
from .relocation import relocate, relocate_async, relocate_with_progress
from .report import write_report
from .version import __version__

__all__ = [
    "__version__",
    "DiscoveredItem",
    "ItemStatus",
    "OutcomeRecord",
    "ParsedFilename",
    "RelocationResult",
    "TransferMode",
    "TransferProgress",
    "relocate",
    "relocate_async",
    "relocate_with_progress",
    "scan",
    "try_parse",
    "write_report",
]
