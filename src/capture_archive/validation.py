from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from jsonschema import Draft7Validator

from .sidecar_locator import NAMING_RULES

_MODES = ["copy", "move"]

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "settings": {
            "type": "object",
            "properties": {
                "source_dir": {"type": ["string", "null"]},
                "destination_dir": {"type": ["string", "null"]},
                "prefix": {"type": "string", "minLength": 1},
                "folder_prefix": {"type": "string", "minLength": 1},
                "mode": {"type": "string", "enum": _MODES},
                "include_profiles": {"type": "boolean"},
                "report_path": {"type": ["string", "null"]},
                "metadata_root": {"type": "string", "minLength": 1},
                "destination_settings_subpath": {"type": "string", "minLength": 1},
                "sidecars": {
                    "type": "object",
                    "properties": {
                        "extension": {"type": "string", "minLength": 1},
                        "additional_extensions": {
                            "oneOf": [
                                {"type": "array", "items": {"type": "string"}},
                                {"type": "string"},
                            ]
                        },
                        "conventions": {
                            "type": "array",
                            "minItems": 1,
                            "items": {
                                "type": "object",
                                "properties": {
                                    "subpath": {"type": "string", "minLength": 1},
                                    "naming": {"type": "string"},
                                },
                                "required": ["subpath"],
                                "additionalProperties": False,
                            },
                        },
                    },
                    "additionalProperties": False,
                },
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": True,
}


@dataclass(slots=True)
class ValidationIssue:
    """Represents a single validation problem."""

    severity: str
    path: str
    message: str
    code: str


@dataclass(slots=True)
class ValidationReport:
    """Aggregates validation warnings and errors."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, path: str, message: str, code: str) -> None:
        self.errors.append(ValidationIssue(severity="error", path=path, message=message, code=code))

    def add_warning(self, path: str, message: str, code: str) -> None:
        self.warnings.append(ValidationIssue(severity="warning", path=path, message=message, code=code))


def _format_jsonschema_path(path: Sequence[Any]) -> str:
    if not path:
        return "<root>"
    tokens: List[str] = []
    for part in path:
        if isinstance(part, int):
            if tokens:
                tokens[-1] = f"{tokens[-1]}[{part}]"
            else:
                tokens.append(f"[{part}]")
        else:
            tokens.append(str(part))
    return ".".join(tokens) if tokens else "<root>"


def validate_config_data(data: Dict[str, Any]) -> ValidationReport:
    """Validate configuration data against schema and semantic rules."""
    report = ValidationReport()
    if not isinstance(data, dict):
        report.add_error("<root>", "Configuration must be a mapping", "schema")
        return report

    validator = Draft7Validator(CONFIG_SCHEMA)
    for error in sorted(validator.iter_errors(data), key=lambda exc: list(exc.path)):
        report.add_error(_format_jsonschema_path(error.absolute_path), error.message, "schema")

    _validate_semantics(data, report)
    return report


def _validate_semantics(data: Dict[str, Any], report: ValidationReport) -> None:
    settings = data.get("settings") or {}
    if not isinstance(settings, dict):
        return

    prefix = settings.get("prefix")
    if isinstance(prefix, str) and prefix != prefix.strip():
        report.add_warning(
            "settings.prefix",
            f"Prefix '{prefix}' has leading or trailing whitespace; file names must match it exactly",
            "prefix-whitespace",
        )

    folder_prefix = settings.get("folder_prefix")
    if isinstance(folder_prefix, str) and any(separator in folder_prefix for separator in ("/", "\\")):
        report.add_error(
            "settings.folder_prefix",
            "Folder prefix must not contain path separators",
            "folder-prefix",
        )

    source_dir = settings.get("source_dir")
    destination_dir = settings.get("destination_dir")
    if isinstance(source_dir, str) and isinstance(destination_dir, str) and source_dir.strip() and destination_dir.strip():
        source = Path(source_dir).expanduser()
        destination = Path(destination_dir).expanduser()
        if source == destination:
            report.add_warning(
                "settings.destination_dir",
                "Destination matches the source directory; relocated items would be rescanned",
                "same-directory",
            )

    sidecars = settings.get("sidecars") or {}
    if not isinstance(sidecars, dict):
        return
    conventions = sidecars.get("conventions") or []
    if not isinstance(conventions, list):
        return
    seen: Dict[tuple[str, str], int] = {}
    for index, convention in enumerate(conventions):
        if not isinstance(convention, dict):
            continue
        naming = str(convention.get("naming", "full-name")).strip().lower()
        if naming not in NAMING_RULES:
            report.add_error(
                f"settings.sidecars.conventions[{index}].naming",
                f"Unknown naming rule '{naming}' (expected one of {', '.join(NAMING_RULES)})",
                "naming-rule",
            )
        subpath = convention.get("subpath")
        if not isinstance(subpath, str):
            continue
        key = (subpath.strip(), naming)
        if key in seen:
            report.add_warning(
                f"settings.sidecars.conventions[{index}]",
                f"Duplicate convention also defined at index {seen[key]}",
                "duplicate-convention",
            )
        else:
            seen[key] = index


def validate_config_file(path: Path) -> ValidationReport:
    """Load ``path`` as YAML and validate it, reporting load problems as errors."""
    report = ValidationReport()
    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            data: Optional[Any] = yaml.safe_load(handle)
    except OSError as exc:
        report.add_error("<root>", f"Unable to read {path}: {exc}", "load")
        return report
    except yaml.YAMLError as exc:
        report.add_error("<root>", f"Invalid YAML: {exc}", "yaml")
        return report
    return validate_config_data(data or {})
