from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .destination_builder import DEFAULT_FOLDER_PREFIX, DESTINATION_SETTINGS_SUBPATH
from .models import TransferMode
from .parsers.filename_grammar import DEFAULT_PREFIX
from .sidecar_locator import (
    ADDITIONAL_SIDECAR_EXTENSIONS,
    DEFAULT_CONVENTIONS,
    METADATA_ROOT,
    PRIMARY_SIDECAR_EXTENSION,
    SidecarConvention,
    SidecarLocator,
)
from .utils import env_bool, env_list, env_str, load_yaml_file, parse_env_bool

ENV_SOURCE_DIR = "ARCHIVE_SOURCE_DIR"
ENV_DESTINATION_DIR = "ARCHIVE_DESTINATION_DIR"
ENV_PREFIX = "ARCHIVE_PREFIX"
ENV_MODE = "ARCHIVE_MODE"
ENV_INCLUDE_PROFILES = "ARCHIVE_INCLUDE_PROFILES"
ENV_ADDITIONAL_EXTENSIONS = "ARCHIVE_ADDITIONAL_EXTENSIONS"


@dataclass
class SidecarSettings:
    extension: str = PRIMARY_SIDECAR_EXTENSION
    additional_extensions: list[str] = field(default_factory=lambda: list(ADDITIONAL_SIDECAR_EXTENSIONS))
    conventions: list[SidecarConvention] = field(default_factory=lambda: list(DEFAULT_CONVENTIONS))

    def build_locator(self) -> SidecarLocator:
        return SidecarLocator(
            self.conventions,
            primary_extension=self.extension,
            additional_extensions=self.additional_extensions,
        )


@dataclass
class Settings:
    source_dir: Path | None = None
    destination_dir: Path | None = None
    prefix: str = DEFAULT_PREFIX
    folder_prefix: str = DEFAULT_FOLDER_PREFIX
    mode: TransferMode = TransferMode.COPY
    include_profiles: bool = False
    report_path: Path | None = None
    metadata_root: str = METADATA_ROOT
    destination_settings_subpath: str = DESTINATION_SETTINGS_SUBPATH
    sidecars: SidecarSettings = field(default_factory=SidecarSettings)


@dataclass
class AppConfig:
    settings: Settings
    source_path: Path | None = None


def _optional_path(value: Any, *, field_name: str) -> Path | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string path")
    stripped = value.strip()
    if not stripped:
        return None
    return Path(stripped).expanduser()


def _parse_bool(value: Any, *, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        parsed = parse_env_bool(value)
        if parsed is not None:
            return parsed
    raise ValueError(f"'{field_name}' must be a boolean (got {value!r})")


def _normalize_extension(value: Any, *, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{field_name}' must be a non-empty string")
    cleaned = value.strip()
    return cleaned if cleaned.startswith(".") else f".{cleaned}"


def _build_conventions(data: Any) -> list[SidecarConvention]:
    if data is None:
        return list(DEFAULT_CONVENTIONS)
    if not isinstance(data, list) or not data:
        raise ValueError("'sidecars.conventions' must be a non-empty list")
    conventions: list[SidecarConvention] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"'sidecars.conventions[{index}]' must be a mapping")
        subpath = entry.get("subpath")
        if not isinstance(subpath, str):
            raise ValueError(f"'sidecars.conventions[{index}].subpath' must be a string")
        naming = str(entry.get("naming", "full-name")).strip().lower()
        conventions.append(SidecarConvention(subpath.strip(), naming))
    return conventions


def _build_sidecar_settings(data: Any) -> SidecarSettings:
    if not data:
        return SidecarSettings()
    if not isinstance(data, dict):
        raise ValueError("'sidecars' must be provided as a mapping when specified")

    extension = _normalize_extension(data.get("extension", PRIMARY_SIDECAR_EXTENSION), field_name="sidecars.extension")

    raw_additional = data.get("additional_extensions", list(ADDITIONAL_SIDECAR_EXTENSIONS))
    if isinstance(raw_additional, str):
        raw_additional = [raw_additional]
    if not isinstance(raw_additional, list):
        raise ValueError("'sidecars.additional_extensions' must be a list of strings")
    additional = [
        _normalize_extension(value, field_name=f"sidecars.additional_extensions[{index}]")
        for index, value in enumerate(raw_additional)
    ]

    return SidecarSettings(
        extension=extension,
        additional_extensions=additional,
        conventions=_build_conventions(data.get("conventions")),
    )


def _build_settings(data: dict[str, Any]) -> Settings:
    if not isinstance(data, dict):
        raise ValueError("'settings' must be provided as a mapping when specified")

    prefix = data.get("prefix", DEFAULT_PREFIX)
    if not isinstance(prefix, str) or not prefix:
        raise ValueError("'settings.prefix' must be a non-empty string")

    folder_prefix = data.get("folder_prefix", DEFAULT_FOLDER_PREFIX)
    if not isinstance(folder_prefix, str) or not folder_prefix.strip():
        raise ValueError("'settings.folder_prefix' must be a non-empty string")

    metadata_root = str(data.get("metadata_root", METADATA_ROOT)).strip()
    if not metadata_root:
        raise ValueError("'settings.metadata_root' must not be empty")

    return Settings(
        source_dir=_optional_path(data.get("source_dir"), field_name="settings.source_dir"),
        destination_dir=_optional_path(data.get("destination_dir"), field_name="settings.destination_dir"),
        prefix=prefix,
        folder_prefix=folder_prefix.strip(),
        mode=TransferMode.parse(data.get("mode", TransferMode.COPY.value)),
        include_profiles=_parse_bool(data.get("include_profiles", False), field_name="settings.include_profiles"),
        report_path=_optional_path(data.get("report_path"), field_name="settings.report_path"),
        metadata_root=metadata_root,
        destination_settings_subpath=str(
            data.get("destination_settings_subpath", DESTINATION_SETTINGS_SUBPATH)
        ).strip()
        or DESTINATION_SETTINGS_SUBPATH,
        sidecars=_build_sidecar_settings(data.get("sidecars")),
    )


def apply_env_overrides(settings: Settings) -> Settings:
    """Apply ``ARCHIVE_*`` environment variables on top of file settings."""
    source = env_str(ENV_SOURCE_DIR)
    if source:
        settings.source_dir = Path(source).expanduser()
    destination = env_str(ENV_DESTINATION_DIR)
    if destination:
        settings.destination_dir = Path(destination).expanduser()
    prefix = env_str(ENV_PREFIX)
    if prefix:
        settings.prefix = prefix
    mode = env_str(ENV_MODE)
    if mode:
        settings.mode = TransferMode.parse(mode)
    include_profiles = env_bool(ENV_INCLUDE_PROFILES)
    if include_profiles is not None:
        settings.include_profiles = include_profiles
    additional = env_list(ENV_ADDITIONAL_EXTENSIONS)
    if additional is not None:
        settings.sidecars.additional_extensions = [
            _normalize_extension(value, field_name=ENV_ADDITIONAL_EXTENSIONS) for value in additional
        ]
    return settings


def load_config(path: Path | None = None, *, use_env: bool = True) -> AppConfig:
    """Load settings from ``path`` (or defaults when None) and the environment."""
    data: dict[str, Any] = {}
    if path is not None:
        data = load_yaml_file(Path(path).expanduser())

    settings = _build_settings(data.get("settings", {}) or {})
    if use_env:
        apply_env_overrides(settings)
    return AppConfig(settings=settings, source_path=Path(path) if path is not None else None)
