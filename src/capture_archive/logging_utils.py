from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableSequence, Sequence
from pathlib import Path
from textwrap import wrap
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_WRAP_WIDTH = 110
DEFAULT_LABEL_WIDTH = 22
DEFAULT_INDENT = "    "

FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s\n%(message)s\n"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

FieldMapping = Union[Mapping[str, object], Sequence[tuple[str, object]]]


def _coerce_items(fields: FieldMapping) -> list[tuple[str, object]]:
    if isinstance(fields, Mapping):
        return list(fields.items())
    return list(fields)


def _stringify(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple, set)):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


def _wrap_text(text: str, width: int) -> list[str]:
    if not text:
        return [""]
    lines: list[str] = []
    for raw_line in text.splitlines() or [""]:
        # Paths rarely contain spaces to break on; split them anyway.
        wrapped = wrap(raw_line, width=width, break_long_words=True, break_on_hyphens=False) or [""]
        lines.extend(wrapped)
    return lines


class LogBlockBuilder:
    """Builds the titled, aligned multi-line blocks used for log messages."""

    def __init__(
        self,
        title: str,
        *,
        wrap_width: int = DEFAULT_WRAP_WIDTH,
        label_width: int = DEFAULT_LABEL_WIDTH,
        indent: str = DEFAULT_INDENT,
        pad_top: bool = True,
    ) -> None:
        self.title = title
        self.wrap_width = wrap_width
        self.label_width = label_width
        self.indent = indent
        self.lines: MutableSequence[str] = []
        if pad_top:
            self.lines.append("")
        self.lines.append(title)
        self.lines.append("-" * len(title))

    def add_blank_line(self) -> None:
        if not self.lines or self.lines[-1] == "":
            return
        self.lines.append("")

    def add_fields(self, fields: FieldMapping | None) -> None:
        if not fields:
            return
        items = _coerce_items(fields)
        if not items:
            return

        computed_width = max((len(str(key)) for key, _ in items), default=0)
        label_width = max(min(computed_width, self.label_width), 8)
        value_width = max(self.wrap_width - len(self.indent) - label_width - 4, 32)

        for key, value in items:
            wrapped = _wrap_text(_stringify(value), value_width)
            self.lines.append(f"{self.indent}{str(key):<{label_width}}: {wrapped[0]}")
            for continuation in wrapped[1:]:
                self.lines.append(f"{self.indent}{'':<{label_width}}  {continuation}")

    def add_section(
        self,
        heading: str,
        items: Iterable[str],
        *,
        empty_label: str = "(none)",
    ) -> None:
        self.add_blank_line()
        self.lines.append(f"{heading}:")
        materialized = [item for item in items if item is not None]
        if not materialized:
            self.lines.append(f"{self.indent}{empty_label}")
            return

        bullet_indent = self.indent + "- "
        continuation_indent = self.indent + "  "
        bullet_width = max(self.wrap_width - len(bullet_indent), 24)

        for item in materialized:
            wrapped = _wrap_text(_stringify(item), bullet_width)
            self.lines.append(f"{bullet_indent}{wrapped[0]}")
            for continuation in wrapped[1:]:
                self.lines.append(f"{continuation_indent}{continuation}")

    def render(self) -> str:
        return "\n".join(self.lines).rstrip()


def render_fields_block(title: str, fields: FieldMapping, *, pad_top: bool = True) -> str:
    builder = LogBlockBuilder(title, pad_top=pad_top)
    builder.add_fields(fields)
    return builder.render()


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    *,
    console: Optional[Console] = None,
) -> None:
    """Install a rich console handler and, optionally, a plain file handler.

    Replaces any handlers already attached to the root logger so repeated CLI
    invocations in one process do not duplicate output.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    root.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=FILE_DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)

    root.setLevel(logging.DEBUG if log_file is not None else level)
