from __future__ import annotations

"""Shared data structures used across the Outline Toolkit core.

This module is intentionally free of UI / I/O code so that the contained
objects can be reused in any context (unit-tests, CLI, editor hosts, etc.).
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

__all__ = [
    "DEFAULT_INDENT_UNIT",
    "ROOT_TARGET",
    "Line",
    "GroupHeader",
    "InsertItem",
    "MergeConfig",
    "OutlineDocument",
    "WalkStep",
]

DEFAULT_INDENT_UNIT = "  "

# Sentinel key for content that is not nested under any group header
ROOT_TARGET = "root"


@dataclass(frozen=True)
class Line:
    """One line of a snapshot; ``index`` is only valid for that snapshot."""

    text: str
    index: int

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass
class GroupHeader:
    """A group header located in a line sequence.

    Attributes
    ----------
    full_path
        Names from the outermost group to this one, joined by the separator.
    name
        The header's own name (text before the colon).
    level
        Nesting depth of the header line.
    start
        Index of the header line itself.
    end
        Index of the last line still part of the group's subtree.
    """

    full_path: str
    name: str
    level: int
    start: int
    end: int


@dataclass
class InsertItem:
    """A block of text to relocate into an outline.

    ``projects`` lists the enclosing group names outermost first; ``None`` or
    an empty list both mean the block belongs at the root. ``indent_unit``
    is the unit the text was indented with; when ``None`` it is detected
    from the text itself.
    """

    text: str = ""
    projects: Optional[List[str]] = None
    source_order: int = 0
    indent_unit: Optional[str] = None

    @property
    def path(self) -> List[str]:
        return [p for p in (self.projects or []) if p]

    @classmethod
    def coerce(cls, value: Any, default_order: int = 0) -> "InsertItem":
        """Build an item from an ``InsertItem``, a mapping or a plain string.

        Mappings may use ``source_order``/``sourceOrder`` and may wrap the
        payload in an ``obj`` key (the shape produced by older callers).
        """
        if isinstance(value, InsertItem):
            return value
        if isinstance(value, str):
            return cls(text=value, source_order=default_order)
        if isinstance(value, Mapping):
            payload = value.get("obj") if isinstance(value.get("obj"), Mapping) else value
            text = payload.get("text") or ""
            projects = payload.get("projects")
            order = payload.get("source_order", payload.get("sourceOrder", value.get("lineNumber", default_order)))
            unit = payload.get("indent_unit", payload.get("indentUnit"))
            return cls(
                text=text if isinstance(text, str) else str(text),
                projects=[str(p) for p in projects] if projects else None,
                source_order=order if isinstance(order, int) else default_order,
                indent_unit=unit if isinstance(unit, str) and unit and not unit.strip() else None,
            )
        return cls(source_order=default_order)


@dataclass(frozen=True)
class MergeConfig:
    """Options controlling a merge into archive content.

    Attributes
    ----------
    indent_unit
        Indentation used when the destination has none of its own to detect.
    path_separator
        Joins group names into a dotted path.
    root_indent_level
        Level at which top-level groups are created.
    association_tag
        Keyword of the ``@keyword(...)`` backlink tokens stripped from content.
    """

    indent_unit: str = DEFAULT_INDENT_UNIT
    path_separator: str = "."
    root_indent_level: int = 0
    association_tag: str = "project"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "MergeConfig":
        """Build a config from flat, camelCase or nested mappings.

        Invalid or missing values fall back to the defaults.
        """
        if not isinstance(data, Mapping):
            return cls()

        unit = _first_of(data, "indent_unit", "indentUnit", "indentation")
        if not isinstance(unit, str) or not unit or unit.strip():
            unit = DEFAULT_INDENT_UNIT

        separator = _first_of(data, "path_separator", "pathSeparator", "project_separator")
        if separator is None:
            archive = data.get("archive")
            if isinstance(archive, Mapping) and isinstance(archive.get("project"), Mapping):
                separator = archive["project"].get("separator")
        if not isinstance(separator, str) or not separator:
            separator = "."

        root_level = _first_of(data, "root_indent_level", "rootIndentLevel")
        if isinstance(root_level, bool) or not isinstance(root_level, int) or root_level < 0:
            root_level = 0

        tag = _first_of(data, "association_tag", "associationTag")
        if not isinstance(tag, str) or not tag:
            tag = "project"

        return cls(indent_unit=unit, path_separator=separator, root_indent_level=root_level, association_tag=tag)

    @classmethod
    def from_config_manager(cls, manager: Optional[Any] = None) -> "MergeConfig":
        """Build a config from the ``archive`` section of the ConfigManager."""
        if manager is None:
            from outline_toolkit.config import ConfigManager

            manager = ConfigManager()
        return cls.from_mapping(manager.get_archive_config())


def _first_of(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


@dataclass
class OutlineDocument:
    """In-memory outline text split into lines.

    ``identity`` names the document for indentation caching (a file path,
    an editor URI...); documents without one are never cached.
    """

    lines: List[str] = field(default_factory=list)
    identity: str = ""

    @classmethod
    def from_text(cls, text: Optional[str], identity: str = "") -> "OutlineDocument":
        return cls(lines=(text or "").split("\n"), identity=identity)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_at(self, index: int) -> Line:
        return Line(self.lines[index], index)


@dataclass(frozen=True)
class WalkStep:
    """Arguments handed to a walker callback for each visited line."""

    start_line: Optional[Line]
    start_level: int
    line: Line
    level: int
