from __future__ import annotations

"""Service moving finished entries from a live outline into its archive.

This module provides a UI-agnostic, testable service that encapsulates the
archiving workflow of a todo outline: finished todos (and the comments
attached to them) are removed from the live text and merged into archive
text under the same chain of group headers they were nested in.

Scope and guarantees:
- Operates purely on strings; no file I/O nor editor state. Callers read
  and write the documents themselves (see :func:`resolve_archive_path`).
- Conservative behavior; degenerate input yields an ArchiveResult, never
  an exception.
- Callers must serialize archive runs targeting the same archive text.

Examples
--------
Basic usage:

    service = ArchiveService({"type": "separate"})
    result = service.archive(todo_text, archive_text)
    if result.success:
        todo_text, archive_text = result.document_text, result.archive_text

"""

from dataclasses import dataclass, field, replace
from datetime import datetime
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from outline_toolkit.core.classifiers import LineClassifier
from outline_toolkit.core.indentation import IndentationResolver, get_level
from outline_toolkit.core.merge import merge_items_into_content, reindent_block
from outline_toolkit.core.models import InsertItem, MergeConfig, OutlineDocument, WalkStep
from outline_toolkit.core.walker import walk_down, walk_up


__all__ = [
    "ARCHIVE_TYPES",
    "ArchiveResult",
    "ArchiveSettings",
    "ArchiveService",
    "resolve_archive_path",
]

logger = logging.getLogger(__name__)

ARCHIVE_TYPES = ("same_file", "separate", "separate_root")


@dataclass(frozen=True)
class ArchiveResult:
    """Result of an archive run.

    Attributes
    ----------
    success
        Whether the run completed.
    message
        Human-readable summary suitable for logs or UI display.
    document_text
        The live outline with archived lines removed.
    archive_text
        The merged archive text for separate-file archives; ``None`` when
        the archive lives inside ``document_text``.
    archived
        Number of entries merged into the archive.
    removed
        Sorted indices (in the input document) of the removed lines.
    """

    success: bool
    message: str
    document_text: str = ""
    archive_text: Optional[str] = None
    archived: int = 0
    removed: Tuple[int, ...] = ()


@dataclass(frozen=True)
class ArchiveSettings:
    """Archive options, read from the ``archive`` configuration section."""

    name: str = "Archive"
    type: str = "separate"
    file_name: str = ".todo"
    sort_by_date: bool = False
    remove_empty_projects: bool = True
    remove_empty_lines: int = 1
    merge: MergeConfig = field(default_factory=MergeConfig)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ArchiveSettings":
        if not isinstance(data, Mapping):
            return cls()
        defaults = cls()
        archive_type = data.get("type")
        if archive_type not in ARCHIVE_TYPES:
            if archive_type is not None:
                logger.warning("Archive: unknown archive type %r, using %s", archive_type, defaults.type)
            archive_type = defaults.type
        empty_lines = data.get("remove_empty_lines", defaults.remove_empty_lines)
        if isinstance(empty_lines, bool) or not isinstance(empty_lines, int):
            empty_lines = defaults.remove_empty_lines
        name = data.get("name")
        file_name = data.get("file_name")
        return cls(
            name=name.strip() if isinstance(name, str) and name.strip() else defaults.name,
            type=archive_type,
            file_name=file_name if isinstance(file_name, str) and file_name else defaults.file_name,
            sort_by_date=bool(data.get("sort_by_date", defaults.sort_by_date)),
            remove_empty_projects=bool(data.get("remove_empty_projects", defaults.remove_empty_projects)),
            remove_empty_lines=empty_lines,
            merge=MergeConfig.from_mapping(data),
        )


@dataclass
class _ArchivePlan:
    remove: Set[int] = field(default_factory=set)
    insert: Dict[int, InsertItem] = field(default_factory=dict)


def resolve_archive_path(
    source_path: str,
    archive_type: str = "separate",
    root_path: Optional[str] = None,
    file_name: str = ".todo",
) -> Optional[str]:
    """Return where the archive of *source_path* lives, or ``None`` for same-file archives.

    ``separate`` archives sit next to the source as ``ARCHIVE.<basename>``;
    ``separate_root`` archives are shared by a whole tree and named after
    *file_name* inside *root_path* (the source's folder when omitted).
    A leading dot is dropped so ``.todo`` gives ``ARCHIVE.todo``.
    """
    if archive_type == "separate":
        base = os.path.basename(source_path).lstrip(".") or "todo"
        return os.path.join(os.path.dirname(source_path), f"ARCHIVE.{base}")
    if archive_type == "separate_root":
        base = (file_name or ".todo").lstrip(".") or "todo"
        return os.path.join(root_path or os.path.dirname(source_path), f"ARCHIVE.{base}")
    return None


class ArchiveService:
    """Encapsulates the archive workflow of a todo outline.

    Parameters
    ----------
    config : Mapping, optional
        ``archive`` configuration section; loaded from
        :class:`~outline_toolkit.config.ConfigManager` when omitted.
    classifier : LineClassifier, optional
        Line classifier; built from the ``classifiers`` section when omitted.
    indentation : IndentationResolver, optional
        Resolver used for the live document; may carry a cache.
    """

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        classifier: Optional[LineClassifier] = None,
        indentation: Optional[IndentationResolver] = None,
    ) -> None:
        classifier_config: Optional[Mapping[str, Any]] = None
        if config is None or classifier is None:
            from outline_toolkit.config import ConfigManager

            manager = ConfigManager()
            if config is None:
                config = manager.get_archive_config()
            classifier_config = manager.get_classifier_config()
        self._settings = ArchiveSettings.from_mapping(config)
        self._classifier = classifier or LineClassifier.from_config(classifier_config, config)
        self._indentation = indentation or IndentationResolver(fallback=self._settings.merge.indent_unit)

    @property
    def settings(self) -> ArchiveSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def archive(
        self,
        document_text: str,
        archive_text: Optional[str] = None,
        *,
        identity: str = "",
        indent_unit: Optional[str] = None,
    ) -> ArchiveResult:
        """Archive the finished entries of *document_text*.

        *archive_text* is the current content of the separate archive (it is
        ignored for same-file archives). *indent_unit* overrides the
        indentation detected in the live document, e.g. with an editor's
        tab settings.
        """
        if not isinstance(document_text, str):
            logger.warning("Archive FAIL: document is not text type=%s", type(document_text).__name__)
            return ArchiveResult(False, "Document text must be a string.", "", archive_text)

        settings = self._settings
        document = OutlineDocument.from_text(document_text, identity)
        unit = indent_unit or self._indentation.get_indentation(document)
        resolver = IndentationResolver(fixed_unit=unit)
        logger.info("Archive: document=%s type=%s lines=%d", identity or "<anonymous>", settings.type, document.line_count)

        same_file = settings.type == "same_file"
        archive_line = self._find_archive_header(document) if same_file else None
        region_end = archive_line if archive_line is not None else document.line_count
        region = OutlineDocument(document.lines[:region_end], identity)

        plan = _ArchivePlan()
        self._collect_finished(region, plan)
        self._collect_comments(region, plan, resolver)
        self._collect_group_chains(region, plan, resolver)
        self._collect_empty_groups(region, plan, resolver)
        self._collect_blank_runs(region, plan, resolver)

        items = self._ordered_items(plan, unit)
        lines = list(document.lines)
        merged_archive = archive_text

        if items and same_file:
            archive_line = self._merge_same_file(lines, archive_line, items, unit)
        elif items:
            content = archive_text or ""
            if content and not content.endswith("\n"):
                content += "\n"
            merged_archive = merge_items_into_content(
                content,
                items,
                replace(settings.merge, indent_unit=unit),
                self._classifier,
            )

        for index in sorted(plan.remove, reverse=True):
            del lines[index]

        removed = tuple(sorted(plan.remove))
        if items:
            message = f"Archived {len(items)} entr{'y' if len(items) == 1 else 'ies'}."
            logger.info("Archive OK: archived=%d removed=%d", len(items), len(removed))
        else:
            message = "Nothing to archive."
            logger.info("Archive noop: removed=%d", len(removed))
        return ArchiveResult(True, message, "\n".join(lines), merged_archive, len(items), removed)

    # -------------------------------------------------------------------------
    # Transformations (applied in this order)
    # -------------------------------------------------------------------------

    def _collect_finished(self, region: OutlineDocument, plan: _ArchivePlan) -> None:
        for index, text in enumerate(region.lines):
            if self._classifier.is_finished(text):
                plan.remove.add(index)
                plan.insert[index] = InsertItem(text=text, source_order=index)

    def _collect_comments(self, region: OutlineDocument, plan: _ArchivePlan, resolver: IndentationResolver) -> None:
        # Comments travel in their todo's block so their nesting survives re-indentation
        for index in sorted(plan.remove):
            item = plan.insert[index]
            attached: List[str] = []

            def _visit(step: WalkStep) -> bool:
                if self._classifier.is_comment(step.line.text) and step.level >= step.start_level:
                    plan.remove.add(step.line.index)
                    attached.append(step.line.text)
                    return True
                return False

            walk_down(region, index, True, False, _visit, resolver)
            if attached:
                item.text = "\n".join([item.text] + attached)

    def _collect_group_chains(self, region: OutlineDocument, plan: _ArchivePlan, resolver: IndentationResolver) -> None:
        for index, item in plan.insert.items():
            names = self._ancestor_names(region, index, resolver)
            if names:
                item.projects = names

    def _collect_empty_groups(self, region: OutlineDocument, plan: _ArchivePlan, resolver: IndentationResolver) -> None:
        if not self._settings.remove_empty_projects:
            return

        claimed: Set[int] = set()
        header_indices = [i for i, text in enumerate(region.lines) if self._classifier.is_group_header(text)]

        # Innermost groups first so each body line is carried by its own group
        for index in reversed(header_indices):
            subtree: List[int] = []
            has_pending = False

            def _visit(step: WalkStep) -> Optional[bool]:
                nonlocal has_pending
                if step.level == step.start_level:
                    return False
                if self._classifier.is_pending(step.line.text):
                    has_pending = True
                    return False
                subtree.append(step.line.index)
                return None

            walk_down(region, index, True, False, _visit, resolver)
            if has_pending:
                continue

            body = [
                region.lines[i]
                for i in subtree
                if i not in plan.remove and i not in claimed and not self._classifier.is_group_header(region.lines[i])
            ]
            plan.remove.add(index)
            plan.remove.update(subtree)
            claimed.update(subtree)

            if any(text.strip() for text in body):
                chain = self._ancestor_names(region, index, resolver)
                chain.append(self._classifier.header_name(region.lines[index]) or "")
                plan.insert[index] = InsertItem(text="\n".join(body), projects=chain, source_order=index)
            logger.debug("Archive: removing empty group line=%d body_lines=%d", index, len(body))

    def _collect_blank_runs(self, region: OutlineDocument, plan: _ArchivePlan, resolver: IndentationResolver) -> None:
        max_blank = self._settings.remove_empty_lines
        if max_blank < 0:
            return
        streak = 0

        def _visit(step: WalkStep) -> None:
            nonlocal streak
            if step.line.index in plan.remove:
                return None
            if step.line.text.strip():
                streak = 0
            else:
                streak += 1
                if streak > max_blank:
                    plan.remove.add(step.line.index)
            return None

        walk_down(region, -1, False, False, _visit, resolver)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ancestor_names(self, region: OutlineDocument, index: int, resolver: IndentationResolver) -> List[str]:
        names: List[str] = []

        def _visit(step: WalkStep) -> None:
            name = self._classifier.header_name(step.line.text)
            if name:
                names.append(name)

        walk_up(region, index, True, True, _visit, resolver)
        names.reverse()
        return names

    def _find_archive_header(self, document: OutlineDocument) -> Optional[int]:
        for index, text in enumerate(document.lines):
            if self._classifier.header_name(text) == self._settings.name:
                return index
        return None

    def _ordered_items(self, plan: _ArchivePlan, unit: str) -> List[InsertItem]:
        items = [plan.insert[index] for index in sorted(plan.insert)]
        if self._settings.sort_by_date and items:
            # Non-finished entries inherit the date of the todo above them
            keys: List[datetime] = []
            previous = datetime.min
            for item in items:
                if self._classifier.is_finished(item.text):
                    previous = self._classifier.finished_date(item.text) or datetime.min
                keys.append(previous)
            order = sorted(range(len(items)), key=lambda i: keys[i], reverse=True)
            items = [items[i] for i in order]
        # Archived text keeps the live document's indentation
        return [replace(item, source_order=position, indent_unit=unit) for position, item in enumerate(items)]

    def _merge_same_file(self, lines: List[str], archive_line: Optional[int], items: List[InsertItem], unit: str) -> int:
        """Merge *items* into the archive section at the bottom of *lines*."""
        if archive_line is None:
            if lines and lines[-1].strip():
                lines.append("")
            lines.append(f"{self._settings.name}:")
            archive_line = len(lines) - 1
            logger.debug("Archive: created archive header line=%d", archive_line)

        archive_level = get_level(lines[archive_line], unit)
        item_levels = [
            min((get_level(text, unit) for text in item.text.split("\n") if text.strip()), default=0) for item in items
        ]
        min_level = min(item_levels)
        normalized = [
            replace(
                item,
                text="\n".join(
                    reindent_block(item.text.split("\n"), archive_level + 1 + level - min_level, unit, unit, unit)
                ),
            )
            for item, level in zip(items, item_levels)
        ]

        merge_config = replace(self._settings.merge, indent_unit=unit, root_indent_level=archive_level + 1)
        merged = merge_items_into_content("\n".join(lines[archive_line + 1 :]), normalized, merge_config, self._classifier)
        lines[archive_line + 1 :] = merged.split("\n") if merged else []
        return archive_line
