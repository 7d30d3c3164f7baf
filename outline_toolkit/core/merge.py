from __future__ import annotations

"""Merge relocated outline entries into archive content.

This module is UI-agnostic and manipulates only strings and line lists. It
must not perform any file I/O so that it can be reused by editor hosts,
scripts and tests.

Each insertion item carries a block of text and, optionally, the chain of
group names it was nested under. Missing group headers are created, the
block is re-indented one level inside its group using the destination's
own indentation unit, and blocks sent to the same group within one call
keep the order in which they were supplied.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from outline_toolkit.core.classifiers import LineClassifier, strip_association_tags
from outline_toolkit.core.groups import HeaderClassifier, build_group_index, ensure_group_chain, find_group
from outline_toolkit.core.indentation import detect_indent_unit, get_level
from outline_toolkit.core.models import ROOT_TARGET, GroupHeader, InsertItem, MergeConfig

__all__ = [
    "trim_blank_edges",
    "reindent_block",
    "insert_into_group",
    "insert_into_root",
    "merge_items_into_content",
]

logger = logging.getLogger(__name__)

_DEFAULT_CLASSIFIER = LineClassifier()


def trim_blank_edges(block: Sequence[str]) -> List[str]:
    """Return *block* without its leading and trailing blank lines."""
    start = 0
    end = len(block)
    while start < end and not block[start].strip():
        start += 1
    while end > start and not block[end - 1].strip():
        end -= 1
    return list(block[start:end])


def reindent_block(
    block: Sequence[str],
    base_level: int,
    destination_unit: str,
    fallback_unit: str,
    block_unit: Optional[str] = None,
) -> List[str]:
    """Re-render *block* so its shallowest line sits at *base_level*.

    Relative nesting inside the block is preserved; levels are computed
    with *block_unit*, or the unit detected from the block when omitted,
    and rendered with *destination_unit*.
    Blank lines come out empty.
    """
    non_blank = [line for line in block if line.strip()]
    block_unit = block_unit or detect_indent_unit(non_blank) or fallback_unit
    block_min = min((get_level(line, block_unit) for line in non_blank), default=0)

    rendered: List[str] = []
    for line in block:
        content = line.strip()
        if not content:
            rendered.append("")
            continue
        level = max(0, base_level + get_level(line, block_unit) - block_min)
        rendered.append(f"{destination_unit * level}{content}")
    return rendered


def insert_into_group(
    lines: List[str],
    target: GroupHeader,
    block: Sequence[str],
    inserted_so_far: int,
    fallback_unit: str,
    block_unit: Optional[str] = None,
) -> int:
    """Splice *block* at the top of *target*'s body.

    The block goes after the lines already inserted into the same group
    during this merge, without crossing the group's end. Returns the number
    of lines spliced in, blank ones included, so later inserts land below
    the whole block.
    """
    destination_unit = detect_indent_unit(lines) or fallback_unit
    rendered = reindent_block(block, target.level + 1, destination_unit, fallback_unit, block_unit)
    insert_at = min(target.start + 1 + inserted_so_far, target.end + 1)
    lines[insert_at:insert_at] = rendered
    return len(rendered)


def insert_into_root(lines: List[str], block: Sequence[str], inserted_so_far: int) -> int:
    """Prepend *block* to the content, after earlier root inserts.

    Leading blank lines of the content stay in front. Returns the number of
    lines spliced in.
    """
    normalized = trim_blank_edges(block)
    if not normalized:
        return 0
    insert_at = 0
    while insert_at < len(lines) and not lines[insert_at].strip():
        insert_at += 1
    insert_at = min(insert_at + inserted_so_far, len(lines))
    lines[insert_at:insert_at] = normalized
    return len(normalized)


def merge_items_into_content(
    existing_content: Optional[str],
    items: Iterable[Union[InsertItem, Mapping[str, Any], str]],
    config: Union[MergeConfig, Mapping[str, Any], None] = None,
    classifier: Optional[HeaderClassifier] = None,
) -> str:
    """Merge insertion *items* into *existing_content* and return the result.

    Parameters
    ----------
    existing_content
        Current archive text; ``None`` is treated as empty.
    items
        Entries to place, processed strictly in the given order. Plain
        mappings with ``text``/``projects``/``source_order`` keys are accepted.
    config
        A :class:`MergeConfig` or a mapping understood by
        :meth:`MergeConfig.from_mapping`.
    classifier
        Object recognizing group headers; defaults to :class:`LineClassifier`.

    Notes
    -----
    Never raises for degenerate input. An item whose group cannot be
    resolved is appended at the end instead of being dropped.
    """
    cfg = config if isinstance(config, MergeConfig) else MergeConfig.from_mapping(config)
    classifier = classifier or _DEFAULT_CLASSIFIER
    separator = cfg.path_separator

    content = existing_content if isinstance(existing_content, str) else ""
    lines = trim_blank_edges(strip_association_tags(content, cfg.association_tag).split("\n"))

    inserted: Dict[str, int] = {}
    processed = 0

    for position, raw in enumerate(items or []):
        item = InsertItem.coerce(raw, position)
        text = strip_association_tags(item.text, cfg.association_tag)
        block = [line for line in text.split("\n") if not classifier.is_group_header(line)]

        if not any(line.strip() for line in block):
            logger.debug("Merge: skipped blank item order=%d", item.source_order)
            continue
        processed += 1

        path = item.path
        if not path:
            inserted[ROOT_TARGET] = inserted.get(ROOT_TARGET, 0) + insert_into_root(
                lines, block, inserted.get(ROOT_TARGET, 0)
            )
            continue

        full_path = separator.join(path)
        headers = ensure_group_chain(
            lines,
            path,
            classifier,
            separator=separator,
            root_indent_level=cfg.root_indent_level,
            fallback_unit=cfg.indent_unit,
        )
        target = find_group(headers, full_path)
        if target is None:
            logger.warning("Merge: group %s unresolved after chain creation, appending at end", full_path)
            lines.extend(block)
            continue

        inserted[full_path] = inserted.get(full_path, 0) + insert_into_group(
            lines, target, block, inserted.get(full_path, 0), cfg.indent_unit, item.indent_unit
        )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Merge: processed=%d targets=%d result_lines=%d",
            processed,
            len(inserted),
            len(lines),
        )
    return "\n".join(lines)
