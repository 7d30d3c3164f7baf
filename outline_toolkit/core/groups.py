from __future__ import annotations

"""Group header indexing and creation over a flat line sequence.

Group headers are located with an injected classifier and organized by the
indentation of their lines. The index is never patched incrementally: any
structural edit (inserting a header) is followed by a fresh
:func:`build_group_index` call, since every index after the edit shifts.
"""

import logging
from typing import List, Optional, Protocol, Sequence

from outline_toolkit.core.indentation import detect_indent_unit, get_level
from outline_toolkit.core.models import DEFAULT_INDENT_UNIT, GroupHeader

__all__ = [
    "HeaderClassifier",
    "build_group_index",
    "find_group",
    "ensure_group_chain",
]

logger = logging.getLogger(__name__)


class HeaderClassifier(Protocol):
    """Capability used to recognize group header lines."""

    def is_group_header(self, text: str) -> bool: ...

    def header_name(self, text: str) -> Optional[str]: ...


def build_group_index(
    lines: Sequence[str],
    classifier: HeaderClassifier,
    separator: str = ".",
    fallback_unit: str = DEFAULT_INDENT_UNIT,
) -> List[GroupHeader]:
    """Return the group headers of *lines* in document order.

    Each header's ``end`` is the line before the next header at the same or
    a lower level, further capped by the first non-blank line that is not
    indented deeper than the header.
    """
    unit = detect_indent_unit(lines) or fallback_unit
    headers: List[GroupHeader] = []
    stack: List[str] = []

    for index, text in enumerate(lines):
        if not classifier.is_group_header(text):
            continue
        name = classifier.header_name(text)
        if not name:
            continue
        level = get_level(text, unit)
        del stack[level:]
        stack.append(name)
        headers.append(GroupHeader(separator.join(stack), name, level, index, len(lines) - 1))

    last = len(lines) - 1
    for i, header in enumerate(headers):
        header.end = last
        for following in headers[i + 1 :]:
            if following.level <= header.level:
                header.end = following.start - 1
                break
        for k in range(header.start + 1, len(lines)):
            text = lines[k]
            if not text or not text.strip():
                continue
            if get_level(text, unit) <= header.level:
                header.end = min(header.end, k - 1)
                break

    return headers


def find_group(headers: Sequence[GroupHeader], full_path: str) -> Optional[GroupHeader]:
    for header in headers:
        if header.full_path == full_path:
            return header
    return None


def ensure_group_chain(
    lines: List[str],
    path: Sequence[str],
    classifier: HeaderClassifier,
    separator: str = ".",
    root_indent_level: int = 0,
    fallback_unit: str = DEFAULT_INDENT_UNIT,
    header_token: str = ":",
) -> List[GroupHeader]:
    """Make sure a header exists for every prefix of *path*.

    *lines* is modified in place. A missing header is placed right below
    its parent's header line, so it becomes the first entry of the parent's
    body, or appended at the end when it has no parent. Returns the group
    index of the final line sequence.
    """
    headers = build_group_index(lines, classifier, separator, fallback_unit)

    for depth, name in enumerate(path):
        sub_path = separator.join(path[: depth + 1])
        if find_group(headers, sub_path) is not None:
            continue

        unit = detect_indent_unit(lines) or fallback_unit
        if headers:
            base_level = max(root_indent_level, min(h.level for h in headers))
        else:
            base_level = root_indent_level
        header_line = f"{unit * (base_level + depth)}{name}{header_token}"

        parent = find_group(headers, separator.join(path[:depth])) if depth else None
        if parent is not None:
            lines.insert(parent.start + 1, header_line)
        else:
            lines.append(header_line)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Groups: created header path=%s level=%d at=%s",
                sub_path,
                base_level + depth,
                parent.start + 1 if parent is not None else "end",
            )
        headers = build_group_index(lines, classifier, separator, fallback_unit)

    return headers
