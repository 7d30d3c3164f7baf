from __future__ import annotations

"""Traversal over the implicit hierarchy of an outline document.

A single parameterized walk underlies every structural query: finding the
chain of group headers above a line (walk up, strictly monotonic) and
collecting the lines nested under an entry (walk down until the first line
indented less than the start).

Callbacks receive a :class:`WalkStep`; returning ``False`` stops the walk,
any other value continues it.
"""

from typing import Callable, Optional

from outline_toolkit.core.indentation import IndentationResolver, get_level
from outline_toolkit.core.models import OutlineDocument, WalkStep

__all__ = ["walk", "walk_down", "walk_up", "walk_children"]

WalkCallback = Callable[[WalkStep], Optional[bool]]

_DEFAULT_RESOLVER = IndentationResolver()


def walk(
    document: OutlineDocument,
    line_nr: int = 0,
    direction: int = 1,
    skip_empty_lines: bool = True,
    strictly_monotonic: bool = False,
    callback: Optional[WalkCallback] = None,
    resolver: Optional[IndentationResolver] = None,
) -> None:
    """Visit the lines after (or before) *line_nr* in *direction*.

    Parameters
    ----------
    document
        Document whose lines are visited.
    line_nr
        Starting line; it is never passed to the callback. A negative value
        starts above the first line with a start level of ``-1``.
    direction
        ``1`` to walk down, ``-1`` to walk up.
    skip_empty_lines
        When true, blank lines are neither passed to the callback nor used
        for the monotonic comparison.
    strictly_monotonic
        When true, walking down only accepts lines deeper than the last
        accepted one, and walking up only shallower ones.
    callback
        Called with a :class:`WalkStep` per accepted line.
    resolver
        Indentation resolver; a non-caching default is used when omitted.
    """
    if callback is None:
        return
    resolver = resolver or _DEFAULT_RESOLVER
    unit = resolver.get_indentation(document)
    step = 1 if direction >= 0 else -1
    line_count = document.line_count

    if 0 <= line_nr < line_count:
        start_line = document.line_at(line_nr)
        start_level = get_level(start_line.text, unit)
    else:
        start_line = None
        start_level = -1

    prev_level = start_level
    next_nr = line_nr + step

    while 0 <= next_nr < line_count:
        line = document.line_at(next_nr)
        next_nr += step

        if skip_empty_lines and line.is_blank:
            continue

        level = get_level(line.text, unit)

        if step > 0 and level < start_level:
            break

        if strictly_monotonic and ((step > 0 and level <= prev_level) or (step < 0 and level >= prev_level)):
            continue

        if callback(WalkStep(start_line, start_level, line, level)) is False:
            break

        prev_level = level


def walk_down(
    document: OutlineDocument,
    line_nr: int,
    skip_empty_lines: bool,
    strictly_monotonic: bool,
    callback: WalkCallback,
    resolver: Optional[IndentationResolver] = None,
) -> None:
    walk(document, line_nr, 1, skip_empty_lines, strictly_monotonic, callback, resolver)


def walk_up(
    document: OutlineDocument,
    line_nr: int,
    skip_empty_lines: bool,
    strictly_monotonic: bool,
    callback: WalkCallback,
    resolver: Optional[IndentationResolver] = None,
) -> None:
    walk(document, line_nr, -1, skip_empty_lines, strictly_monotonic, callback, resolver)


def walk_children(
    document: OutlineDocument,
    line_nr: int,
    callback: WalkCallback,
    resolver: Optional[IndentationResolver] = None,
) -> None:
    """Visit only the direct children of *line_nr* (one level deeper)."""

    def _visit(step: WalkStep) -> Optional[bool]:
        if step.level <= step.start_level:
            return False
        if step.level > step.start_level + 1:
            return None
        return callback(step)

    walk_down(document, line_nr, True, False, _visit, resolver)
