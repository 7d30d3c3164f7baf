from __future__ import annotations

"""Indentation unit detection and level arithmetic.

Hierarchy in an outline is carried by leading whitespace only. The helpers
here infer the unit a text uses (a tab, or a run of spaces) and convert a
line's leading whitespace into an integer level given such a unit.

Document-level resolution may be memoized through an injectable cache. The
cache is an optimization only: :class:`NullIndentationCache` (the default)
never remembers anything and every result stays correct.
"""

import logging
import re
from typing import Dict, Iterable, Optional, Tuple

from outline_toolkit.core.models import DEFAULT_INDENT_UNIT, OutlineDocument

__all__ = [
    "leading_whitespace",
    "detect_indent_unit",
    "get_level",
    "IndentationCache",
    "NullIndentationCache",
    "LineCountIndentationCache",
    "IndentationResolver",
]

logger = logging.getLogger(__name__)

_LEADING_WS = re.compile(r"^[ \t]+")


def leading_whitespace(text: str) -> str:
    match = _LEADING_WS.match(text or "")
    return match.group(0) if match else ""


def detect_indent_unit(lines: Iterable[str], fallback: Optional[str] = None) -> Optional[str]:
    """Return the indentation unit used by *lines*.

    Whitespace-only lines are ignored. A tab anywhere in the leading
    whitespace wins; otherwise the unit is a run of spaces as long as the
    shortest indentation seen. When no line is indented, *fallback* is
    returned (``None`` by default so callers can tell "nothing detected"
    apart from a real unit).
    """
    runs = [ws for ws in (leading_whitespace(line) for line in lines if line and line.strip()) if ws]
    if not runs:
        return fallback
    if any("\t" in ws for ws in runs):
        return "\t"
    return " " * min(len(ws) for ws in runs)


def get_level(text: str, unit: Optional[str]) -> int:
    """Count how many whole *unit* runs prefix *text*."""
    if not unit or not text:
        return 0
    size = len(unit)
    level = 0
    index = 0
    while text.startswith(unit, index):
        level += 1
        index += size
    return level


# ---------------------------------------------------------------------------
# Caching
# ---------------------------------------------------------------------------


class IndentationCache:
    """Interface for memoizing the indentation of a document."""

    def get(self, identity: str, line_count: int) -> Optional[str]:
        raise NotImplementedError

    def put(self, identity: str, line_count: int, unit: str, confident: bool) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class NullIndentationCache(IndentationCache):
    """Cache that remembers nothing; every lookup triggers detection."""

    def get(self, identity: str, line_count: int) -> Optional[str]:
        return None

    def put(self, identity: str, line_count: int, unit: str, confident: bool) -> None:
        return None

    def clear(self) -> None:
        return None


class LineCountIndentationCache(IndentationCache):
    """Remember detected units per document identity.

    An entry detected from real indentation is trusted until cleared. An
    entry that only holds the fallback is reused while the document keeps
    the same line count, which is an approximate change signal at best.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[str, int, bool]] = {}

    def get(self, identity: str, line_count: int) -> Optional[str]:
        entry = self._entries.get(identity)
        if entry is None:
            return None
        unit, cached_count, confident = entry
        if confident or cached_count == line_count:
            return unit
        return None

    def put(self, identity: str, line_count: int, unit: str, confident: bool) -> None:
        self._entries[identity] = (unit, line_count, confident)

    def invalidate(self, identity: str) -> None:
        self._entries.pop(identity, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class IndentationResolver:
    """Resolve the indentation unit and line levels of whole documents.

    Parameters
    ----------
    cache : IndentationCache, optional
        Memoization strategy; defaults to :class:`NullIndentationCache`.
    fallback : str, default="  "
        Unit used when a document has no indented line.
    sample_size : int, default=500
        Number of leading lines inspected for detection.
    fixed_unit : str, optional
        When given, detection is skipped and this unit is always returned.
    """

    def __init__(
        self,
        cache: Optional[IndentationCache] = None,
        fallback: str = DEFAULT_INDENT_UNIT,
        sample_size: int = 500,
        fixed_unit: Optional[str] = None,
    ) -> None:
        self._cache = cache if cache is not None else NullIndentationCache()
        self._fallback = fallback or DEFAULT_INDENT_UNIT
        self._sample_size = max(1, int(sample_size))
        self._fixed_unit = fixed_unit or None

    @property
    def fallback(self) -> str:
        return self._fallback

    def get_indentation(self, document: OutlineDocument) -> str:
        if self._fixed_unit:
            return self._fixed_unit
        if document.identity:
            cached = self._cache.get(document.identity, document.line_count)
            if cached:
                return cached

        detected = detect_indent_unit(document.lines[: self._sample_size])
        unit = detected or self._fallback

        if document.identity:
            self._cache.put(document.identity, document.line_count, unit, detected is not None)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Indentation: document=%s unit=%r detected=%s",
                document.identity or "<anonymous>",
                unit,
                detected is not None,
            )
        return unit

    def get_level(self, document: OutlineDocument, text: str) -> int:
        return get_level(text, self.get_indentation(document))
