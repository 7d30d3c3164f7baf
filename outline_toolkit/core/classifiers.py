from __future__ import annotations

"""Configuration-driven line classification for todo outlines.

The structural engine never decides on its own what a line *is*; it asks a
classifier. :class:`LineClassifier` is the default one, built from the
``classifiers`` configuration section (todo symbols) and recognizing:

- todo lines: a box, done or cancelled symbol followed by whitespace, or a
  markdown checkbox (``- [ ]``, ``- [x]``);
- finished todos: done/cancelled symbols, or a box carrying ``@done`` or
  ``@cancelled``;
- group headers: ``Name:`` optionally followed by decoration text or tags;
- comments: any other non-blank line.

Any object exposing ``is_group_header`` and ``header_name`` can replace it
in the merge engine.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

__all__ = [
    "DEFAULT_SYMBOLS",
    "DEFAULT_FINISHED_FORMAT",
    "LineClassifier",
    "association_tag_pattern",
    "strip_association_tags",
]

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS: Dict[str, str] = {"box": "☐", "done": "✔", "cancelled": "✘"}

DEFAULT_FINISHED_FORMAT = "%y-%m-%d %H:%M"

_MD_BOX = r"-\s+\[\s?\]"
_MD_DONE = r"-\s+\[[xX]\]"

# Lines starting with a dash rule are separators, never todos
_NOT_RULE = r"(?!--|––|——)"

_HEADER = re.compile(r"^(\s*)([^:]+):(?=\s|$|@)")

_FINISHED_TAG = re.compile(r"(?:^|[^a-zA-Z0-9])@(done|cancelled)(?:\(([^)]*)\)|(?![a-zA-Z]))")


def association_tag_pattern(keyword: str = "project") -> "re.Pattern[str]":
    """Regex matching ``@keyword(...)`` tokens and the whitespace before them."""
    return re.compile(r"[^\S\n]*@" + re.escape(keyword or "project") + r"\([^)]*\)")


def strip_association_tags(text: Optional[str], keyword: str = "project") -> str:
    """Remove every ``@keyword(...)`` backlink token from *text*."""
    if not text:
        return ""
    return association_tag_pattern(keyword).sub("", text)


def _alternation(symbols: Iterable[str]) -> str:
    seen: List[str] = []
    for symbol in symbols:
        if symbol and symbol not in seen:
            seen.append(symbol)
    return "|".join(re.escape(s) for s in seen)


class LineClassifier:
    """Classify outline lines using the configured todo symbols.

    Parameters
    ----------
    symbols : Mapping[str, str], optional
        ``box``/``done``/``cancelled`` symbols. The built-in defaults are
        always recognized as well.
    finished_format : str, optional
        ``strptime`` format of the ``@done(...)``/``@cancelled(...)`` dates.
    """

    def __init__(
        self,
        symbols: Optional[Mapping[str, Any]] = None,
        finished_format: Optional[str] = None,
    ) -> None:
        configured = dict(DEFAULT_SYMBOLS)
        for key, value in (symbols or {}).items():
            if key in configured and isinstance(value, str) and value.strip():
                configured[key] = value.strip()
        self.symbols = configured
        self.finished_format = finished_format or DEFAULT_FINISHED_FORMAT

        box = _alternation([DEFAULT_SYMBOLS["box"], configured["box"]]) + "|" + _MD_BOX
        done = _alternation([DEFAULT_SYMBOLS["done"], configured["done"]]) + "|" + _MD_DONE
        cancelled = _alternation([DEFAULT_SYMBOLS["cancelled"], configured["cancelled"]])
        any_symbol = "|".join([box, done, cancelled])
        tag_end = r"(?:\([^)]*\)|(?![a-zA-Z]))"

        self._todo = re.compile(r"^[^\S\n]*" + _NOT_RULE + r"(?:" + any_symbol + r")\s")
        self._box = re.compile(r"^[^\S\n]*" + _NOT_RULE + r"(?:" + box + r")\s")
        self._done = re.compile(
            r"^[^\S\n]*" + _NOT_RULE + r"(?:(?:" + done + r")\s|(?:" + box + r")\s.*[^a-zA-Z0-9]@done" + tag_end + r")"
        )
        self._cancelled = re.compile(
            r"^[^\S\n]*"
            + _NOT_RULE
            + r"(?:(?:"
            + cancelled
            + r")\s|(?:"
            + box
            + r")\s.*[^a-zA-Z0-9]@cancelled"
            + tag_end
            + r")"
        )

    @classmethod
    def from_config(
        cls,
        classifier_config: Optional[Mapping[str, Any]] = None,
        archive_config: Optional[Mapping[str, Any]] = None,
    ) -> "LineClassifier":
        """Build a classifier from the ``classifiers`` and ``archive`` sections."""
        symbols = (classifier_config or {}).get("symbols") if isinstance(classifier_config, Mapping) else None
        fmt = (archive_config or {}).get("finished_format") if isinstance(archive_config, Mapping) else None
        return cls(symbols if isinstance(symbols, Mapping) else None, fmt if isinstance(fmt, str) else None)

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @staticmethod
    def is_blank(text: Optional[str]) -> bool:
        return not text or not text.strip()

    def is_todo(self, text: str) -> bool:
        return bool(text) and self._todo.match(text) is not None

    def is_done(self, text: str) -> bool:
        return bool(text) and self._done.match(text) is not None

    def is_cancelled(self, text: str) -> bool:
        return bool(text) and self._cancelled.match(text) is not None

    def is_finished(self, text: str) -> bool:
        return self.is_done(text) or self.is_cancelled(text)

    def is_pending(self, text: str) -> bool:
        return bool(text) and self._box.match(text) is not None and not self.is_finished(text)

    def is_group_header(self, text: str) -> bool:
        if not text or self.is_todo(text):
            return False
        match = _HEADER.match(text)
        return match is not None and bool(match.group(2).strip())

    def is_comment(self, text: str) -> bool:
        return not self.is_blank(text) and not self.is_todo(text) and not self.is_group_header(text)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def header_name(self, text: str) -> Optional[str]:
        if not self.is_group_header(text):
            return None
        return _HEADER.match(text).group(2).strip()

    def finished_date(self, text: str) -> Optional[datetime]:
        """Return the date of the ``@done``/``@cancelled`` tag, if parseable."""
        match = _FINISHED_TAG.search(text or "")
        if not match or not match.group(2):
            return None
        try:
            return datetime.strptime(match.group(2).strip(), self.finished_format)
        except ValueError:
            logger.debug("Classifier: unparseable finished date %r (format %s)", match.group(2), self.finished_format)
            return None
