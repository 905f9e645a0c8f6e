"""Locate `$...$` math fragments in a block of text."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class DelimiterRule:
    """A delimiter pattern plus the group holding the fragment body."""

    pattern: re.Pattern[str]
    group: int


# Inline dollar math: an opening `$` not doubled, a body that neither starts
# nor ends with whitespace or punctuation and spans at most three lines, then
# a closing `$` followed by punctuation, a space or end of line. The second
# branch covers one-character bodies such as `$y$`.
DOLLAR_RULE = DelimiterRule(
    pattern=re.compile(
        r"(?<!\$)\$"
        r"([^ \t\r\n,;.$][^$\r\n]*?(?:\n[^$\r\n]*?){0,2}[^ \t\r\n,.$]|[^ \t\r\n,;.$])"
        r"\$(?=[- \t.,?;:'\")\x00]|$)",
        re.MULTILINE,
    ),
    group=1,
)

DELIMITER_RULES: dict[str, DelimiterRule] = {"$": DOLLAR_RULE}


@dataclass(frozen=True)
class Fragment:
    """Half-open [start, end) span of a fragment body within the document text."""

    start: int
    end: int
    delimiter: str = "$"

    def body(self, text: str) -> str:
        return text[self.start:self.end]

    def source(self, text: str) -> str:
        """Return the fragment with its delimiters, as handed to LaTeX."""
        return f"{self.delimiter}{self.body(text)}{self.delimiter}"


class FragmentScan:
    """Finite, restartable left-to-right scan; each iteration rescans the text."""

    def __init__(self, text: str, start: int, end: int, delimiter: str = "$"):
        if delimiter not in DELIMITER_RULES:
            raise ValueError(f"Unknown fragment delimiter: {delimiter!r}")
        self.text = text
        self.start = max(0, start)
        self.end = min(len(text), end)
        self.delimiter = delimiter

    def __iter__(self) -> Iterator[Fragment]:
        rule = DELIMITER_RULES[self.delimiter]
        if self.start >= self.end:
            return
        # A region only ever yields pairs the whole-text scan finds: pairs
        # opening before the region are skipped, and the scan stops at the
        # first pair reaching past it.
        for match in rule.pattern.finditer(self.text):
            if match.start() < self.start:
                continue
            if match.end() > self.end:
                return
            begin, finish = match.span(rule.group)
            yield Fragment(begin, finish, self.delimiter)


def locate_fragments(text: str, start: int = 0, end: int | None = None, delimiter: str = "$") -> FragmentScan:
    """Scan text[start:end] for delimited fragments, in discovery order.

    Offsets are absolute positions in `text`. An unterminated delimiter just
    ends the scan; it is not an error.
    """
    if end is None:
        end = len(text)
    return FragmentScan(text, start, end, delimiter)


def fragment_at(text: str, position: int, delimiter: str = "$") -> Fragment | None:
    """Return the fragment whose delimited span contains `position`."""
    for fragment in locate_fragments(text, 0, len(text), delimiter):
        if fragment.start - len(delimiter) <= position <= fragment.end + len(delimiter):
            return fragment
    return None
