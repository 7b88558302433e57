"""Section indexer for Markdown-like documents.

Two modes:

- flat: a section ends right before the next heading of any level
- hierarchical: a section ends right before the next heading whose level is
  the same or shallower, so nested subsections belong to their parent

Line indices are 0-based and inclusive, over `split_lines(text)`.
Headings inside fenced code blocks are ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from docsync.formatting import split_lines

HEADING_RE = re.compile(r"^(#{1,6})\s+(.*\S)\s*$")
_CLOSING_HASHES = re.compile(r"\s+#+$")
_FENCE_RE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")


@dataclass(frozen=True)
class Heading:
    line: int
    level: int
    title: str


@dataclass(frozen=True)
class Section:
    title: str
    level: int
    start_line: int
    end_line: int
    heading_line: str
    body: str

    def contains(self, other: Section) -> bool:
        return self.start_line <= other.start_line and other.end_line <= self.end_line


def parse_heading(line: str) -> tuple[int, str] | None:
    """Return (level, title) when `line` is an ATX heading."""

    m = HEADING_RE.match(line)
    if not m:
        return None
    title = _CLOSING_HASHES.sub("", m.group(2)).strip()
    if not title or set(title) == {"#"}:
        return None
    return len(m.group(1)), title


def mark_fences(lines: list[str]) -> Iterator[tuple[int, str, bool]]:
    """Yield (index, line, fenced). Fence delimiter lines count as fenced."""

    fence: str | None = None
    for i, line in enumerate(lines):
        fm = _FENCE_RE.match(line)
        if fm:
            marker = fm.group(1)
            if fence is None:
                fence = marker[0] * len(marker)
                yield i, line, True
                continue
            if marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
                yield i, line, True
                continue
        yield i, line, fence is not None


def iter_headings(lines: list[str]) -> Iterator[Heading]:
    for i, line, fenced in mark_fences(lines):
        if fenced:
            continue
        parsed = parse_heading(line)
        if parsed:
            yield Heading(line=i, level=parsed[0], title=parsed[1])


def index_sections(text: str, *, hierarchical: bool = False) -> list[Section]:
    """Build the ordered section table of `text`.

    Never raises; a headerless document yields an empty list.
    """

    lines = split_lines(text or "")
    headings = list(iter_headings(lines))
    last = len(lines) - 1

    sections: list[Section] = []
    for idx, h in enumerate(headings):
        end = last
        for nxt in headings[idx + 1:]:
            if not hierarchical or nxt.level <= h.level:
                end = nxt.line - 1
                break
        sections.append(
            Section(
                title=h.title,
                level=h.level,
                start_line=h.line,
                end_line=end,
                heading_line=lines[h.line],
                body="\n".join(lines[h.line + 1:end + 1]),
            )
        )
    return sections


def title_matches(title: str, name: str) -> bool:
    """Case-insensitive substring match of `name` against a section title."""

    return name.strip().casefold() in title.casefold()


def find_section(sections: list[Section], name: str) -> Section | None:
    for s in sections:
        if title_matches(s.title, name):
            return s
    return None


def extract_section(text: str, name: str) -> str | None:
    """Return the body of the first matching section, subsections included."""

    s = find_section(index_sections(text, hierarchical=True), name)
    if s is None:
        return None
    return s.body.strip("\n")
