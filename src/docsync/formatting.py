"""Byte-level layout of a Markdown document.

A `FormattingProfile` is detected once from the pristine file text and
re-applied to the merged output:

- line endings (`\\n` or `\\r\\n`)
- indentation sample (leading whitespace of the first non-empty line)
- blank-line positions and the usual gap before headings

NOTE:
- The profile is never inferred from new content being merged in.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field

_LINE_SPLIT = re.compile(r"\r?\n")
_HEADING = re.compile(r"^#{1,6}\s+\S")


@dataclass(frozen=True)
class FormattingProfile:
    line_ending: str = "\n"
    indentation: str = ""
    blank_lines: frozenset[int] = field(default_factory=frozenset)
    trailing_whitespace: bool = False
    heading_gap: int = 1  # blank lines usually found before a heading
    final_newline: bool = False


def split_lines(text: str) -> list[str]:
    """Split on either line ending. A trailing newline yields a final ""."""

    return _LINE_SPLIT.split(text)


def join_lines(lines: list[str], profile: FormattingProfile) -> str:
    return profile.line_ending.join(lines)


def detect_formatting(text: str) -> FormattingProfile:
    if not text:
        return FormattingProfile()

    lines = split_lines(text)
    line_ending = "\r\n" if "\r\n" in text else "\n"

    indentation = ""
    for line in lines:
        if line.strip():
            indentation = line[: len(line) - len(line.lstrip())]
            break

    blank = frozenset(i for i, line in enumerate(lines) if line.strip() == "")

    return FormattingProfile(
        line_ending=line_ending,
        indentation=indentation,
        blank_lines=blank,
        trailing_whitespace=any(line != line.rstrip() for line in lines),
        heading_gap=_heading_gap(lines),
        final_newline=text.endswith("\n"),
    )


def _heading_gap(lines: list[str]) -> int:
    gaps: Counter[int] = Counter()
    for i, line in enumerate(lines):
        if i == 0 or not _HEADING.match(line):
            continue
        n = 0
        j = i - 1
        while j >= 0 and lines[j].strip() == "":
            n += 1
            j -= 1
        if j >= 0:
            gaps[n] += 1
    if not gaps:
        return 1
    # most common; ties go to the smaller gap
    return sorted(gaps.items(), key=lambda kv: (-kv[1], kv[0]))[0][0]
