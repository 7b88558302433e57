"""Post-write validation of Markdown output.

Findings are advisory: they end up in `warnings` and never block a write.
`errors` stays empty here; it exists so callers can treat every validator the
same way.

Checks (Markdown files only):
- inline `[text](./x)` and reference `[label]: ../x` links whose relative
  target does not exist next to the file
  (fenced code blocks are skipped)
- heading-level jumps of more than one level between consecutive headings
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from docsync.formatting import split_lines
from docsync.sections import iter_headings, mark_fences

MARKDOWN_SUFFIXES = {".md", ".markdown", ".mdx"}

_INLINE_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_REF_LINK = re.compile(r"^\s{0,3}\[([^\]]+)\]:[ \t]*(\S.*?)[ \t]*$", re.MULTILINE)
_LINK_TITLE = re.compile(r'''\s+(?:"[^"]*"|'[^']*'|\([^)]*\))$''')


@dataclass
class ValidationResult:
    ok: bool = True
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def validate_markdown(content: str, path: Path) -> ValidationResult:
    warnings: list[str] = []
    errors: list[str] = []

    if path.suffix.lower() not in MARKDOWN_SUFFIXES:
        return ValidationResult(ok=True, warnings=warnings, errors=errors)

    base = path.parent
    # code samples are not links
    prose = "\n".join("" if fenced else line for _, line, fenced in mark_fences(split_lines(content)))
    for m in _INLINE_LINK.finditer(prose):
        target = _link_target(m.group(2))
        if _is_relative(target) and not (base / target).exists():
            warnings.append(f"Potentially broken relative link: {m.group(2).strip()}")

    for m in _REF_LINK.finditer(prose):
        target = _link_target(m.group(2))
        if _is_relative(target) and not (base / target).exists():
            warnings.append(f"Potentially broken reference link: [{m.group(1)}]: {m.group(2).strip()}")

    warnings.extend(heading_jumps(content))

    return ValidationResult(ok=len(errors) == 0, warnings=warnings, errors=errors)


def heading_jumps(content: str) -> list[str]:
    lines = split_lines(content)
    found: list[str] = []
    prev = 0
    for h in iter_headings(lines):
        if prev and h.level > prev + 1:
            found.append(f"Heading level jump detected: {lines[h.line].strip()} (h{prev} -> h{h.level})")
        prev = h.level
    return found


def _link_target(raw: str) -> str:
    # drop optional title: [x](./a.md "Title"); the path itself may hold spaces
    target = _LINK_TITLE.sub("", raw.strip())
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1]
    for sep in ("#", "?"):
        target = target.split(sep, 1)[0]
    return target.strip()


def _is_relative(target: str) -> bool:
    return target.startswith("./") or target.startswith("../")
