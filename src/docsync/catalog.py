"""Features / API catalog entries.

A catalog section holds two sub-blocks of bold-labelled entries:

```markdown
**Features:**

- **Section merge**: replaces one section in place

**API:**

- **merge_section(text, name, content)**: returns the merged document
```

Entries are keyed by their bold label (case-insensitive). When catalogs are
merged the first occurrence of a key wins, so existing document entries keep
their wording over newly generated ones.

Parsing rules:
- an entry is `**Key**: description`, optionally behind a `-`, `*` or `+` bullet
- `**Features:**` / `**API:**` lines, or headings titled Features / API, switch
  the current sub-block; entries before any label belong to Features
- the key runs up to the first `**:`, so signatures like `run(*args)` or
  `f(**kw)` are keys too
- anything else (prose, `**Returns:** x`, `**Key:** x`) is not an entry
- lines inside fenced code blocks are never entries; `fenced_blocks` returns
  them so a merge can carry them over
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from docsync.sections import mark_fences, parse_heading

FEATURES = "Features"
API = "API"

ENTRY_RE = re.compile(r"^\s*(?:[-*+]\s+)?\*\*(?P<key>.+?)\*\*\s*:\s*(?P<desc>\S.*?)\s*$")
_LABEL_RE = re.compile(r"^\s*\*\*(?P<label>features|api)\s*:?\s*\*\*\s*:?\s*$", re.IGNORECASE)
_FEATURE_HEADING_RE = re.compile(r"^(?:(?:new|enhanced|deprecated)\s+)?features$", re.IGNORECASE)
_API_HEADING_RE = re.compile(r"^api(?:s| reference)?$", re.IGNORECASE)


@dataclass(frozen=True)
class CatalogEntry:
    key: str
    description: str

    @property
    def norm_key(self) -> str:
        return self.key.strip().casefold()

    def render(self) -> str:
        return f"- **{self.key}**: {self.description}"


@dataclass
class Catalog:
    features: list[CatalogEntry] = field(default_factory=list)
    api: list[CatalogEntry] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.features and not self.api

    def merge(self, other: Catalog) -> Catalog:
        """self first, then other; first occurrence of a key wins per sub-block."""

        return Catalog(
            features=dedupe([*self.features, *other.features]),
            api=dedupe([*self.api, *other.api]),
        )

    def render(self) -> str:
        lines: list[str] = []
        for label, entries in ((FEATURES, self.features), (API, self.api)):
            if not entries:
                continue
            lines.append(f"**{label}:**")
            lines.append("")
            lines.extend(e.render() for e in entries)
            lines.append("")
        return "\n".join(lines).strip("\n")


def dedupe(entries: Iterable[CatalogEntry]) -> list[CatalogEntry]:
    seen: set[str] = set()
    out: list[CatalogEntry] = []
    for e in entries:
        if e.norm_key in seen:
            continue
        seen.add(e.norm_key)
        out.append(e)
    return out


def _block_label(line: str) -> str | None:
    m = _LABEL_RE.match(line)
    if m:
        return API if m.group("label").lower() == "api" else FEATURES
    heading = parse_heading(line.strip())
    if heading is None:
        return None
    title = heading[1].strip().rstrip(":")
    if _FEATURE_HEADING_RE.match(title):
        return FEATURES
    if _API_HEADING_RE.match(title):
        return API
    return None


def parse_catalog(text: str) -> Catalog:
    cat = Catalog()
    current = FEATURES
    for _, line, fenced in mark_fences((text or "").splitlines()):
        if fenced:
            continue
        label = _block_label(line)
        if label is not None:
            current = label
            continue
        m = ENTRY_RE.match(line)
        if not m:
            continue
        entry = CatalogEntry(key=m.group("key").strip(), description=m.group("desc"))
        if not entry.key:
            continue
        (cat.api if current == API else cat.features).append(entry)
    return cat


def fenced_blocks(text: str) -> list[str]:
    """Fenced code blocks of `text`, delimiters included, in document order."""

    blocks: list[str] = []
    current: list[str] = []
    for _, line, fenced in mark_fences((text or "").splitlines()):
        if fenced:
            current.append(line)
            continue
        if current:
            blocks.append("\n".join(current))
            current = []
    if current:
        blocks.append("\n".join(current))
    return blocks


def catalog_from_pairs(
    features: Iterable[tuple[str, str]] = (),
    apis: Iterable[tuple[str, str]] = (),
) -> str:
    """Render a catalog body from (name, description) pairs."""

    cat = Catalog(
        features=dedupe(CatalogEntry(k.strip(), d.strip()) for k, d in features if k.strip() and d.strip()),
        api=dedupe(CatalogEntry(k.strip(), d.strip()) for k, d in apis if k.strip() and d.strip()),
    )
    return cat.render()
