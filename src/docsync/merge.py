"""Section locator and merger.

`merge_section(text, name, content)` is total: it always returns a document.

- empty content: the document is returned unchanged
- no matching section: `## <name>` is appended at the end
- matching section: its line range is replaced by heading + blank + content,
  everything outside the range is kept verbatim
- a name mentioning both "features" and "api": catalog merge; all matching
  sections are folded into the first one and the others removed

NOTE:
- Plain replacement is a full block replacement, not a line diff.
- When the new content carries its own headings it replaces the whole
  subtree of the matched section (hierarchical range). Otherwise the flat range
  is used and hand-written subsections below the matched heading survive.
- Content headings at or above the matched level become siblings of the
  section; a repeated merge replaces those siblings instead of adding them again.
- Fenced code blocks in a catalog section are kept after the rendered entries.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from docsync.catalog import Catalog, fenced_blocks, parse_catalog
from docsync.formatting import FormattingProfile, detect_formatting, join_lines, split_lines
from docsync.sections import Heading, Section, index_sections, iter_headings, parse_heading, title_matches

log = logging.getLogger(__name__)


def is_catalog_name(name: str) -> bool:
    n = (name or "").casefold()
    return "features" in n and "api" in n


def merge_section(
    text: str,
    section_name: str,
    new_content: str,
    *,
    preserve_formatting: bool = True,
) -> str:
    text = text or ""
    if not (new_content or "").strip():
        return text

    profile = detect_formatting(text)
    if not preserve_formatting:
        profile = FormattingProfile(
            heading_gap=profile.heading_gap, final_newline=profile.final_newline
        )

    lines = split_lines(text) if text else []
    body = _content_lines(new_content)

    if is_catalog_name(section_name):
        out = _merge_catalog(text, lines, section_name, new_content, body, profile)
    else:
        out = _merge_plain(text, lines, section_name, body, profile)
    return join_lines(out, profile)


def _merge_plain(
    text: str, lines: list[str], name: str, body: list[str], profile: FormattingProfile
) -> list[str]:
    body = _strip_own_heading(body, name)
    hierarchical = any(True for _ in iter_headings(body))
    target = None
    for s in index_sections(text, hierarchical=hierarchical):
        if title_matches(s.title, name):
            target = s
            break

    if target is None:
        log.debug("section not found, appending: %s", name)
        return _append(lines, name, body, profile)

    body = _strip_own_heading(body, target.title)
    if hierarchical:
        target = _absorb_siblings(lines, target, body)
    log.debug("replacing section %r (lines %d-%d)", target.title, target.start_line, target.end_line)
    return _replace(lines, target, body, [])


def _absorb_siblings(lines: list[str], target: Section, body: list[str]) -> Section:
    """Extend `target` over the sections an earlier merge of `body` left after it.

    Body headings at or above the target's level land as siblings of the
    target, outside its hierarchical range. They are matched in order against
    the headings that directly follow the range.
    """

    siblings = [h for h in iter_headings(body) if h.level <= target.level]
    if not siblings:
        return target

    following = [h for h in iter_headings(lines) if h.line > target.end_line]
    end = target.end_line
    for want in siblings:
        if not following or following[0].line != end + 1 or not _same_heading(following[0], want):
            break
        following.pop(0)
        while following and following[0].level > target.level:
            following.pop(0)
        end = following[0].line - 1 if following else len(lines) - 1

    if end == target.end_line:
        return target
    return replace(target, end_line=end)


def _same_heading(a: Heading, b: Heading) -> bool:
    return a.level == b.level and a.title.casefold() == b.title.casefold()


def _merge_catalog(
    text: str,
    lines: list[str],
    name: str,
    new_content: str,
    body: list[str],
    profile: FormattingProfile,
) -> list[str]:
    matches = [s for s in index_sections(text, hierarchical=True) if is_catalog_name(s.title)]
    incoming = parse_catalog(new_content)

    if not matches:
        log.debug("catalog section not found, appending: %s", name)
        if incoming.is_empty():
            new_body = _strip_own_heading(body, name)
        else:
            new_body = _catalog_body(incoming, fenced_blocks(new_content))
        return _append(lines, name, new_body, profile)

    primary = matches[0]
    duplicates: list[Section] = []
    for s in matches[1:]:
        if primary.contains(s) or any(d.contains(s) for d in duplicates):
            continue
        duplicates.append(s)

    existing_text = "\n".join(s.body for s in [primary, *duplicates])
    merged = parse_catalog(existing_text).merge(incoming)
    if merged.is_empty():
        new_body = _strip_own_heading(body, primary.title)
    else:
        new_body = _catalog_body(merged, fenced_blocks(existing_text) + fenced_blocks(new_content))

    log.debug(
        "catalog merge into %r: features=%d api=%d folded=%d",
        primary.title,
        len(merged.features),
        len(merged.api),
        len(duplicates),
    )
    return _replace(lines, primary, new_body, duplicates)


def _catalog_body(cat: Catalog, blocks: list[str]) -> list[str]:
    """Rendered catalog followed by the fenced blocks, each kept once."""

    out = _content_lines(cat.render())
    seen: set[str] = set()
    for b in blocks:
        if b in seen:
            continue
        seen.add(b)
        out.append("")
        out.extend(split_lines(b))
    return out


def _replace(
    lines: list[str], target: Section, body: list[str], remove: list[Section]
) -> list[str]:
    """Replace `target` by heading + blank + body and drop `remove` ranges."""

    trailing = _trailing_blank_count(lines, target)
    replacement = [target.heading_line, ""]
    if body:
        replacement.extend(body)
        replacement.extend([""] * trailing)
    elif trailing > 1:
        replacement.extend([""] * (trailing - 1))

    drops = sorted(remove, key=lambda s: s.start_line)
    out: list[str] = []
    i = 0
    drop_idx = 0
    reached_end = False
    while i < len(lines):
        if i == target.start_line:
            out.extend(replacement)
            i = target.end_line + 1
            continue
        if drop_idx < len(drops) and i == drops[drop_idx].start_line:
            i = drops[drop_idx].end_line + 1
            if i >= len(lines):
                reached_end = True
            drop_idx += 1
            continue
        out.append(lines[i])
        i += 1

    if reached_end:
        while out and out[-1].strip() == "":
            out.pop()
        if lines and lines[-1] == "":
            out.append("")
    return out


def _append(
    lines: list[str], name: str, body: list[str], profile: FormattingProfile
) -> list[str]:
    out = list(lines)
    terminator = bool(out) and out[-1] == ""
    if terminator:
        out.pop()

    if any(line.strip() for line in out):
        if out[-1].strip() != "":
            out.extend([""] * max(1, profile.heading_gap))
    else:
        out = []

    out.append(f"## {name.strip()}")
    out.append("")
    out.extend(body)
    if terminator:
        out.append("")
    return out


def _trailing_blank_count(lines: list[str], s: Section) -> int:
    n = 0
    i = s.end_line
    while i > s.start_line and lines[i].strip() == "":
        n += 1
        i -= 1
    return n


def _content_lines(content: str) -> list[str]:
    body = split_lines(content)
    while body and body[0].strip() == "":
        body.pop(0)
    while body and body[-1].strip() == "":
        body.pop()
    return body


def _strip_own_heading(body: list[str], title: str) -> list[str]:
    if not body:
        return body
    parsed = parse_heading(body[0])
    if parsed is None or parsed[1].casefold() != title.strip().casefold():
        return body
    rest = body[1:]
    while rest and rest[0].strip() == "":
        rest.pop(0)
    return rest
