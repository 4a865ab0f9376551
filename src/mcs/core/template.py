"""Placeholder substitution and versioned sections in composed markdown.

Placeholders have the shape `__NAME__` and are replaced literally, one key at
a time. Composed files such as CLAUDE.local.md hold one section per pack:

    <!-- mcs:begin ios v1.0.0 -->
    ...
    <!-- mcs:end ios -->

Content outside any section belongs to the user and is never touched.
"""

import re
from dataclasses import dataclass

_PLACEHOLDER_RE = re.compile(r"__[A-Z][A-Z0-9_]+__")
_BEGIN_RE = re.compile(r"^<!-- mcs:begin (?P<id>\S+) v(?P<version>\S+) -->$")
_END_RE = re.compile(r"^<!-- mcs:end (?P<id>\S+) -->$")


@dataclass(frozen=True)
class Section:
    identifier: str
    version: str
    content: str


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace `__KEY__` with each value; unknown placeholders are left as-is."""
    result = template
    for key, value in values.items():
        result = result.replace(f"__{key}__", value)
    return result


def find_unreplaced_placeholders(text: str) -> list[str]:
    """Return each distinct `__PLACEHOLDER__` token left in `text`, in order."""
    found: list[str] = []
    for match in _PLACEHOLDER_RE.finditer(text):
        if match.group(0) not in found:
            found.append(match.group(0))
    return found


def begin_marker(identifier: str, version: str) -> str:
    return f"<!-- mcs:begin {identifier} v{version} -->"


def end_marker(identifier: str) -> str:
    return f"<!-- mcs:end {identifier} -->"


def _parse_begin(line: str) -> tuple[str, str] | None:
    match = _BEGIN_RE.match(line.strip())
    if match is None:
        return None
    return match.group("id"), match.group("version")


def _parse_end(line: str) -> str | None:
    match = _END_RE.match(line.strip())
    if match is None:
        return None
    return match.group("id")


def parse_sections(content: str) -> list[Section]:
    sections: list[Section] = []
    current: tuple[str, str] | None = None
    body: list[str] = []
    for line in content.split("\n"):
        begin = _parse_begin(line)
        if begin is not None:
            current = begin
            body = []
            continue
        end = _parse_end(line)
        if end is not None and current is not None and end == current[0]:
            identifier, version = current
            content_text = "\n".join(body)
            sections.append(Section(identifier=identifier, version=version, content=content_text))
            current = None
            continue
        if current is not None:
            body.append(line)
    return sections


def unpaired_sections(content: str) -> list[str]:
    """Identifiers with a begin marker but no matching end marker."""
    open_sections: list[str] = []
    unpaired: list[str] = []
    for line in content.split("\n"):
        begin = _parse_begin(line)
        if begin is not None:
            if open_sections:
                unpaired.append(open_sections.pop())
            open_sections.append(begin[0])
            continue
        end = _parse_end(line)
        if end is not None and open_sections and open_sections[-1] == end:
            open_sections.pop()
    return unpaired + open_sections


def replace_section(content: str, identifier: str, new_content: str, version: str) -> str:
    """Replace or append the `identifier` section.

    Content with an unpaired marker for `identifier` is returned unchanged,
    since rewriting it could drop everything after the broken marker.
    """
    if identifier in unpaired_sections(content):
        return content

    lines = content.split("\n") if content else []
    result: list[str] = []
    skipping = False
    replaced = False
    for line in lines:
        begin = _parse_begin(line)
        if begin is not None and begin[0] == identifier:
            result.extend([begin_marker(identifier, version), new_content])
            skipping = True
            replaced = True
            continue
        if skipping and _parse_end(line) == identifier:
            result.append(end_marker(identifier))
            skipping = False
            continue
        if not skipping:
            result.append(line)

    if not replaced:
        if result and result[-1] != "":
            result.append("")
        result.extend([begin_marker(identifier, version), new_content, end_marker(identifier)])
        result.append("")
    return "\n".join(result)


def remove_section(content: str, identifier: str) -> str | None:
    """Strip the `identifier` section (any version).

    The blank line after the end marker goes too when the section was
    separated from the preceding text by a blank line, or started the file.
    Every other line is kept as is.

    Returns:
        The new content, or None if the section is absent or unpaired.
    """
    if identifier in unpaired_sections(content):
        return None

    result: list[str] = []
    skipping = False
    removed = False
    drop_blank = False
    for line in content.split("\n"):
        begin = _parse_begin(line)
        if begin is not None and begin[0] == identifier:
            drop_blank = not result or result[-1] == ""
            skipping = True
            removed = True
            continue
        if skipping:
            if _parse_end(line) == identifier:
                skipping = False
            continue
        if drop_blank and line == "":
            drop_blank = False
            continue
        drop_blank = False
        result.append(line)

    if not removed:
        return None
    return "\n".join(result)
