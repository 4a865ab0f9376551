"""Versioned fragment blocks inside shared hook scripts.

A managed hook script contains exactly one extension marker line. Other
components contribute fragments that live in blocks delimited by

    # --- mcs:begin <identifier> v<version> ---
    ...fragment...
    # --- mcs:end <identifier> ---

New blocks are inserted immediately before the extension marker, each followed
by one blank separator line. The file is parsed into a sequence of plain lines
and blocks, edited as a list, and joined back, so every line outside the edited
block is written back verbatim.
"""

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path

from mcs.core.atomic_write import write_text_atomic
from mcs.core.backup import Backup
from mcs.core.constants import HOOK_EXTENSION_MARKER

logger = logging.getLogger(__name__)

_BEGIN_RE = re.compile(
    r"^(?P<indent>[ \t]*)# --- mcs:begin (?P<id>\S+)(?: v(?P<version>\S+))? ---\s*$"
)
_END_RE = re.compile(r"^[ \t]*# --- mcs:end (?P<id>\S+) ---\s*$")


def begin_marker(identifier: str, version: str) -> str:
    return f"# --- mcs:begin {identifier} v{version} ---"


def end_marker(identifier: str) -> str:
    return f"# --- mcs:end {identifier} ---"


@dataclass(frozen=True)
class FragmentBlock:
    """A parsed begin..end block."""

    identifier: str
    version: str | None
    indent: str
    body: tuple[str, ...]
    begin_line: str
    end_line: str

    def render(self) -> list[str]:
        return [self.begin_line, *self.body, self.end_line]


@dataclass(frozen=True)
class HookDocument:
    """A hook script as an ordered list of plain lines and fragment blocks."""

    segments: tuple[str | FragmentBlock, ...]

    def find_block(self, identifier: str) -> int | None:
        for index, segment in enumerate(self.segments):
            if isinstance(segment, FragmentBlock) and segment.identifier == identifier:
                return index
        return None

    def find_marker(self) -> int | None:
        for index, segment in enumerate(self.segments):
            if isinstance(segment, str) and segment.strip() == HOOK_EXTENSION_MARKER:
                return index
        return None

    @property
    def identifiers(self) -> list[str]:
        return [s.identifier for s in self.segments if isinstance(s, FragmentBlock)]

    def render(self) -> str:
        lines: list[str] = []
        for segment in self.segments:
            if isinstance(segment, FragmentBlock):
                lines.extend(segment.render())
            else:
                lines.append(segment)
        return "\n".join(lines)


def parse_hook_document(content: str) -> HookDocument:
    """Split hook script content into plain lines and fragment blocks.

    A begin marker without a matching end marker is left as plain text so a
    damaged block is never silently swallowed.
    """
    lines = content.split("\n")
    segments: list[str | FragmentBlock] = []
    index = 0
    while index < len(lines):
        line = lines[index]
        begin = _BEGIN_RE.match(line)
        if begin is None:
            segments.append(line)
            index += 1
            continue

        identifier = begin.group("id")
        end_index = _find_end(lines, index + 1, identifier)
        if end_index is None:
            logger.warning("Unpaired begin marker for hook fragment '%s'", identifier)
            segments.append(line)
            index += 1
            continue

        segments.append(
            FragmentBlock(
                identifier=identifier,
                version=begin.group("version"),
                indent=begin.group("indent"),
                body=tuple(lines[index + 1 : end_index]),
                begin_line=line,
                end_line=lines[end_index],
            )
        )
        index = end_index + 1
    return HookDocument(segments=tuple(segments))


def _find_end(lines: list[str], start: int, identifier: str) -> int | None:
    for index in range(start, len(lines)):
        end = _END_RE.match(lines[index])
        if end is not None and end.group("id") == identifier:
            return index
    return None


def _fragment_lines(fragment: str) -> tuple[str, ...]:
    return tuple(fragment.rstrip("\n").split("\n"))


def inject_fragment(
    document: HookDocument, fragment: str, identifier: str, version: str
) -> HookDocument | None:
    """Return a document with `fragment` placed under `identifier`.

    An existing block is replaced in place and any later duplicates of it are
    dropped; otherwise a new block is inserted before the extension marker.
    Returns None if a new block is needed but the document has no extension
    marker.
    """
    existing_index = document.find_block(identifier)
    if existing_index is not None:
        existing = document.segments[existing_index]
        assert isinstance(existing, FragmentBlock)
        updated = replace(
            existing,
            version=version,
            body=_fragment_lines(fragment),
            begin_line=existing.indent + begin_marker(identifier, version),
            end_line=existing.indent + end_marker(identifier),
        )
        segments = list(document.segments)
        segments[existing_index] = updated
        segments = _drop_blocks(segments, identifier, existing_index + 1)
        return HookDocument(segments=tuple(segments))

    marker_index = document.find_marker()
    if marker_index is None:
        return None

    marker_line = document.segments[marker_index]
    assert isinstance(marker_line, str)
    indent = marker_line[: len(marker_line) - len(marker_line.lstrip())]
    block = FragmentBlock(
        identifier=identifier,
        version=version,
        indent=indent,
        body=_fragment_lines(fragment),
        begin_line=indent + begin_marker(identifier, version),
        end_line=indent + end_marker(identifier),
    )
    segments = list(document.segments)
    segments[marker_index:marker_index] = [block, ""]
    return HookDocument(segments=tuple(segments))


def remove_fragment(document: HookDocument, identifier: str) -> HookDocument | None:
    """Return a document without the `identifier` block, or None if absent.

    Duplicate blocks for the same identifier are all removed. The single
    blank separator line following each block goes with it.
    """
    index = document.find_block(identifier)
    if index is None:
        return None
    return HookDocument(segments=tuple(_drop_blocks(list(document.segments), identifier, index)))


def _drop_blocks(
    segments: list[str | FragmentBlock], identifier: str, start: int
) -> list[str | FragmentBlock]:
    result = segments[:start]
    drop_blank = False
    for segment in segments[start:]:
        if isinstance(segment, FragmentBlock) and segment.identifier == identifier:
            drop_blank = True
            continue
        if drop_blank and segment == "":
            drop_blank = False
            continue
        drop_blank = False
        result.append(segment)
    return result


def inject(fragment: str, identifier: str, version: str, hook_file: Path, backup: Backup) -> bool:
    """Inject `fragment` into `hook_file` under a versioned block.

    Idempotent: re-injecting an identifier replaces its block, so exactly one
    block per identifier survives.

    Args:
        fragment: Script text to place inside the block
        identifier: Unique block identifier
        version: Version recorded in the begin marker
        hook_file: Hook script containing the extension marker
        backup: Receives the original content before the file is rewritten

    Returns:
        True if the file was written, False if it is missing or has no
        extension marker to anchor a new block.
    """
    if not hook_file.is_file():
        logger.debug("Hook file %s not found, skipping fragment '%s'", hook_file, identifier)
        return False

    content = hook_file.read_text(encoding="utf-8")
    updated = inject_fragment(parse_hook_document(content), fragment, identifier, version)
    if updated is None:
        logger.error(
            "Missing '%s' marker in %s, cannot inject '%s' fragment",
            HOOK_EXTENSION_MARKER,
            hook_file.name,
            identifier,
        )
        return False

    new_content = updated.render()
    if new_content == content:
        return True
    backup.capture(hook_file)
    write_text_atomic(hook_file, new_content)
    logger.debug("Injected '%s' v%s into %s", identifier, version, hook_file)
    return True


def remove(identifier: str, hook_file: Path, backup: Backup) -> bool:
    """Remove the `identifier` block from `hook_file`.

    Returns:
        True if a block was removed. False when the file does not exist or
        the identifier is not present; the file is never created.
    """
    if not hook_file.is_file():
        return False

    content = hook_file.read_text(encoding="utf-8")
    updated = remove_fragment(parse_hook_document(content), identifier)
    if updated is None:
        return False

    backup.capture(hook_file)
    write_text_atomic(hook_file, updated.render())
    logger.debug("Removed '%s' from %s", identifier, hook_file)
    return True


def find_fragment(hook_file: Path, identifier: str) -> FragmentBlock | None:
    """Return the `identifier` block in `hook_file`, or None if absent."""
    if not hook_file.is_file():
        return None
    document = parse_hook_document(hook_file.read_text(encoding="utf-8"))
    index = document.find_block(identifier)
    if index is None:
        return None
    block = document.segments[index]
    assert isinstance(block, FragmentBlock)
    return block
