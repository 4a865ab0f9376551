"""Idempotent edits to a project's .gitignore."""

import logging
from pathlib import Path

from mcs.core.atomic_write import write_text_atomic

logger = logging.getLogger(__name__)

GITIGNORE_NAME = ".gitignore"


def gitignore_path(project_path: Path) -> Path:
    return project_path / GITIGNORE_NAME


def add_entries(gitignore: Path, entries: list[str]) -> list[str]:
    """Append each entry not already present as a line, keeping order.

    Creates the file if needed.

    Returns:
        Entries that were appended
    """
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    existing = {line.strip() for line in content.splitlines()}

    added: list[str] = []
    for entry in entries:
        entry = entry.strip()
        if not entry or entry in existing or entry in added:
            continue
        added.append(entry)

    if not added:
        return []

    if content and not content.endswith("\n"):
        content += "\n"
    content += "".join(f"{entry}\n" for entry in added)
    write_text_atomic(gitignore, content)
    logger.debug("Added %d entries to %s", len(added), gitignore)
    return added


def remove_entry(gitignore: Path, entry: str) -> bool:
    """Remove every line equal to `entry`; returns False if none matched."""
    if not gitignore.exists():
        return False
    lines = gitignore.read_text(encoding="utf-8").splitlines()
    kept = [line for line in lines if line.strip() != entry.strip()]
    if len(kept) == len(lines):
        return False
    write_text_atomic(gitignore, "".join(f"{line}\n" for line in kept))
    return True

