"""Path containment checks for every filesystem write or delete.

Relative paths reach mcs from pack manifests, the ledger and user input, so
they may contain `..` segments or traverse symlinks. All boundary checks go
through this module so the rules cannot drift between call sites.
"""

import os
from pathlib import Path


def is_contained(path: str, root: str) -> bool:
    """Check if `path` is equal to or a child of `root`.

    Pure string comparison on a segment boundary: "/a/bar" is not inside
    "/a/b". Both inputs must already be canonical if symlink safety matters.
    """
    normalized_root = root if root.endswith(os.sep) else root + os.sep
    return path == root or path == normalized_root or path.startswith(normalized_root)


def is_path_contained(path: Path, root: Path) -> bool:
    """Check containment after resolving symlinks on both sides."""
    return is_contained(str(path.resolve()), str(root.resolve()))


def safe_path(relative_path: str, root: Path) -> Path | None:
    """Join `relative_path` onto `root`, rejecting anything that escapes it.

    Args:
        relative_path: Path relative to root, possibly hostile
        root: Directory the result must stay inside

    Returns:
        The resolved absolute path, or None if the path is absolute, climbs out
        of root through `..` segments, or passes through a symlink that points
        outside root.
    """
    if Path(relative_path).is_absolute():
        return None

    resolved_root = root.resolve()
    candidate = (root / relative_path).resolve()
    if not is_contained(str(candidate), str(resolved_root)):
        return None
    return candidate


def relative_path(full: str, root: str) -> str:
    """Return `full` relative to `root`, or `full` unchanged if not inside it."""
    normalized_root = root if root.endswith(os.sep) else root + os.sep
    if full.startswith(normalized_root):
        return full[len(normalized_root) :]
    return full
