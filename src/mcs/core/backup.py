"""In-memory snapshots of files taken before mcs mutates them."""

from pathlib import Path


class Backup:
    """Records the original content of each file before its first mutation.

    Only the first snapshot of a path is kept, so restore_all() returns a file
    to the state it had before this Backup saw it, however many edits followed.
    """

    def __init__(self) -> None:
        self._originals: dict[Path, bytes | None] = {}

    def capture(self, path: Path) -> None:
        """Snapshot `path` if it has not been captured yet.

        A path that does not exist is recorded too, so a later restore deletes
        whatever was created there.
        """
        if path in self._originals:
            return
        self._originals[path] = path.read_bytes() if path.is_file() else None

    def original(self, path: Path) -> bytes | None:
        """Return the captured content of `path` (None if absent or not captured)."""
        return self._originals.get(path)

    def restore_all(self) -> list[Path]:
        """Write every captured file back to its original content.

        Returns:
            Paths that were restored or removed
        """
        restored: list[Path] = []
        for path, content in self._originals.items():
            if content is None:
                if path.is_file():
                    path.unlink()
                    restored.append(path)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
            restored.append(path)
        return restored
