"""Exception types raised by mcs core operations."""

from pathlib import Path


class McsError(Exception):
    """Base class for all mcs errors."""


class PathContainmentError(McsError):
    """A configured path resolves outside the directory it must stay in."""

    def __init__(self, relative_path: str, root: Path) -> None:
        self.relative_path = relative_path
        self.root = root
        super().__init__(f"Path '{relative_path}' escapes {root}")


class ComponentSourceError(McsError):
    """The source file or directory for a component does not exist."""

    def __init__(self, source: Path) -> None:
        self.source = source
        super().__init__(f"Component source not found: {source}")


class ShellCommandError(McsError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip()[:200]
        message = f"'{command}' failed with exit code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SettingsFormatError(McsError):
    """A JSON settings or registry file could not be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Invalid JSON in {path}: {reason}")


class ManifestError(McsError):
    """A pack manifest is missing required fields or is malformed."""


class FileLockError(McsError):
    """Another mcs process holds the lock."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Another mcs process is running. Lock file: {path}")


class ConfigError(McsError):
    """~/.mcs/config.toml is malformed."""
