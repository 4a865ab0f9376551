"""Abstract interface for running external commands."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ShellResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class Shell(ABC):
    """Runs external programs (claude, brew, pack shell actions).

    Two implementations:
    - RealShell: Production - spawns subprocesses
    - FakeShell: Testing - answers from injected state, never spawns anything
    """

    @abstractmethod
    def command_exists(self, name: str) -> bool:
        """Check if `name` resolves to an executable on PATH."""
        ...

    @abstractmethod
    def run(self, args: list[str], cwd: Path | None = None) -> ShellResult:
        """Run a program with arguments, without a shell.

        A non-zero exit is reported in the result, never raised.
        """
        ...

    @abstractmethod
    def run_shell(self, command: str, cwd: Path | None = None) -> ShellResult:
        """Run a command line through /bin/sh."""
        ...
