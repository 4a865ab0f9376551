"""Fake implementation of Shell for testing."""

from dataclasses import dataclass
from pathlib import Path

from mcs.gateway.shell.abc import Shell, ShellResult


@dataclass(frozen=True)
class ShellCall:
    command: str
    cwd: Path | None


class FakeShell(Shell):
    """Test implementation - never spawns a process.

    Commands are matched by their space-joined command line. Anything without
    an injected result succeeds with empty output.

    Usage:
        shell = FakeShell(
            existing_commands={"brew"},
            results={"brew list --formula jq": ShellResult(1, "", "")},
        )
        ...
        assert "brew install jq" in shell.commands_run
    """

    def __init__(
        self,
        *,
        existing_commands: set[str] | None = None,
        results: dict[str, ShellResult] | None = None,
    ) -> None:
        self._existing_commands = existing_commands if existing_commands is not None else set()
        self._results = results if results is not None else {}
        self._calls: list[ShellCall] = []

    def command_exists(self, name: str) -> bool:
        return name in self._existing_commands

    def run(self, args: list[str], cwd: Path | None = None) -> ShellResult:
        return self._answer(" ".join(args), cwd)

    def run_shell(self, command: str, cwd: Path | None = None) -> ShellResult:
        return self._answer(command, cwd)

    def _answer(self, command: str, cwd: Path | None) -> ShellResult:
        self._calls.append(ShellCall(command=command, cwd=cwd))
        return self._results.get(command, ShellResult(returncode=0, stdout="", stderr=""))

    @property
    def calls(self) -> list[ShellCall]:
        return list(self._calls)

    @property
    def commands_run(self) -> list[str]:
        return [call.command for call in self._calls]
