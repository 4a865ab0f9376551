"""Declarative description of installable components.

A component has exactly one install action. The action types form a closed
union: code that dispatches on InstallAction handles every variant and ends in
assert_never, so adding a variant is a type error until every dispatch site
handles it.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from mcs.doctor.checks import DoctorCheck


class ComponentType(Enum):
    """Component categories; the value is the doctor section header."""

    MCP_SERVER = "MCP Servers"
    PLUGIN = "Plugins"
    SKILL = "Skills"
    HOOK_FILE = "Hooks"
    COMMAND = "Commands"
    BREW_PACKAGE = "Dependencies"
    CONFIGURATION = "Configurations"
    FILE = "Files"

    @property
    def doctor_section(self) -> str:
        return self.value


class CopyFileType(Enum):
    """Where a copied pack file lands under a `.claude` directory."""

    SKILL = "skill"
    HOOK = "hook"
    COMMAND = "command"
    GENERIC = "generic"

    def base_directory(self, claude_directory: Path) -> Path:
        if self is CopyFileType.SKILL:
            return claude_directory / "skills"
        if self is CopyFileType.HOOK:
            return claude_directory / "hooks"
        if self is CopyFileType.COMMAND:
            return claude_directory / "commands"
        return claude_directory


@dataclass(frozen=True)
class McpServerConfig:
    """An MCP server registration.

    HTTP servers use command "http" with the URL as the only argument.
    A scope of None means "local" (per user, per project).
    """

    name: str
    command: str
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict)
    scope: str | None = None

    @staticmethod
    def http(name: str, url: str, scope: str | None = None) -> "McpServerConfig":
        return McpServerConfig(name=name, command="http", args=(url,), scope=scope)

    @property
    def resolved_scope(self) -> str:
        return self.scope if self.scope is not None else "local"

    @property
    def is_http(self) -> bool:
        return self.command == "http"

    def to_registry_entry(self) -> dict[str, Any]:
        """Entry in Claude's `mcpServers` object."""
        if self.is_http:
            return {"type": "http", "url": self.args[0] if self.args else ""}
        entry: dict[str, Any] = {"type": "stdio", "command": self.command, "args": list(self.args)}
        if self.env:
            entry["env"] = dict(self.env)
        return entry


@dataclass(frozen=True)
class CopyFile:
    """Copy a pack file or directory under `.claude/<type dir>/<destination>`."""

    source: Path
    destination: str
    file_type: CopyFileType


@dataclass(frozen=True)
class CopyHook:
    """Copy a hook script template into ~/.claude/hooks if it is absent."""

    source: Path
    destination: str


@dataclass(frozen=True)
class McpServer:
    config: McpServerConfig


@dataclass(frozen=True)
class Plugin:
    name: str


@dataclass(frozen=True)
class BrewInstall:
    package: str


@dataclass(frozen=True)
class ShellCommand:
    command: str


@dataclass(frozen=True)
class SettingsMerge:
    source: Path


@dataclass(frozen=True)
class GitignoreEntries:
    entries: tuple[str, ...]


InstallAction = (
    CopyFile
    | CopyHook
    | McpServer
    | Plugin
    | BrewInstall
    | ShellCommand
    | SettingsMerge
    | GitignoreEntries
)


@dataclass(frozen=True)
class ComponentDefinition:
    """An installable component.

    Attributes:
        id: Globally unique identifier, e.g. "ios.xcodebuild-mcp"
        display_name: Short name shown in output
        description: Human-readable description
        type: Category, which also selects the doctor section
        pack_identifier: Owning pack, or None for core components
        dependencies: Component IDs this one needs; informational only, the
            caller decides execution order
        is_required: Installed whenever its pack is
        install_action: How to install the component
        supplementary_checks: Doctor checks that cannot be derived from the
            install action
    """

    id: str
    display_name: str
    description: str
    type: ComponentType
    pack_identifier: str | None
    dependencies: tuple[str, ...]
    is_required: bool
    install_action: InstallAction
    supplementary_checks: tuple[DoctorCheck, ...] = ()
