"""Doctor probes that verify installed components against the filesystem.

Checks only read. Each returns a CheckResult; none raise for the conditions
they are probing (missing files, invalid JSON), those become fail results.
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from mcs.core.constants import HOOK_EXTENSION_MARKER, MANAGED_MARKER
from mcs.core.errors import SettingsFormatError
from mcs.core.hook_injector import find_fragment
from mcs.core.mcp_registry import find_server_scope
from mcs.core.plugin_ref import PluginRef
from mcs.core.settings import is_plugin_enabled, load_settings
from mcs.core.template import find_unreplaced_placeholders, parse_sections, unpaired_sections
from mcs.gateway.shell.abc import Shell


class CheckStatus(Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIP = "skip"


@dataclass(frozen=True)
class CheckResult:
    """Result of a single doctor check.

    Attributes:
        status: Outcome of the check
        message: Human-readable message describing the result
    """

    status: CheckStatus
    message: str

    @property
    def passed(self) -> bool:
        return self.status in (CheckStatus.PASS, CheckStatus.SKIP)


def passed(message: str) -> CheckResult:
    return CheckResult(status=CheckStatus.PASS, message=message)


def warned(message: str) -> CheckResult:
    return CheckResult(status=CheckStatus.WARN, message=message)


def failed(message: str) -> CheckResult:
    return CheckResult(status=CheckStatus.FAIL, message=message)


def skipped(message: str) -> CheckResult:
    return CheckResult(status=CheckStatus.SKIP, message=message)


class DoctorCheck(ABC):
    """A single verifiable property of an installed component."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def section(self) -> str:
        """Doctor output section header, e.g. "MCP Servers"."""
        ...

    @abstractmethod
    def check(self) -> CheckResult: ...


class CommandCheck(DoctorCheck):
    """Checks that an executable is on PATH."""

    def __init__(self, *, name: str, section: str, command: str, shell: Shell, is_optional: bool):
        self._name = name
        self._section = section
        self.command = command
        self.is_optional = is_optional
        self._shell = shell

    @property
    def name(self) -> str:
        return self._name

    @property
    def section(self) -> str:
        return self._section

    def check(self) -> CheckResult:
        if self._shell.command_exists(self.command):
            return passed("installed")
        if self.is_optional:
            return warned("not found (optional)")
        return failed("not found")


class McpServerCheck(DoctorCheck):
    """Checks that an MCP server is registered in any scope."""

    def __init__(
        self, *, name: str, server_name: str, claude_json: Path, project_path: Path | None
    ):
        self._name = name
        self.server_name = server_name
        self.claude_json = claude_json
        self.project_path = project_path

    @property
    def name(self) -> str:
        return self._name

    @property
    def section(self) -> str:
        return "MCP Servers"

    def check(self) -> CheckResult:
        try:
            load_settings(self.claude_json)
        except SettingsFormatError:
            return failed(f"{self.claude_json.name} contains invalid JSON")

        scope = find_server_scope(self.claude_json, self.server_name, self.project_path)
        if scope is None:
            return failed("not registered")
        return passed(f"registered ({scope})")


class PluginCheck(DoctorCheck):
    """Checks that a plugin is enabled in Claude's settings."""

    def __init__(self, *, plugin_name: str, settings_path: Path):
        self.plugin_ref = PluginRef.parse(plugin_name)
        self.settings_path = settings_path

    @property
    def name(self) -> str:
        return self.plugin_ref.bare_name

    @property
    def section(self) -> str:
        return "Plugins"

    def check(self) -> CheckResult:
        if not self.settings_path.exists():
            return failed("settings.json not found")
        try:
            settings = load_settings(self.settings_path)
        except SettingsFormatError as e:
            return failed(f"settings.json is invalid: {e}")
        if is_plugin_enabled(settings, self.plugin_ref.full_name):
            return passed("enabled")
        return failed("not enabled")


class HookCheck(DoctorCheck):
    """Checks that a hook script is installed, executable and extendable."""

    def __init__(self, *, hook_name: str, hook_file: Path, is_optional: bool):
        self.hook_name = hook_name
        self.hook_file = hook_file
        self.is_optional = is_optional

    @property
    def name(self) -> str:
        return self.hook_name

    @property
    def section(self) -> str:
        return "Hooks"

    def check(self) -> CheckResult:
        if not self.hook_file.is_file():
            if self.is_optional:
                return skipped("not installed (optional)")
            return failed("missing")
        if not os.access(self.hook_file, os.X_OK):
            return failed("not executable")
        lines = self.hook_file.read_text(encoding="utf-8").splitlines()
        if HOOK_EXTENSION_MARKER not in (line.strip() for line in lines):
            return warned("missing extension marker; pack hook fragments cannot be injected")
        return passed("present and executable")


class FileExistsCheck(DoctorCheck):
    def __init__(self, *, name: str, section: str, path: Path):
        self._name = name
        self._section = section
        self.path = path

    @property
    def name(self) -> str:
        return self._name

    @property
    def section(self) -> str:
        return self._section

    def check(self) -> CheckResult:
        if self.path.exists():
            return passed("present")
        return failed("missing")


class ManagedFileCheck(DoctorCheck):
    """Checks an installed pack file for the managed marker and leftover placeholders.

    Directories are checked for presence and placeholders only; the managed
    marker convention applies to individual generated files.
    """

    def __init__(self, *, name: str, section: str, path: Path):
        self._name = name
        self._section = section
        self.path = path

    @property
    def name(self) -> str:
        return self._name

    @property
    def section(self) -> str:
        return self._section

    def check(self) -> CheckResult:
        if not self.path.exists():
            return failed("missing")

        if self.path.is_dir():
            placeholders: list[str] = []
            for file in sorted(p for p in self.path.rglob("*") if p.is_file()):
                content = _read_text(file)
                if content is None:
                    continue
                for token in find_unreplaced_placeholders(content):
                    if token not in placeholders:
                        placeholders.append(token)
            if placeholders:
                return warned(f"contains unreplaced {', '.join(placeholders)} placeholder")
            return passed("present")

        content = _read_text(self.path)
        if content is None:
            return passed("present")
        placeholders = find_unreplaced_placeholders(content)
        if placeholders:
            return warned(f"present but contains unreplaced {', '.join(placeholders)} placeholder")
        if MANAGED_MARKER not in content:
            return warned("missing managed marker (legacy file)")
        return passed("present")


def _read_text(path: Path) -> str | None:
    """Text content of `path`, or None for binary files."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return None


class HookFragmentCheck(DoctorCheck):
    """Checks that a pack's fragment is injected into a hook script at the current version."""

    def __init__(self, *, name: str, hook_file: Path, identifier: str, version: str):
        self._name = name
        self.hook_file = hook_file
        self.identifier = identifier
        self.version = version

    @property
    def name(self) -> str:
        return self._name

    @property
    def section(self) -> str:
        return "Hooks"

    def check(self) -> CheckResult:
        if not self.hook_file.is_file():
            return skipped(f"hook file {self.hook_file.name} not installed")
        block = find_fragment(self.hook_file, self.identifier)
        if block is None:
            return failed("fragment not injected; run 'mcs install' to fix")
        if block.version is None:
            return warned(f"unversioned fragment installed, v{self.version} available")
        if block.version != self.version:
            return warned(f"v{block.version} installed, v{self.version} available")
        return passed(f"v{self.version} injected")


class TemplateSectionCheck(DoctorCheck):
    """Checks that a pack's section is present in the composed instructions file."""

    def __init__(self, *, name: str, path: Path, identifier: str, version: str):
        self._name = name
        self.path = path
        self.identifier = identifier
        self.version = version

    @property
    def name(self) -> str:
        return self._name

    @property
    def section(self) -> str:
        return "Templates"

    def check(self) -> CheckResult:
        if not self.path.is_file():
            return failed(f"{self.path.name} not found")
        content = self.path.read_text(encoding="utf-8")
        if self.identifier in unpaired_sections(content):
            return failed("unpaired section markers; fix them by hand")
        for section in parse_sections(content):
            if section.identifier != self.identifier:
                continue
            if section.version != self.version:
                return warned(f"v{section.version} installed, v{self.version} available")
            leftover = find_unreplaced_placeholders(section.content)
            if leftover:
                return warned(f"contains unreplaced {', '.join(leftover)} placeholder")
            return passed(f"v{self.version} present")
        return failed("section missing")
