"""Carry out component install actions against the filesystem and shell.

Every entry point raises a domain error (PathContainmentError,
ComponentSourceError, ShellCommandError, SettingsFormatError) or OSError on
failure. execute() is the one place those become per-component results.
"""

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import assert_never

from mcs.components.models import (
    BrewInstall,
    ComponentDefinition,
    CopyFile,
    CopyFileType,
    CopyHook,
    GitignoreEntries,
    McpServer,
    McpServerConfig,
    Plugin,
    SettingsMerge,
    ShellCommand,
)
from mcs.core import gitignore, hook_injector
from mcs.core.backup import Backup
from mcs.core.constants import BREW_COMMAND, CLAUDE_COMMAND, PROJECT_MCP_JSON
from mcs.core.environment import (
    Environment,
    project_claude_directory,
    settings_file_for,
)
from mcs.core.errors import (
    ComponentSourceError,
    PathContainmentError,
    SettingsFormatError,
    ShellCommandError,
)
from mcs.core.mcp_registry import register_server, unregister_server
from mcs.core.path_containment import is_path_contained, relative_path, safe_path
from mcs.core.plugin_ref import PluginRef
from mcs.core.project_state import McpServerRef, PackArtifactRecord
from mcs.core.settings import (
    deep_merge,
    load_settings,
    remove_plugin,
    save_settings,
    set_plugin_enabled,
)
from mcs.core.template import substitute
from mcs.doctor.checks import CheckStatus
from mcs.doctor.derived import all_doctor_checks
from mcs.gateway.shell.abc import Shell, ShellResult

logger = logging.getLogger(__name__)

HOOK_FILE_MODE = 0o755


@dataclass(frozen=True)
class ComponentResult:
    """Outcome of executing one component."""

    component_id: str
    success: bool
    message: str


class ComponentExecutor:
    """Installs and removes individual artifacts.

    Files mutated in place (settings, registries, hook scripts) are captured
    in `backup` before their first write.
    """

    def __init__(self, environment: Environment, shell: Shell, backup: Backup) -> None:
        self.environment = environment
        self.shell = shell
        self.backup = backup

    # Files

    def install_project_file(
        self,
        source: Path,
        destination: str,
        file_type: CopyFileType,
        project_path: Path,
        resolved_values: dict[str, str],
    ) -> list[str]:
        """Copy a pack file or directory into `<project>/.claude/<type dir>/`.

        Returns:
            Project-relative paths of the files written

        Raises:
            PathContainmentError: If the destination escapes its base directory
                or the project. Nothing is written in that case.
            ComponentSourceError: If `source` does not exist
        """
        base_directory = file_type.base_directory(project_claude_directory(project_path))
        written = self._install_file(
            source, destination, file_type, base_directory, project_path, resolved_values
        )
        root = str(project_path.resolve())
        return [relative_path(str(path), root) for path in written]

    def install_global_file(
        self,
        source: Path,
        destination: str,
        file_type: CopyFileType,
        resolved_values: dict[str, str],
    ) -> list[str]:
        """Like install_project_file, against ~/.claude; paths are relative to ~/.claude."""
        claude_directory = self.environment.claude_directory
        base_directory = file_type.base_directory(claude_directory)
        written = self._install_file(
            source, destination, file_type, base_directory, claude_directory, resolved_values
        )
        root = str(claude_directory.resolve())
        return [relative_path(str(path), root) for path in written]

    def _install_file(
        self,
        source: Path,
        destination: str,
        file_type: CopyFileType,
        base_directory: Path,
        root: Path,
        resolved_values: dict[str, str],
    ) -> list[Path]:
        # `.claude` itself may be a symlink pointing outside `root`
        target = safe_path(destination, base_directory)
        if target is None:
            raise PathContainmentError(destination, base_directory)
        if not is_path_contained(target, root):
            raise PathContainmentError(destination, root)
        if not source.exists():
            raise ComponentSourceError(source)

        if source.is_dir():
            pairs = [
                (file, target / file.relative_to(source))
                for file in sorted(source.rglob("*"))
                if file.is_file()
            ]
        else:
            pairs = [(source, target)]

        # Validate every target before the first write
        for _, file_target in pairs:
            if not is_path_contained(file_target, base_directory):
                raise PathContainmentError(str(file_target), base_directory)
            if not is_path_contained(file_target, root):
                raise PathContainmentError(str(file_target), root)

        written: list[Path] = []
        for file_source, file_target in pairs:
            self._copy_file(file_source, file_target, resolved_values)
            if file_type is CopyFileType.HOOK:
                file_target.chmod(HOOK_FILE_MODE)
            written.append(file_target.resolve())
        logger.debug("Installed %d file(s) from %s", len(written), source)
        return written

    def _copy_file(self, source: Path, target: Path, resolved_values: dict[str, str]) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            content = source.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            shutil.copyfile(source, target)
        else:
            target.write_text(substitute(content, resolved_values), encoding="utf-8")
        shutil.copymode(source, target)

    def remove_project_file(self, relative: str, project_path: Path) -> bool:
        """Delete a ledger-recorded file or directory under the project.

        Returns:
            True if something was removed. Paths that escape the project or
            do not exist are left alone and return False.
        """
        return self._remove_contained(relative, project_path)

    def remove_global_file(self, relative: str) -> bool:
        """Delete a file recorded relative to ~/.claude."""
        return self._remove_contained(relative, self.environment.claude_directory)

    def _remove_contained(self, relative: str, root: Path) -> bool:
        target = safe_path(relative, root)
        if target is None:
            logger.warning("Refusing to remove '%s': path escapes %s", relative, root)
            return False
        resolved_root = root.resolve()
        if target == resolved_root:
            logger.warning("Refusing to remove '%s': path is the root itself", relative)
            return False
        if not target.exists():
            return False

        if target.is_dir():
            shutil.rmtree(target)
        else:
            target.unlink()
        _prune_empty_parents(target.parent, resolved_root)
        logger.debug("Removed %s", target)
        return True

    # Hooks

    def install_hook(self, source: Path, destination: str) -> bool:
        """Copy a hook script into ~/.claude/hooks unless one is already there.

        An existing hook is left untouched, since pack fragments may have been
        injected into it.

        Returns:
            True if the hook was installed, False if it already existed
        """
        hooks_directory = self.environment.hooks_directory
        target = safe_path(destination, hooks_directory)
        if target is None:
            raise PathContainmentError(destination, hooks_directory)
        if target.exists():
            logger.debug("Hook %s already present", target)
            return False
        if not source.is_file():
            raise ComponentSourceError(source)

        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        target.chmod(HOOK_FILE_MODE)
        return True

    def inject_hook_fragment(
        self, fragment: str, identifier: str, version: str, hook_file: Path
    ) -> bool:
        return hook_injector.inject(fragment, identifier, version, hook_file, self.backup)

    def remove_hook_fragment(self, identifier: str, hook_file: Path) -> bool:
        return hook_injector.remove(identifier, hook_file, self.backup)

    # MCP servers

    def install_mcp_server(
        self, config: McpServerConfig, project_path: Path | None
    ) -> McpServerRef:
        """Register `config` in the registry for its scope.

        Without a project, project-bound scopes fall back to "user".
        """
        scope = config.resolved_scope
        if project_path is None and scope != "user":
            logger.debug("No project for MCP server '%s'; using user scope", config.name)
            scope = "user"
        self._capture_registry(scope, project_path)
        register_server(
            self.environment.claude_json,
            config.name,
            scope,
            config.to_registry_entry(),
            project_path,
        )
        return McpServerRef(name=config.name, scope=scope)

    def remove_mcp_server(self, name: str, scope: str, project_path: Path | None) -> bool:
        if project_path is None and scope != "user":
            logger.warning("Cannot remove %s-scoped MCP server '%s' without a project", scope, name)
            return False
        self._capture_registry(scope, project_path)
        return unregister_server(self.environment.claude_json, name, scope, project_path)

    def _capture_registry(self, scope: str, project_path: Path | None) -> None:
        if scope == "project" and project_path is not None:
            self.backup.capture(project_path / PROJECT_MCP_JSON)
        else:
            self.backup.capture(self.environment.claude_json)

    # Plugins

    def install_plugin(self, name: str) -> PluginRef:
        """Install a plugin with the claude CLI (when present) and enable it.

        Raises:
            ShellCommandError: If `claude plugin install` fails
        """
        ref = PluginRef.parse(name)
        if self.shell.command_exists(CLAUDE_COMMAND):
            self._run_checked([CLAUDE_COMMAND, "plugin", "install", ref.full_name])
        else:
            logger.debug("claude CLI not found; only enabling plugin '%s'", ref.full_name)

        settings_path = self.environment.claude_settings
        settings = load_settings(settings_path)
        updated = set_plugin_enabled(settings, ref.full_name, True)
        if updated != settings:
            self.backup.capture(settings_path)
            save_settings(settings_path, updated)
        return ref

    def remove_plugin(self, name: str) -> bool:
        """Uninstall and disable a plugin.

        Returns:
            False if the plugin was neither installed through the claude CLI
            nor enabled in settings

        Raises:
            ShellCommandError: If `claude plugin uninstall` fails. Settings are
                left untouched so the removal can be retried.
        """
        ref = PluginRef.parse(name)
        uninstalled = False
        if self.shell.command_exists(CLAUDE_COMMAND):
            self._run_checked([CLAUDE_COMMAND, "plugin", "uninstall", ref.full_name])
            uninstalled = True

        settings_path = self.environment.claude_settings
        settings = load_settings(settings_path)
        updated, was_enabled = remove_plugin(settings, ref.full_name)
        if was_enabled:
            self.backup.capture(settings_path)
            save_settings(settings_path, updated)
        return was_enabled or uninstalled

    # Brew packages

    def install_brew_package(self, package: str) -> bool:
        """Install a Homebrew package unless it is already available.

        Returns:
            True if this call installed the package, False if it was already
            present (so it must not be recorded for later removal)

        Raises:
            ShellCommandError: If Homebrew is missing or the install fails
        """
        if self.shell.command_exists(package):
            return False
        self._require_brew(f"brew install {package}")
        if self.shell.run([BREW_COMMAND, "list", "--formula", package]).succeeded:
            return False
        self._run_checked([BREW_COMMAND, "install", package])
        return True

    def uninstall_brew_package(self, package: str) -> bool:
        self._require_brew(f"brew uninstall {package}")
        if not self.shell.run([BREW_COMMAND, "list", "--formula", package]).succeeded:
            return False
        self._run_checked([BREW_COMMAND, "uninstall", package])
        return True

    def _require_brew(self, command: str) -> None:
        if not self.shell.command_exists(BREW_COMMAND):
            raise ShellCommandError(command, 127, "Homebrew not found")

    # Shell, settings, gitignore

    def run_shell_command(self, command: str, cwd: Path | None = None) -> ShellResult:
        result = self.shell.run_shell(command, cwd=cwd)
        if not result.succeeded:
            raise ShellCommandError(command, result.returncode, result.stderr)
        return result

    def merge_settings(
        self, source: Path, settings_path: Path, resolved_values: dict[str, str]
    ) -> list[str]:
        """Deep-merge a pack's settings JSON into `settings_path`.

        Values already present in the target win over the pack's.

        Returns:
            Dotted key paths the merge added
        """
        if not source.is_file():
            raise ComponentSourceError(source)
        try:
            overlay = json.loads(substitute(source.read_text(encoding="utf-8"), resolved_values))
        except json.JSONDecodeError as e:
            raise SettingsFormatError(source, str(e)) from e
        if not isinstance(overlay, dict):
            raise SettingsFormatError(source, "top level is not an object")

        existing = load_settings(settings_path)
        merged, added = deep_merge(existing, overlay)
        if merged != existing:
            self.backup.capture(settings_path)
            save_settings(settings_path, merged)
        return added

    def add_gitignore_entries(self, entries: list[str], project_path: Path | None) -> list[str]:
        """Add entries to the project's .gitignore, or git's user excludes file."""
        if project_path is not None:
            path = gitignore.gitignore_path(project_path)
        else:
            path = self.environment.global_gitignore
        self.backup.capture(path)
        return gitignore.add_entries(path, entries)

    def _run_checked(self, args: list[str]) -> ShellResult:
        result = self.shell.run(args)
        if not result.succeeded:
            raise ShellCommandError(" ".join(args), result.returncode, result.stderr)
        return result

    # Dispatch

    def execute(
        self,
        component: ComponentDefinition,
        record: PackArtifactRecord,
        project_path: Path | None,
        resolved_values: dict[str, str],
    ) -> ComponentResult:
        """Run `component`'s install action and add what it produced to `record`.

        Never raises for install failures; they come back as a failed result.
        """
        try:
            message = self._dispatch(component, record, project_path, resolved_values)
        except (
            PathContainmentError,
            ComponentSourceError,
            ShellCommandError,
            SettingsFormatError,
            OSError,
        ) as e:
            logger.warning("Component %s failed: %s", component.id, e)
            return ComponentResult(component_id=component.id, success=False, message=str(e))
        return ComponentResult(component_id=component.id, success=True, message=message)

    def _dispatch(
        self,
        component: ComponentDefinition,
        record: PackArtifactRecord,
        project_path: Path | None,
        resolved_values: dict[str, str],
    ) -> str:
        action = component.install_action
        if isinstance(action, CopyFile):
            if project_path is not None:
                paths = self.install_project_file(
                    action.source,
                    action.destination,
                    action.file_type,
                    project_path,
                    resolved_values,
                )
            else:
                paths = self.install_global_file(
                    action.source, action.destination, action.file_type, resolved_values
                )
            record.add_files(paths)
            return f"installed {len(paths)} file(s)"
        if isinstance(action, CopyHook):
            if self.install_hook(action.source, action.destination):
                return "installed"
            return "already present"
        if isinstance(action, McpServer):
            ref = self.install_mcp_server(action.config, project_path)
            record.add_mcp_server(ref)
            return f"registered ({ref.scope})"
        if isinstance(action, Plugin):
            plugin = self.install_plugin(action.name)
            record.add_plugin(plugin.full_name)
            return "enabled"
        if isinstance(action, BrewInstall):
            if self.install_brew_package(action.package):
                record.add_brew_package(action.package)
                return "installed"
            return "already installed"
        if isinstance(action, ShellCommand):
            self.run_shell_command(action.command, cwd=project_path)
            return "done"
        if isinstance(action, SettingsMerge):
            settings_path = settings_file_for(self.environment, project_path)
            keys = self.merge_settings(action.source, settings_path, resolved_values)
            record.add_settings_keys(keys)
            return f"merged {len(keys)} key(s)"
        if isinstance(action, GitignoreEntries):
            added = self.add_gitignore_entries(list(action.entries), project_path)
            return f"added {len(added)} entr{'y' if len(added) == 1 else 'ies'}"
        assert_never(action)

    def is_already_installed(
        self, component: ComponentDefinition, project_path: Path | None
    ) -> bool:
        """Use the doctor's checks to decide whether a component can be skipped.

        Settings merges, gitignore entries and file copies are idempotent and
        always re-run.
        """
        if isinstance(component.install_action, (SettingsMerge, GitignoreEntries, CopyFile)):
            return False
        checks = all_doctor_checks(component, self.environment, self.shell, project_path)
        return any(check.check().status is CheckStatus.PASS for check in checks)


def _prune_empty_parents(directory: Path, stop: Path) -> None:
    """Remove empty directories from `directory` upward, never `stop` or its `.claude`."""
    protected = {stop, stop / ".claude"}
    current = directory
    while current not in protected and is_path_contained(current, stop) and current != stop:
        if any(current.iterdir()):
            return
        current.rmdir()
        current = current.parent
