"""Reverse the artifacts a pack installation recorded in the ledger.

Removal is best-effort: each artifact is handled on its own, failures are
collected instead of raised, and the ledger keeps only what still needs
removing so a later run can retry.

Not reversed:
- shell commands, which have no generic undo
- gitignore entries, which are harmless to leave and may predate the pack
- list items a settings merge appended to an existing list
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from mcs.core import template
from mcs.core.atomic_write import write_text_atomic
from mcs.core.backup import Backup
from mcs.core.environment import (
    Environment,
    instructions_file_for,
    project_claude_directory,
    settings_file_for,
)
from mcs.core.errors import McsError
from mcs.core.project_state import PackArtifactRecord, ProjectState
from mcs.core.settings import load_settings, remove_key_paths, save_settings
from mcs.gateway.shell.abc import Shell
from mcs.install.executor import ComponentExecutor

logger = logging.getLogger(__name__)


@dataclass
class RemovalSummary:
    """What an uninstall removed, skipped as already gone, and failed on."""

    mcp_servers: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    template_sections: list[str] = field(default_factory=list)
    hook_commands: list[str] = field(default_factory=list)
    settings_keys: list[str] = field(default_factory=list)
    brew_packages: list[str] = field(default_factory=list)
    plugins: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def total_removed(self) -> int:
        return (
            len(self.mcp_servers)
            + len(self.files)
            + len(self.template_sections)
            + len(self.hook_commands)
            + len(self.settings_keys)
            + len(self.brew_packages)
            + len(self.plugins)
        )


class PackUninstaller:
    """Removes one pack's recorded artifacts from a project or the home config.

    `project_path` of None means the pack was installed globally: recorded
    files are relative to ~/.claude and settings keys live in
    ~/.claude/settings.json.
    """

    def __init__(
        self,
        environment: Environment,
        shell: Shell,
        state: ProjectState,
        project_path: Path | None,
        backup: Backup,
    ) -> None:
        self.environment = environment
        self.state = state
        self.project_path = project_path
        self.backup = backup
        self._executor = ComponentExecutor(environment, shell, backup)

    def uninstall(self, pack_id: str) -> RemovalSummary:
        """Remove everything the ledger records for `pack_id`, then save the ledger.

        With no errors the pack is dropped from the ledger. Otherwise its
        entry is replaced by the artifacts that could not be removed.
        """
        summary = RemovalSummary()
        record = self.state.artifacts_for(pack_id)
        if record is None:
            logger.debug("Pack '%s' has no ledger entry", pack_id)
            return summary

        remaining = PackArtifactRecord()
        self._remove_mcp_servers(record, remaining, summary)
        self._remove_files(record, remaining, summary)
        self._remove_hook_commands(record, remaining, summary)
        self._remove_template_sections(record, remaining, summary)
        self._remove_settings_keys(record, remaining, summary)
        self._remove_brew_packages(record, remaining, summary)
        self._remove_plugins(record, remaining, summary)

        if summary.errors:
            self.state.set_artifacts(pack_id, remaining)
        else:
            self.state.remove_pack(pack_id)
        self.state.save()
        logger.debug(
            "Uninstalled pack '%s': %d removed, %d skipped, %d errors",
            pack_id,
            summary.total_removed,
            len(summary.skipped),
            len(summary.errors),
        )
        return summary

    def _remove_mcp_servers(
        self, record: PackArtifactRecord, remaining: PackArtifactRecord, summary: RemovalSummary
    ) -> None:
        for ref in record.mcp_servers:
            try:
                removed = self._executor.remove_mcp_server(ref.name, ref.scope, self.project_path)
            except (McsError, OSError) as e:
                summary.errors.append(f"MCP server '{ref.name}': {e}")
                remaining.add_mcp_server(ref)
                continue
            if removed:
                summary.mcp_servers.append(ref.name)
            else:
                summary.skipped.append(f"MCP server '{ref.name}' not registered")

    def _remove_files(
        self, record: PackArtifactRecord, remaining: PackArtifactRecord, summary: RemovalSummary
    ) -> None:
        for relative in record.files:
            try:
                if self.project_path is not None:
                    removed = self._executor.remove_project_file(relative, self.project_path)
                else:
                    removed = self._executor.remove_global_file(relative)
            except OSError as e:
                summary.errors.append(f"File '{relative}': {e}")
                remaining.add_files([relative])
                continue
            if removed:
                summary.files.append(relative)
            else:
                summary.skipped.append(f"File '{relative}' not found")

    def _hook_files(self) -> list[Path]:
        directories = [self.environment.hooks_directory]
        if self.project_path is not None:
            directories.append(project_claude_directory(self.project_path) / "hooks")
        files: list[Path] = []
        for directory in directories:
            if directory.is_dir():
                files.extend(sorted(directory.glob("*.sh")))
        return files

    def _remove_hook_commands(
        self, record: PackArtifactRecord, remaining: PackArtifactRecord, summary: RemovalSummary
    ) -> None:
        hook_files = self._hook_files()
        for identifier in record.hook_commands:
            removed = False
            try:
                for hook_file in hook_files:
                    if self._executor.remove_hook_fragment(identifier, hook_file):
                        removed = True
            except OSError as e:
                summary.errors.append(f"Hook fragment '{identifier}': {e}")
                remaining.add_hook_command(identifier)
                continue
            if removed:
                summary.hook_commands.append(identifier)
            else:
                summary.skipped.append(f"Hook fragment '{identifier}' not found")

    def _remove_template_sections(
        self, record: PackArtifactRecord, remaining: PackArtifactRecord, summary: RemovalSummary
    ) -> None:
        if not record.template_sections:
            return
        path = instructions_file_for(self.environment, self.project_path)
        if not path.exists():
            for identifier in record.template_sections:
                summary.skipped.append(f"Template section '{identifier}' not found")
            return

        try:
            content = path.read_text(encoding="utf-8")
            for identifier in record.template_sections:
                updated = template.remove_section(content, identifier)
                if updated is None:
                    summary.skipped.append(f"Template section '{identifier}' not found")
                    continue
                content = updated
                summary.template_sections.append(identifier)
            if summary.template_sections:
                self.backup.capture(path)
                write_text_atomic(path, content)
        except OSError as e:
            summary.errors.append(f"Template sections in {path.name}: {e}")
            for identifier in record.template_sections:
                remaining.add_template_section(identifier)
            summary.template_sections.clear()

    def _remove_settings_keys(
        self, record: PackArtifactRecord, remaining: PackArtifactRecord, summary: RemovalSummary
    ) -> None:
        if not record.settings_keys:
            return
        path = settings_file_for(self.environment, self.project_path)
        try:
            settings = load_settings(path)
            updated, removed = remove_key_paths(settings, record.settings_keys)
            if removed:
                self.backup.capture(path)
                save_settings(path, updated)
        except (McsError, OSError) as e:
            summary.errors.append(f"Settings keys in {path.name}: {e}")
            remaining.add_settings_keys(record.settings_keys)
            return

        summary.settings_keys.extend(removed)
        for key in record.settings_keys:
            if key not in removed:
                summary.skipped.append(f"Settings key '{key}' not found")

    def _remove_brew_packages(
        self, record: PackArtifactRecord, remaining: PackArtifactRecord, summary: RemovalSummary
    ) -> None:
        for package in record.brew_packages:
            try:
                removed = self._executor.uninstall_brew_package(package)
            except (McsError, OSError) as e:
                summary.errors.append(f"Brew package '{package}': {e}")
                remaining.add_brew_package(package)
                continue
            if removed:
                summary.brew_packages.append(package)
            else:
                summary.skipped.append(f"Brew package '{package}' not installed")

    def _remove_plugins(
        self, record: PackArtifactRecord, remaining: PackArtifactRecord, summary: RemovalSummary
    ) -> None:
        for name in record.plugins:
            try:
                removed = self._executor.remove_plugin(name)
            except (McsError, OSError) as e:
                summary.errors.append(f"Plugin '{name}': {e}")
                remaining.add_plugin(name)
                continue
            if removed:
                summary.plugins.append(name)
            else:
                summary.skipped.append(f"Plugin '{name}' not enabled")
