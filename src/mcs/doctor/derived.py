"""Doctor checks derived mechanically from a component's install action."""

import logging
from pathlib import Path
from typing import assert_never

from mcs.components.manifest import PackManifest
from mcs.components.models import (
    BrewInstall,
    ComponentDefinition,
    CopyFile,
    CopyHook,
    GitignoreEntries,
    McpServer,
    Plugin,
    SettingsMerge,
    ShellCommand,
)
from mcs.core.environment import (
    Environment,
    hook_file_for,
    instructions_file_for,
    project_claude_directory,
)
from mcs.core.path_containment import safe_path
from mcs.doctor.checks import (
    CommandCheck,
    DoctorCheck,
    HookCheck,
    HookFragmentCheck,
    ManagedFileCheck,
    McpServerCheck,
    PluginCheck,
    TemplateSectionCheck,
)
from mcs.gateway.shell.abc import Shell

logger = logging.getLogger(__name__)


def derive_doctor_check(
    component: ComponentDefinition,
    environment: Environment,
    shell: Shell,
    project_path: Path | None = None,
) -> DoctorCheck | None:
    """Build the check that verifies `component`'s install action took effect.

    File copies are checked under `project_path` when given, otherwise under
    the home `.claude` directory.

    Returns:
        The derived check, or None for actions with no mechanical verification
        (shell commands, settings merges, gitignore entries) and for file or
        hook destinations that escape their base directory
    """
    action = component.install_action
    if isinstance(action, McpServer):
        return McpServerCheck(
            name=component.display_name,
            server_name=action.config.name,
            claude_json=environment.claude_json,
            project_path=project_path,
        )
    if isinstance(action, Plugin):
        return PluginCheck(plugin_name=action.name, settings_path=environment.claude_settings)
    if isinstance(action, BrewInstall):
        return CommandCheck(
            name=component.display_name,
            section=component.type.doctor_section,
            command=action.package,
            shell=shell,
            is_optional=not component.is_required,
        )
    if isinstance(action, CopyHook):
        hook_file = _contained(action.destination, environment.hooks_directory)
        if hook_file is None:
            return None
        return HookCheck(
            hook_name=action.destination,
            hook_file=hook_file,
            is_optional=not component.is_required,
        )
    if isinstance(action, CopyFile):
        claude_directory = (
            project_claude_directory(project_path)
            if project_path is not None
            else environment.claude_directory
        )
        path = _contained(action.destination, action.file_type.base_directory(claude_directory))
        if path is None:
            return None
        return ManagedFileCheck(
            name=component.display_name,
            section=component.type.doctor_section,
            path=path,
        )
    if isinstance(action, (ShellCommand, SettingsMerge, GitignoreEntries)):
        return None
    assert_never(action)


def _contained(destination: str, base_directory: Path) -> Path | None:
    path = safe_path(destination, base_directory)
    if path is None:
        logger.warning("Skipping check for '%s': path escapes %s", destination, base_directory)
    return path


def all_doctor_checks(
    component: ComponentDefinition,
    environment: Environment,
    shell: Shell,
    project_path: Path | None = None,
) -> list[DoctorCheck]:
    """Derived check (if any) followed by the component's supplementary checks."""
    checks: list[DoctorCheck] = []
    derived = derive_doctor_check(component, environment, shell, project_path)
    if derived is not None:
        checks.append(derived)
    checks.extend(component.supplementary_checks)
    return checks


def contribution_checks(
    manifest: PackManifest, environment: Environment, project_path: Path | None = None
) -> list[DoctorCheck]:
    """Checks for the pack's template sections and hook fragments."""
    checks: list[DoctorCheck] = []
    instructions = instructions_file_for(environment, project_path)
    for template in manifest.templates:
        checks.append(
            TemplateSectionCheck(
                name=template.section_identifier,
                path=instructions,
                identifier=template.section_identifier,
                version=manifest.version,
            )
        )
    for contribution in manifest.hook_contributions:
        checks.append(
            HookFragmentCheck(
                name=f"{contribution.hook_name} ({manifest.identifier})",
                hook_file=hook_file_for(environment, project_path, contribution.hook_name),
                identifier=manifest.identifier,
                version=manifest.version,
            )
        )
    return checks
