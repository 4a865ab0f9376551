"""Load pack manifests (`techpack.yaml`) into component definitions.

Example techpack.yaml:

    schemaVersion: 1
    identifier: ios
    displayName: iOS
    description: Xcode tooling for Claude
    version: 1.2.0
    components:
      - id: ios.xcodebuild-mcp
        displayName: XcodeBuildMCP
        description: Build and run Xcode projects
        type: mcpServer
        isRequired: true
        installAction:
          type: mcpServer
          name: xcodebuild
          command: npx
          args: ["-y", "xcodebuildmcp@latest"]
      - id: ios.skill
        displayName: iOS skill
        description: Project conventions
        type: skill
        installAction:
          type: copyFile
          source: skills/ios
          destination: ios
          fileType: skill
    templates:
      - sectionIdentifier: ios
        contentFile: templates/claude-local.md
    hookContributions:
      - hookName: session_start
        fragmentFile: hooks/session_start.sh

Paths are relative to the directory holding techpack.yaml and may not leave it.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from mcs.components.models import (
    BrewInstall,
    ComponentDefinition,
    ComponentType,
    CopyFile,
    CopyFileType,
    CopyHook,
    GitignoreEntries,
    InstallAction,
    McpServer,
    McpServerConfig,
    Plugin,
    SettingsMerge,
    ShellCommand,
)
from mcs.core.errors import ManifestError
from mcs.core.mcp_registry import MCP_SCOPES
from mcs.core.path_containment import safe_path
from mcs.doctor.checks import CommandCheck, DoctorCheck, FileExistsCheck
from mcs.gateway.shell.abc import Shell

MANIFEST_FILE_NAME = "techpack.yaml"
SUPPORTED_SCHEMA_VERSION = 1

_IDENTIFIER_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")

_COMPONENT_TYPES: dict[str, ComponentType] = {
    "mcpServer": ComponentType.MCP_SERVER,
    "plugin": ComponentType.PLUGIN,
    "skill": ComponentType.SKILL,
    "hookFile": ComponentType.HOOK_FILE,
    "command": ComponentType.COMMAND,
    "brewPackage": ComponentType.BREW_PACKAGE,
    "configuration": ComponentType.CONFIGURATION,
    "file": ComponentType.FILE,
}


@dataclass(frozen=True)
class TemplateContribution:
    """Markdown composed into CLAUDE.local.md as one versioned section."""

    section_identifier: str
    content: str


@dataclass(frozen=True)
class HookContribution:
    """A fragment injected into the `<hook_name>.sh` hook script."""

    hook_name: str
    fragment: str


@dataclass(frozen=True)
class PackManifest:
    identifier: str
    display_name: str
    description: str
    version: str
    pack_directory: Path
    components: tuple[ComponentDefinition, ...]
    templates: tuple[TemplateContribution, ...]
    hook_contributions: tuple[HookContribution, ...]


def load_manifest(
    pack_directory: Path, shell: Shell, default_mcp_scope: str | None = None
) -> PackManifest:
    """Read and validate `<pack_directory>/techpack.yaml`.

    Args:
        pack_directory: Directory holding the manifest and the pack's files
        shell: Used by supplementary command checks
        default_mcp_scope: Scope for MCP servers that do not name one

    Raises:
        ManifestError: If the file is missing, is not valid YAML, or fails
            validation
    """
    manifest_path = pack_directory / MANIFEST_FILE_NAME
    if not manifest_path.is_file():
        raise ManifestError(f"No {MANIFEST_FILE_NAME} in {pack_directory}")

    try:
        data = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {manifest_path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{manifest_path} must contain a mapping")

    return parse_manifest(data, pack_directory, shell, default_mcp_scope)


def parse_manifest(
    data: dict[str, Any],
    pack_directory: Path,
    shell: Shell,
    default_mcp_scope: str | None = None,
) -> PackManifest:
    schema_version = data.get("schemaVersion", SUPPORTED_SCHEMA_VERSION)
    if schema_version != SUPPORTED_SCHEMA_VERSION:
        raise ManifestError(f"Unsupported schemaVersion {schema_version}")

    identifier = _require_str(data, "identifier", "manifest")
    if not _IDENTIFIER_RE.match(identifier):
        raise ManifestError(
            f"Invalid pack identifier '{identifier}': "
            "must be lowercase alphanumeric with hyphens"
        )

    components: list[ComponentDefinition] = []
    seen_ids: set[str] = set()
    for entry in _list_of_mappings(data, "components"):
        component = _parse_component(entry, identifier, pack_directory, shell, default_mcp_scope)
        if component.id in seen_ids:
            raise ManifestError(f"Duplicate component id '{component.id}'")
        seen_ids.add(component.id)
        components.append(component)

    templates: list[TemplateContribution] = []
    for entry in _list_of_mappings(data, "templates"):
        section = _require_str(entry, "sectionIdentifier", "template")
        if section != identifier and not section.startswith(f"{identifier}."):
            raise ManifestError(
                f"Template section '{section}' must be '{identifier}' or start with '{identifier}.'"
            )
        content_file = _pack_file(pack_directory, _require_str(entry, "contentFile", section))
        templates.append(
            TemplateContribution(
                section_identifier=section,
                content=content_file.read_text(encoding="utf-8"),
            )
        )

    hook_contributions: list[HookContribution] = []
    for entry in _list_of_mappings(data, "hookContributions"):
        hook_name = _require_str(entry, "hookName", "hook contribution")
        fragment_file = _pack_file(pack_directory, _require_str(entry, "fragmentFile", hook_name))
        hook_contributions.append(
            HookContribution(
                hook_name=hook_name,
                fragment=fragment_file.read_text(encoding="utf-8").rstrip("\n"),
            )
        )

    return PackManifest(
        identifier=identifier,
        display_name=str(data.get("displayName", identifier)),
        description=str(data.get("description", "")),
        version=str(data.get("version", "0.0.0")),
        pack_directory=pack_directory,
        components=tuple(components),
        templates=tuple(templates),
        hook_contributions=tuple(hook_contributions),
    )


def _parse_component(
    entry: dict[str, Any],
    pack_identifier: str,
    pack_directory: Path,
    shell: Shell,
    default_mcp_scope: str | None,
) -> ComponentDefinition:
    component_id = _require_str(entry, "id", "component")
    if not component_id.startswith(f"{pack_identifier}."):
        raise ManifestError(
            f"Component id '{component_id}' must start with '{pack_identifier}.'"
        )

    action_data = entry.get("installAction")
    if not isinstance(action_data, dict):
        raise ManifestError(f"Component '{component_id}' needs an installAction mapping")
    action = _parse_action(action_data, component_id, pack_directory, default_mcp_scope)

    type_name = entry.get("type")
    if type_name is None:
        component_type = _default_type(action)
    elif type_name in _COMPONENT_TYPES:
        component_type = _COMPONENT_TYPES[type_name]
    else:
        raise ManifestError(f"Component '{component_id}' has unknown type '{type_name}'")

    is_required = bool(entry.get("isRequired", False))
    display_name = str(entry.get("displayName", component_id.split(".", 1)[1]))
    checks = tuple(
        _parse_doctor_check(check, component_id, display_name, component_type, shell, is_required)
        for check in _list_of_mappings(entry, "doctorChecks")
    )

    return ComponentDefinition(
        id=component_id,
        display_name=display_name,
        description=str(entry.get("description", "")),
        type=component_type,
        pack_identifier=pack_identifier,
        dependencies=tuple(str(d) for d in entry.get("dependencies", [])),
        is_required=is_required,
        install_action=action,
        supplementary_checks=checks,
    )


def _parse_action(
    data: dict[str, Any],
    component_id: str,
    pack_directory: Path,
    default_mcp_scope: str | None,
) -> InstallAction:
    action_type = _require_str(data, "type", component_id)
    if action_type == "copyFile":
        file_type_name = str(data.get("fileType", "generic"))
        try:
            file_type = CopyFileType(file_type_name)
        except ValueError as e:
            raise ManifestError(
                f"Component '{component_id}' has unknown fileType '{file_type_name}'"
            ) from e
        return CopyFile(
            source=_pack_file(pack_directory, _require_str(data, "source", component_id)),
            destination=_require_str(data, "destination", component_id),
            file_type=file_type,
        )
    if action_type == "copyHook":
        return CopyHook(
            source=_pack_file(pack_directory, _require_str(data, "source", component_id)),
            destination=_require_str(data, "destination", component_id),
        )
    if action_type == "mcpServer":
        return McpServer(config=_parse_mcp_server(data, component_id, default_mcp_scope))
    if action_type == "plugin":
        return Plugin(name=_require_str(data, "name", component_id))
    if action_type == "brewInstall":
        return BrewInstall(package=_require_str(data, "package", component_id))
    if action_type == "shellCommand":
        return ShellCommand(command=_require_str(data, "command", component_id))
    if action_type == "settingsMerge":
        return SettingsMerge(
            source=_pack_file(pack_directory, _require_str(data, "source", component_id))
        )
    if action_type == "gitignoreEntries":
        entries = data.get("entries")
        if not isinstance(entries, list) or not entries:
            raise ManifestError(f"Component '{component_id}' needs a non-empty 'entries' list")
        return GitignoreEntries(entries=tuple(str(e) for e in entries))
    raise ManifestError(f"Component '{component_id}' has unknown action type '{action_type}'")


def _parse_mcp_server(
    data: dict[str, Any], component_id: str, default_mcp_scope: str | None
) -> McpServerConfig:
    name = _require_str(data, "name", component_id)
    scope = data.get("scope", default_mcp_scope)
    if scope is not None and scope not in MCP_SCOPES:
        raise ManifestError(f"Component '{component_id}' has unknown MCP scope '{scope}'")

    if data.get("transport") == "http":
        return McpServerConfig.http(name, _require_str(data, "url", component_id), scope)
    return McpServerConfig(
        name=name,
        command=_require_str(data, "command", component_id),
        args=tuple(str(a) for a in data.get("args", [])),
        env={str(k): str(v) for k, v in data.get("env", {}).items()},
        scope=scope,
    )


def _parse_doctor_check(
    data: dict[str, Any],
    component_id: str,
    display_name: str,
    component_type: ComponentType,
    shell: Shell,
    is_required: bool,
) -> DoctorCheck:
    check_type = _require_str(data, "type", component_id)
    name = str(data.get("name", display_name))
    if check_type == "commandExists":
        return CommandCheck(
            name=name,
            section=component_type.doctor_section,
            command=_require_str(data, "command", component_id),
            shell=shell,
            is_optional=not is_required,
        )
    if check_type == "fileExists":
        return FileExistsCheck(
            name=name,
            section=component_type.doctor_section,
            path=Path(_require_str(data, "path", component_id)).expanduser(),
        )
    raise ManifestError(f"Component '{component_id}' has unknown doctor check '{check_type}'")


def _default_type(action: InstallAction) -> ComponentType:
    if isinstance(action, McpServer):
        return ComponentType.MCP_SERVER
    if isinstance(action, Plugin):
        return ComponentType.PLUGIN
    if isinstance(action, BrewInstall):
        return ComponentType.BREW_PACKAGE
    if isinstance(action, CopyHook):
        return ComponentType.HOOK_FILE
    if isinstance(action, CopyFile):
        if action.file_type is CopyFileType.SKILL:
            return ComponentType.SKILL
        if action.file_type is CopyFileType.COMMAND:
            return ComponentType.COMMAND
        if action.file_type is CopyFileType.HOOK:
            return ComponentType.HOOK_FILE
        return ComponentType.FILE
    return ComponentType.CONFIGURATION


def _pack_file(pack_directory: Path, relative: str) -> Path:
    path = safe_path(relative, pack_directory)
    if path is None:
        raise ManifestError(f"Path '{relative}' escapes pack directory {pack_directory}")
    if not path.exists():
        raise ManifestError(f"Pack file not found: {relative}")
    return path


def _require_str(data: dict[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ManifestError(f"Missing '{key}' in {context}")
    return value


def _list_of_mappings(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ManifestError(f"'{key}' must be a list of mappings")
    return value
