"""MCP server registrations in Claude's JSON registries.

Where an entry lives depends on its scope:

- "user":    ~/.claude.json  -> mcpServers.<name>
- "local":   ~/.claude.json  -> projects.<abs project path>.mcpServers.<name>
- "project": <project>/.mcp.json -> mcpServers.<name>

Registering or unregistering one server never touches sibling entries or any
other key in the registry file.
"""

import logging
from pathlib import Path
from typing import Any

from mcs.core.constants import MCP_SERVERS_KEY, PROJECT_MCP_JSON, PROJECTS_KEY
from mcs.core.errors import SettingsFormatError
from mcs.core.settings import load_settings, save_settings

logger = logging.getLogger(__name__)

MCP_SCOPES = ("local", "project", "user")


def _registry_file(claude_json: Path, scope: str, project_path: Path | None) -> Path:
    if scope == "project":
        if project_path is None:
            raise ValueError("MCP scope 'project' requires a project path")
        return project_path / PROJECT_MCP_JSON
    return claude_json


def _servers_node(
    data: dict[str, Any], scope: str, project_path: Path | None, create: bool
) -> dict[str, Any] | None:
    container: dict[str, Any] = data
    if scope == "local":
        if project_path is None:
            raise ValueError("MCP scope 'local' requires a project path")
        projects = data.get(PROJECTS_KEY)
        if not isinstance(projects, dict):
            if not create:
                return None
            projects = data[PROJECTS_KEY] = {}
        project_key = str(project_path.resolve())
        container = projects.get(project_key)
        if not isinstance(container, dict):
            if not create:
                return None
            container = projects[project_key] = {}

    servers = container.get(MCP_SERVERS_KEY)
    if not isinstance(servers, dict):
        if not create:
            return None
        servers = container[MCP_SERVERS_KEY] = {}
    return servers


def register_server(
    claude_json: Path,
    name: str,
    scope: str,
    entry: dict[str, Any],
    project_path: Path | None,
) -> None:
    """Add or replace the `name` entry in the registry for `scope`.

    Raises:
        SettingsFormatError: If the registry file is not valid JSON
    """
    path = _registry_file(claude_json, scope, project_path)
    data = load_settings(path)
    servers = _servers_node(data, scope, project_path, create=True)
    assert servers is not None
    if servers.get(name) == entry:
        logger.debug("MCP server '%s' already registered (%s)", name, scope)
        return
    servers[name] = entry
    save_settings(path, data)
    logger.debug("Registered MCP server '%s' in %s (%s)", name, path, scope)


def unregister_server(claude_json: Path, name: str, scope: str, project_path: Path | None) -> bool:
    """Remove the `name` entry; returns False if it was not registered."""
    path = _registry_file(claude_json, scope, project_path)
    if not path.exists():
        return False
    data = load_settings(path)
    servers = _servers_node(data, scope, project_path, create=False)
    if servers is None or name not in servers:
        return False
    del servers[name]
    save_settings(path, data)
    logger.debug("Unregistered MCP server '%s' from %s (%s)", name, path, scope)
    return True


def find_server_scope(claude_json: Path, name: str, project_path: Path | None) -> str | None:
    """Return the first scope `name` is registered in, or None.

    Scopes that need a project are skipped when `project_path` is None.
    Unreadable registries count as "not registered".
    """
    for scope in MCP_SCOPES:
        if scope != "user" and project_path is None:
            continue
        path = _registry_file(claude_json, scope, project_path)
        if not path.exists():
            continue
        try:
            data = load_settings(path)
        except SettingsFormatError as e:
            logger.warning("%s", e)
            continue
        servers = _servers_node(data, scope, project_path, create=False)
        if servers is not None and name in servers:
            return scope
    return None
