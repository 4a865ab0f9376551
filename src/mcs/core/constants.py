"""String constants shared across mcs modules.

Only values used from more than one module live here; single-use constants
stay local to their module.
"""

# File and directory names
CLAUDE_DIR_NAME = ".claude"
CLAUDE_JSON_NAME = ".claude.json"
CLAUDE_LOCAL_MD = "CLAUDE.local.md"
PROJECT_STATE_NAME = ".mcs-project"
PROJECT_MCP_JSON = ".mcp.json"
PROJECT_SETTINGS_NAME = "settings.local.json"
MCS_HOME_DIR_NAME = ".mcs"

# CLI binaries
CLAUDE_COMMAND = "claude"
BREW_COMMAND = "brew"

# Hook script markers
HOOK_EXTENSION_MARKER = "# --- mcs:hook-extensions ---"

# Marker embedded in generated files owned by mcs
MANAGED_MARKER = "<!-- mcs:managed -->"

# JSON keys
MCP_SERVERS_KEY = "mcpServers"
ENABLED_PLUGINS_KEY = "enabledPlugins"
PROJECTS_KEY = "projects"

# Plugin marketplace
OFFICIAL_MARKETPLACE = "claude-plugins-official"
OFFICIAL_MARKETPLACE_REPO = "anthropics/claude-plugins-official"
