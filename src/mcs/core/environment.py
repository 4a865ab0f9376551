"""Home-relative paths used by mcs.

Every path into the user's home configuration is derived here from a single
home directory, so tests can point an Environment at a temporary directory
instead of the real home.
"""

from dataclasses import dataclass
from pathlib import Path

from mcs.core.constants import (
    CLAUDE_DIR_NAME,
    CLAUDE_JSON_NAME,
    CLAUDE_LOCAL_MD,
    MCS_HOME_DIR_NAME,
    PROJECT_SETTINGS_NAME,
    PROJECT_STATE_NAME,
)


@dataclass(frozen=True)
class Environment:
    """Paths into the user's home configuration."""

    home_directory: Path

    @staticmethod
    def for_home(home: Path | None = None) -> "Environment":
        """Create an Environment rooted at `home` (defaults to Path.home())."""
        return Environment(home_directory=home if home is not None else Path.home())

    @property
    def claude_directory(self) -> Path:
        return self.home_directory / CLAUDE_DIR_NAME

    @property
    def claude_json(self) -> Path:
        """Registry of MCP servers and per-project Claude state (~/.claude.json)."""
        return self.home_directory / CLAUDE_JSON_NAME

    @property
    def claude_settings(self) -> Path:
        return self.claude_directory / "settings.json"

    @property
    def hooks_directory(self) -> Path:
        return self.claude_directory / "hooks"

    @property
    def mcs_directory(self) -> Path:
        return self.home_directory / MCS_HOME_DIR_NAME

    @property
    def config_file(self) -> Path:
        return self.mcs_directory / "config.toml"

    @property
    def lock_file(self) -> Path:
        return self.mcs_directory / "lock"

    @property
    def global_state_file(self) -> Path:
        """Ledger for packs installed into the home configuration."""
        return self.mcs_directory / "global-state.json"

    @property
    def legacy_manifest(self) -> Path:
        """Where the old bash installer kept its KEY=VALUE manifest."""
        return self.claude_directory / ".setup-manifest"

    @property
    def claude_md(self) -> Path:
        """Global instructions file that holds template sections of home-scoped packs."""
        return self.claude_directory / "CLAUDE.md"

    @property
    def global_gitignore(self) -> Path:
        """Git's default user-level excludes file."""
        return self.home_directory / ".config" / "git" / "ignore"


def project_claude_directory(project_path: Path) -> Path:
    return project_path / CLAUDE_DIR_NAME


def project_state_file(project_path: Path) -> Path:
    """Ledger for packs installed into a project."""
    return project_path / CLAUDE_DIR_NAME / PROJECT_STATE_NAME


def project_settings_file(project_path: Path) -> Path:
    return project_path / CLAUDE_DIR_NAME / PROJECT_SETTINGS_NAME


def project_claude_local_md(project_path: Path) -> Path:
    return project_path / CLAUDE_LOCAL_MD


def state_file_for(environment: Environment, project_path: Path | None) -> Path:
    """Ledger for a project, or the global ledger when `project_path` is None."""
    if project_path is None:
        return environment.global_state_file
    return project_state_file(project_path)


def settings_file_for(environment: Environment, project_path: Path | None) -> Path:
    if project_path is None:
        return environment.claude_settings
    return project_settings_file(project_path)


def instructions_file_for(environment: Environment, project_path: Path | None) -> Path:
    """File that pack template sections are composed into."""
    if project_path is None:
        return environment.claude_md
    return project_claude_local_md(project_path)


def hook_file_for(environment: Environment, project_path: Path | None, hook_name: str) -> Path:
    """Hook script `<hook_name>.sh`, preferring an existing project-level copy."""
    file_name = f"{hook_name}.sh"
    if project_path is not None:
        project_hook = project_claude_directory(project_path) / "hooks" / file_name
        if project_hook.exists():
            return project_hook
    return environment.hooks_directory / file_name
