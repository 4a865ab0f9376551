import tomllib
from dataclasses import dataclass
from pathlib import Path

from mcs.core.errors import ConfigError
from mcs.core.mcp_registry import MCP_SCOPES


@dataclass(frozen=True)
class McsConfig:
    """In-memory representation of `~/.mcs/config.toml`.

    Example config.toml:
      # Optional: scope for MCP servers whose pack does not name one
      default_mcp_scope = "user"

      [values]
      # Defaults for __KEY__ placeholders in pack files
      TEAM_NAME = "platform"
    """

    values: dict[str, str]
    default_mcp_scope: str | None


def load_config(config_path: Path) -> McsConfig:
    """Load config.toml if present; otherwise return defaults.

    Raises:
        ConfigError: If the file is not valid TOML or names an unknown MCP scope
    """
    if not config_path.exists():
        return McsConfig(values={}, default_mcp_scope=None)

    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    values = {str(k): str(v) for k, v in data.get("values", {}).items()}
    scope = data.get("default_mcp_scope")
    if scope is not None:
        scope = str(scope)
        if scope not in MCP_SCOPES:
            raise ConfigError(
                f"Invalid default_mcp_scope '{scope}' in {config_path}; "
                f"expected one of {', '.join(MCP_SCOPES)}"
            )
    return McsConfig(values=values, default_mcp_scope=scope)
