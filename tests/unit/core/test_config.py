"""Tests for ~/.mcs/config.toml loading."""

from pathlib import Path

import pytest

from mcs.core.config import McsConfig, load_config
from mcs.core.errors import ConfigError


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    """Test that no config file means no values and no default scope."""
    config = load_config(tmp_path / "config.toml")

    assert config == McsConfig(values={}, default_mcp_scope=None)


def test_loads_values_and_scope(tmp_path: Path) -> None:
    """Test that [values] and default_mcp_scope are read."""
    path = tmp_path / "config.toml"
    path.write_text(
        'default_mcp_scope = "user"\n\n[values]\nTEAM_NAME = "platform"\nRETRIES = 3\n',
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.default_mcp_scope == "user"
    assert config.values == {"TEAM_NAME": "platform", "RETRIES": "3"}


def test_invalid_toml_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[values\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(path)


def test_unknown_scope_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('default_mcp_scope = "galaxy"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="galaxy"):
        load_config(path)
