"""Tests for loading techpack.yaml into component definitions."""

from pathlib import Path
from typing import Any

import pytest

from mcs.components.manifest import load_manifest
from mcs.components.models import (
    BrewInstall,
    ComponentType,
    CopyFile,
    CopyFileType,
    GitignoreEntries,
    McpServer,
    McpServerConfig,
    Plugin,
)
from mcs.core.errors import ManifestError
from mcs.doctor.checks import CommandCheck, FileExistsCheck
from mcs.gateway.shell.fake import FakeShell
from tests.test_utils.packs import skill_pack_manifest, write_pack


def _manifest(components: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
    return {
        "schemaVersion": 1,
        "identifier": "ios",
        "displayName": "iOS",
        "version": "1.2.0",
        "components": components,
        **extra,
    }


def test_loads_pack_metadata_and_components(tmp_path: Path) -> None:
    """Test that a valid manifest produces typed component definitions."""
    pack_dir = write_pack(
        tmp_path / "ios",
        _manifest(
            [
                {
                    "id": "ios.xcodebuild-mcp",
                    "displayName": "XcodeBuildMCP",
                    "isRequired": True,
                    "installAction": {
                        "type": "mcpServer",
                        "name": "xcodebuild",
                        "command": "npx",
                        "args": ["-y", "xcodebuildmcp@latest"],
                        "env": {"DEBUG": 1},
                    },
                },
                {
                    "id": "ios.skill",
                    "installAction": {
                        "type": "copyFile",
                        "source": "skills/ios",
                        "destination": "ios",
                        "fileType": "skill",
                    },
                },
                {"id": "ios.lsp", "installAction": {"type": "plugin", "name": "swift-lsp"}},
                {
                    "id": "ios.xcbeautify",
                    "installAction": {"type": "brewInstall", "package": "xcbeautify"},
                },
                {
                    "id": "ios.gitignore",
                    "installAction": {"type": "gitignoreEntries", "entries": ["*.xcresult"]},
                },
            ]
        ),
        files={"skills/ios/SKILL.md": "# iOS\n"},
    )

    manifest = load_manifest(pack_dir, FakeShell())

    assert manifest.identifier == "ios"
    assert manifest.version == "1.2.0"
    assert [c.id for c in manifest.components] == [
        "ios.xcodebuild-mcp",
        "ios.skill",
        "ios.lsp",
        "ios.xcbeautify",
        "ios.gitignore",
    ]
    mcp, skill, plugin, brew, gitignore = manifest.components
    assert mcp.install_action == McpServer(
        config=McpServerConfig(
            name="xcodebuild",
            command="npx",
            args=("-y", "xcodebuildmcp@latest"),
            env={"DEBUG": "1"},
        )
    )
    assert mcp.type is ComponentType.MCP_SERVER
    assert mcp.is_required
    assert skill.install_action == CopyFile(
        source=(pack_dir / "skills" / "ios").resolve(),
        destination="ios",
        file_type=CopyFileType.SKILL,
    )
    assert skill.type is ComponentType.SKILL
    assert skill.display_name == "skill"
    assert not skill.is_required
    assert plugin.install_action == Plugin(name="swift-lsp")
    assert brew.install_action == BrewInstall(package="xcbeautify")
    assert brew.type is ComponentType.BREW_PACKAGE
    assert gitignore.install_action == GitignoreEntries(entries=("*.xcresult",))
    assert gitignore.type is ComponentType.CONFIGURATION


def test_http_mcp_server(tmp_path: Path) -> None:
    """Test that transport http produces an HTTP server config."""
    pack_dir = write_pack(
        tmp_path / "ios",
        _manifest(
            [
                {
                    "id": "ios.docs",
                    "installAction": {
                        "type": "mcpServer",
                        "name": "docs",
                        "transport": "http",
                        "url": "https://example.com/mcp",
                        "scope": "user",
                    },
                }
            ]
        ),
    )

    action = load_manifest(pack_dir, FakeShell()).components[0].install_action

    assert isinstance(action, McpServer)
    assert action.config.is_http
    assert action.config.resolved_scope == "user"
    assert action.config.to_registry_entry() == {
        "type": "http",
        "url": "https://example.com/mcp",
    }


def test_default_mcp_scope_applies_when_unset(tmp_path: Path) -> None:
    """Test that the configured default scope fills in a missing scope."""
    pack_dir = write_pack(
        tmp_path / "ios",
        _manifest(
            [
                {
                    "id": "ios.a",
                    "installAction": {"type": "mcpServer", "name": "a", "command": "a"},
                },
                {
                    "id": "ios.b",
                    "installAction": {
                        "type": "mcpServer",
                        "name": "b",
                        "command": "b",
                        "scope": "project",
                    },
                },
            ]
        ),
    )

    manifest = load_manifest(pack_dir, FakeShell(), default_mcp_scope="user")

    scopes = [c.install_action.config.scope for c in manifest.components]
    assert scopes == ["user", "project"]


def test_templates_and_hook_contributions(tmp_path: Path) -> None:
    """Test that template and hook fragment files are read from the pack."""
    pack_dir = write_pack(
        tmp_path / "ios",
        _manifest(
            [],
            templates=[{"sectionIdentifier": "ios", "contentFile": "templates/local.md"}],
            hookContributions=[
                {"hookName": "session_start", "fragmentFile": "hooks/session_start.sh"}
            ],
        ),
        files={
            "templates/local.md": "Repo: __REPO_NAME__\n",
            "hooks/session_start.sh": "echo ios\n\n",
        },
    )

    manifest = load_manifest(pack_dir, FakeShell())

    assert manifest.templates[0].section_identifier == "ios"
    assert manifest.templates[0].content == "Repo: __REPO_NAME__\n"
    assert manifest.hook_contributions[0].hook_name == "session_start"
    assert manifest.hook_contributions[0].fragment == "echo ios"


def test_doctor_checks_become_supplementary_checks(tmp_path: Path) -> None:
    """Test that declared doctorChecks are attached to the component."""
    pack_dir = write_pack(
        tmp_path / "ios",
        _manifest(
            [
                {
                    "id": "ios.xcode",
                    "isRequired": True,
                    "installAction": {"type": "shellCommand", "command": "xcode-select -p"},
                    "doctorChecks": [
                        {"type": "commandExists", "command": "xcodebuild"},
                        {"type": "fileExists", "name": "SDK", "path": "/opt/sdk"},
                    ],
                }
            ]
        ),
    )

    checks = load_manifest(pack_dir, FakeShell()).components[0].supplementary_checks

    assert isinstance(checks[0], CommandCheck)
    assert checks[0].command == "xcodebuild"
    assert not checks[0].is_optional
    assert isinstance(checks[1], FileExistsCheck)
    assert checks[1].name == "SDK"


def test_missing_manifest(tmp_path: Path) -> None:
    with pytest.raises(ManifestError, match="No techpack.yaml"):
        load_manifest(tmp_path, FakeShell())


def test_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / "techpack.yaml").write_text("identifier: [unclosed\n", encoding="utf-8")

    with pytest.raises(ManifestError, match="Invalid YAML"):
        load_manifest(tmp_path, FakeShell())


def test_non_mapping_manifest(tmp_path: Path) -> None:
    (tmp_path / "techpack.yaml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ManifestError, match="must contain a mapping"):
        load_manifest(tmp_path, FakeShell())


@pytest.mark.parametrize(
    ("manifest", "message"),
    [
        ({**skill_pack_manifest(), "schemaVersion": 2}, "Unsupported schemaVersion"),
        ({**skill_pack_manifest(), "identifier": "iOS"}, "Invalid pack identifier"),
        (
            _manifest([{"id": "other.x", "installAction": {"type": "plugin", "name": "p"}}]),
            "must start with 'ios.'",
        ),
        (
            _manifest(
                [
                    {"id": "ios.x", "installAction": {"type": "plugin", "name": "p"}},
                    {"id": "ios.x", "installAction": {"type": "plugin", "name": "q"}},
                ]
            ),
            "Duplicate component id",
        ),
        (
            _manifest([{"id": "ios.x", "installAction": {"type": "teleport"}}]),
            "unknown action type",
        ),
        (
            _manifest(
                [
                    {
                        "id": "ios.x",
                        "installAction": {"type": "mcpServer", "name": "x", "command": "x"},
                        "type": "gadget",
                    }
                ]
            ),
            "unknown type",
        ),
        (
            _manifest(
                [
                    {
                        "id": "ios.x",
                        "installAction": {
                            "type": "mcpServer",
                            "name": "x",
                            "command": "x",
                            "scope": "galaxy",
                        },
                    }
                ]
            ),
            "unknown MCP scope",
        ),
        (
            _manifest([], templates=[{"sectionIdentifier": "web", "contentFile": "x.md"}]),
            "must be 'ios' or start with 'ios.'",
        ),
    ],
)
def test_invalid_manifests_are_rejected(
    tmp_path: Path, manifest: dict[str, Any], message: str
) -> None:
    """Test that validation failures raise ManifestError."""
    pack_dir = write_pack(
        tmp_path / "pack", manifest, files={"skills/demo.md": "demo\n", "x.md": "x\n"}
    )

    with pytest.raises(ManifestError, match=message):
        load_manifest(pack_dir, FakeShell())


def test_source_escaping_pack_directory_is_rejected(tmp_path: Path) -> None:
    """Test that pack files must live inside the pack directory."""
    (tmp_path / "outside.md").write_text("secret\n", encoding="utf-8")
    pack_dir = write_pack(
        tmp_path / "ios",
        _manifest(
            [
                {
                    "id": "ios.x",
                    "installAction": {
                        "type": "copyFile",
                        "source": "../outside.md",
                        "destination": "x.md",
                    },
                }
            ]
        ),
    )

    with pytest.raises(ManifestError, match="escapes pack directory"):
        load_manifest(pack_dir, FakeShell())


def test_missing_source_file_is_rejected(tmp_path: Path) -> None:
    pack_dir = write_pack(tmp_path / "demo", skill_pack_manifest())

    with pytest.raises(ManifestError, match="Pack file not found"):
        load_manifest(pack_dir, FakeShell())
