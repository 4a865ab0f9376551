"""Tests for reversing a pack's recorded artifacts."""

import json
from pathlib import Path

from mcs.core.backup import Backup
from mcs.core.constants import HOOK_EXTENSION_MARKER
from mcs.core.environment import Environment, project_state_file
from mcs.core.hook_injector import inject
from mcs.core.mcp_registry import find_server_scope, register_server
from mcs.core.project_state import McpServerRef, PackArtifactRecord, ProjectState
from mcs.core.template import replace_section
from mcs.gateway.shell.abc import ShellResult
from mcs.gateway.shell.fake import FakeShell
from mcs.install.uninstaller import PackUninstaller


def _setup(
    tmp_path: Path, record: PackArtifactRecord
) -> tuple[Environment, Path, ProjectState]:
    env = Environment.for_home(tmp_path / "home")
    project = tmp_path / "project"
    (project / ".claude").mkdir(parents=True)
    state = ProjectState(project_state_file(project))
    state.set_artifacts("ios", record)
    state.save()
    return env, project, state


def _uninstaller(
    env: Environment, project: Path | None, state: ProjectState, shell: FakeShell | None = None
) -> PackUninstaller:
    return PackUninstaller(
        env, shell if shell is not None else FakeShell(), state, project, Backup()
    )


def test_uninstall_removes_files_and_mcp_server(tmp_path: Path) -> None:
    """Test that present artifacts are removed and absent ones are skipped."""
    env, project, state = _setup(
        tmp_path,
        PackArtifactRecord(
            mcp_servers=[McpServerRef(name="xcodebuild", scope="local")],
            files=[".claude/skills/ios.md", ".claude/skills/gone.md"],
        ),
    )
    skill = project / ".claude" / "skills" / "ios.md"
    skill.parent.mkdir(parents=True)
    skill.write_text("skill\n", encoding="utf-8")
    register_server(env.claude_json, "xcodebuild", "local", {"type": "stdio"}, project)

    summary = _uninstaller(env, project, state).uninstall("ios")

    assert summary.total_removed == 2
    assert summary.mcp_servers == ["xcodebuild"]
    assert summary.files == [".claude/skills/ios.md"]
    assert summary.skipped == ["File '.claude/skills/gone.md' not found"]
    assert summary.errors == []
    assert not skill.exists()
    assert find_server_scope(env.claude_json, "xcodebuild", project) is None
    assert "ios" not in ProjectState.load(project_state_file(project)).configured_packs


def test_uninstall_unknown_pack_is_empty(tmp_path: Path) -> None:
    env, project, state = _setup(tmp_path, PackArtifactRecord())

    summary = _uninstaller(env, project, state).uninstall("android")

    assert summary.total_removed == 0
    assert summary.skipped == []
    assert state.configured_packs == {"ios"}


def test_uninstall_removes_settings_keys_only(tmp_path: Path) -> None:
    """Test that user settings next to recorded keys survive."""
    env, project, state = _setup(tmp_path, PackArtifactRecord(settings_keys=["env.IOS_SDK"]))
    settings_path = project / ".claude" / "settings.local.json"
    settings_path.write_text(
        json.dumps({"env": {"IOS_SDK": "18", "USER_KEY": "1"}}), encoding="utf-8"
    )

    summary = _uninstaller(env, project, state).uninstall("ios")

    assert summary.settings_keys == ["env.IOS_SDK"]
    assert json.loads(settings_path.read_text()) == {"env": {"USER_KEY": "1"}}


def test_uninstall_removes_template_section(tmp_path: Path) -> None:
    env, project, state = _setup(tmp_path, PackArtifactRecord(template_sections=["ios"]))
    local_md = project / "CLAUDE.local.md"
    local_md.write_text(replace_section("# Notes\n", "ios", "Use Xcode", "1.0.0"), encoding="utf-8")

    summary = _uninstaller(env, project, state).uninstall("ios")

    assert summary.template_sections == ["ios"]
    assert local_md.read_text(encoding="utf-8") == "# Notes\n"


def test_uninstall_removes_hook_fragment(tmp_path: Path) -> None:
    env, project, state = _setup(tmp_path, PackArtifactRecord(hook_commands=["ios"]))
    hook_file = env.hooks_directory / "session_start.sh"
    hook_file.parent.mkdir(parents=True)
    original = f"#!/bin/bash\n{HOOK_EXTENSION_MARKER}\n"
    hook_file.write_text(original, encoding="utf-8")
    inject("echo ios", "ios", "1.0.0", hook_file, Backup())

    summary = _uninstaller(env, project, state).uninstall("ios")

    assert summary.hook_commands == ["ios"]
    assert hook_file.read_text(encoding="utf-8") == original


def test_uninstall_brew_package(tmp_path: Path) -> None:
    env, project, state = _setup(tmp_path, PackArtifactRecord(brew_packages=["jq"]))
    shell = FakeShell(existing_commands={"brew"})

    summary = _uninstaller(env, project, state, shell).uninstall("ios")

    assert summary.brew_packages == ["jq"]
    assert shell.commands_run == ["brew list --formula jq", "brew uninstall jq"]


def test_uninstall_brew_package_not_installed_is_skipped(tmp_path: Path) -> None:
    env, project, state = _setup(tmp_path, PackArtifactRecord(brew_packages=["jq"]))
    shell = FakeShell(
        existing_commands={"brew"},
        results={"brew list --formula jq": ShellResult(1, "", "")},
    )

    summary = _uninstaller(env, project, state, shell).uninstall("ios")

    assert summary.skipped == ["Brew package 'jq' not installed"]
    assert summary.errors == []


def test_failed_artifacts_stay_in_ledger(tmp_path: Path) -> None:
    """Test that only artifacts that could not be removed remain recorded."""
    env, project, state = _setup(
        tmp_path,
        PackArtifactRecord(files=[".claude/skills/ios.md"], brew_packages=["jq"]),
    )
    skill = project / ".claude" / "skills" / "ios.md"
    skill.parent.mkdir(parents=True)
    skill.write_text("skill\n", encoding="utf-8")

    summary = _uninstaller(env, project, state).uninstall("ios")

    assert summary.files == [".claude/skills/ios.md"]
    assert len(summary.errors) == 1
    assert "Homebrew not found" in summary.errors[0]
    remaining = ProjectState.load(project_state_file(project)).artifacts_for("ios")
    assert remaining == PackArtifactRecord(brew_packages=["jq"])


def test_uninstall_plugin(tmp_path: Path) -> None:
    env, project, state = _setup(tmp_path, PackArtifactRecord(plugins=["swift-lsp"]))
    env.claude_settings.parent.mkdir(parents=True)
    env.claude_settings.write_text(
        json.dumps({"enabledPlugins": {"swift-lsp": True, "other": True}}), encoding="utf-8"
    )

    summary = _uninstaller(env, project, state).uninstall("ios")

    assert summary.plugins == ["swift-lsp"]
    assert json.loads(env.claude_settings.read_text()) == {"enabledPlugins": {"other": True}}


def test_failed_plugin_uninstall_is_an_error(tmp_path: Path) -> None:
    """Test that a failing claude CLI keeps the plugin recorded for a retry."""
    env, project, state = _setup(tmp_path, PackArtifactRecord(plugins=["swift-lsp"]))
    shell = FakeShell(
        existing_commands={"claude"},
        results={"claude plugin uninstall swift-lsp": ShellResult(1, "", "plugin busy")},
    )

    summary = _uninstaller(env, project, state, shell).uninstall("ios")

    assert summary.plugins == []
    assert summary.skipped == []
    assert len(summary.errors) == 1
    assert summary.errors[0].startswith("Plugin 'swift-lsp':")
    assert "plugin busy" in summary.errors[0]
    remaining = ProjectState.load(project_state_file(project)).artifacts_for("ios")
    assert remaining == PackArtifactRecord(plugins=["swift-lsp"])


def test_global_uninstall_removes_files_under_claude_directory(tmp_path: Path) -> None:
    env = Environment.for_home(tmp_path / "home")
    command = env.claude_directory / "commands" / "review.md"
    command.parent.mkdir(parents=True)
    command.write_text("review\n", encoding="utf-8")
    state = ProjectState(env.global_state_file)
    state.set_artifacts("ios", PackArtifactRecord(files=["commands/review.md"]))

    summary = _uninstaller(env, None, state).uninstall("ios")

    assert summary.files == ["commands/review.md"]
    assert not command.exists()
    assert env.claude_directory.is_dir()
