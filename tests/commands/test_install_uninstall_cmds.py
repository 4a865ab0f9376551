"""Tests for `mcs install` and `mcs uninstall`."""

import json
from pathlib import Path

from click.testing import CliRunner

from mcs.cli.cli import cli
from mcs.cli.commands.install import parse_assignments
from mcs.core.config import McsConfig
from mcs.core.file_lock import with_file_lock
from tests.test_utils.context_builders import build_test_context
from tests.test_utils.packs import skill_pack_manifest, write_pack


def _setup(tmp_path: Path, skill_content: str = "demo\n") -> tuple[Path, Path, Path]:
    home = tmp_path / "home"
    home.mkdir()
    project = tmp_path / "project"
    project.mkdir()
    pack_dir = write_pack(
        tmp_path / "pack", skill_pack_manifest(), files={"skills/demo.md": skill_content}
    )
    return home, project, pack_dir


def test_parse_assignments() -> None:
    assert parse_assignments(("A=1", "B=x=y", "C=")) == {"A": "1", "B": "x=y", "C": ""}


def test_install_into_project(tmp_path: Path) -> None:
    """Test that install copies files, records them and reports success."""
    home, project, pack_dir = _setup(tmp_path)
    ctx = build_test_context(home)

    runner = CliRunner()
    result = runner.invoke(cli, ["install", str(pack_dir), "--project", str(project)], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Installing Demo v1.0.0" in result.output
    assert "✨ Installed demo" in result.output
    assert (project / ".claude" / "skills" / "demo.md").is_file()
    ledger = json.loads((project / ".claude" / ".mcs-project").read_text())
    assert ledger["demo"]["files"] == [".claude/skills/demo.md"]


def test_install_value_precedence(tmp_path: Path) -> None:
    """Test that --set beats config values."""
    home, project, pack_dir = _setup(tmp_path, "Team: __TEAM_NAME__, Env: __ENV_NAME__")
    ctx = build_test_context(
        home,
        config=McsConfig(
            values={"TEAM_NAME": "config", "ENV_NAME": "prod"}, default_mcp_scope=None
        ),
    )

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["install", str(pack_dir), "--project", str(project), "--set", "TEAM_NAME=cli"],
        obj=ctx,
    )

    assert result.exit_code == 0, result.output
    content = (project / ".claude" / "skills" / "demo.md").read_text(encoding="utf-8")
    assert content == "Team: cli, Env: prod"


def test_install_rejects_malformed_set(tmp_path: Path) -> None:
    home, project, pack_dir = _setup(tmp_path)

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["install", str(pack_dir), "--project", str(project), "--set", "NOEQUALS"],
        obj=build_test_context(home),
    )

    assert result.exit_code == 2
    assert "expected KEY=VALUE" in result.output


def test_install_reports_component_failure(tmp_path: Path) -> None:
    """Test that a failing component exits non-zero after installing the rest."""
    home, project, _ = _setup(tmp_path)
    manifest = skill_pack_manifest()
    manifest["components"].append(
        {"id": "demo.jq", "installAction": {"type": "brewInstall", "package": "jq"}}
    )
    pack_dir = write_pack(tmp_path / "failing", manifest, files={"skills/demo.md": "demo\n"})

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["install", str(pack_dir), "--project", str(project)],
        obj=build_test_context(home),
    )

    assert result.exit_code == 1
    assert "1 component(s) failed" in result.output
    assert (project / ".claude" / "skills" / "demo.md").is_file()


def test_install_invalid_manifest(tmp_path: Path) -> None:
    home, project, _ = _setup(tmp_path)
    pack_dir = tmp_path / "broken"
    pack_dir.mkdir()

    runner = CliRunner()
    result = runner.invoke(
        cli, ["install", str(pack_dir), "--project", str(project)], obj=build_test_context(home)
    )

    assert result.exit_code == 1
    assert "No techpack.yaml" in result.output


def test_install_fails_fast_when_locked(tmp_path: Path) -> None:
    """Test that a concurrent mcs process makes install exit immediately."""
    home, project, pack_dir = _setup(tmp_path)
    ctx = build_test_context(home)

    runner = CliRunner()
    with with_file_lock(ctx.environment.lock_file):
        result = runner.invoke(
            cli, ["install", str(pack_dir), "--project", str(project)], obj=ctx
        )

    assert result.exit_code == 1
    assert "Another mcs process is running" in result.output
    assert not (project / ".claude").exists()


def test_global_install_migrates_legacy_manifest(tmp_path: Path) -> None:
    """Test that packs from the old manifest stay recorded after a global install."""
    home, _, pack_dir = _setup(tmp_path)
    legacy = home / ".claude" / ".setup-manifest"
    legacy.parent.mkdir(parents=True)
    legacy.write_text("CONFIGURED_PACKS=legacy-pack\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["install", str(pack_dir)], obj=build_test_context(home))

    assert result.exit_code == 0, result.output
    assert not legacy.exists()
    ledger = json.loads((home / ".mcs" / "global-state.json").read_text())
    assert set(ledger) == {"demo", "legacy-pack"}
    assert (home / ".claude" / "skills" / "demo.md").is_file()


def test_uninstall_after_install(tmp_path: Path) -> None:
    """Test that uninstall removes what install recorded."""
    home, project, pack_dir = _setup(tmp_path)
    ctx = build_test_context(home)
    runner = CliRunner()
    runner.invoke(cli, ["install", str(pack_dir), "--project", str(project)], obj=ctx)

    result = runner.invoke(cli, ["uninstall", "demo", "--project", str(project)], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "✨ Removed 1 artifact(s)" in result.output
    assert not (project / ".claude" / "skills" / "demo.md").exists()
    assert json.loads((project / ".claude" / ".mcs-project").read_text()) == {}


def test_uninstall_unknown_pack(tmp_path: Path) -> None:
    home, project, _ = _setup(tmp_path)

    runner = CliRunner()
    result = runner.invoke(
        cli, ["uninstall", "demo", "--project", str(project)], obj=build_test_context(home)
    )

    assert result.exit_code == 1
    assert "Pack 'demo' is not installed" in result.output
