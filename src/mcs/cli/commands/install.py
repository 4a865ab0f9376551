from pathlib import Path

import click

from mcs.cli.context import McsContext
from mcs.cli.output import format_component_result, section_header, to_click_error
from mcs.components.manifest import load_manifest
from mcs.core.backup import Backup
from mcs.core.environment import state_file_for
from mcs.core.errors import McsError
from mcs.core.file_lock import with_file_lock
from mcs.core.project_state import ProjectState, migrate_legacy_manifest
from mcs.install.pack_installer import PackInstaller, resolve_builtin_values


def parse_assignments(assignments: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated KEY=VALUE options."""
    values: dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{assignment}'", param_hint="--set")
        values[key] = value
    return values


@click.command("install")
@click.argument("pack_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Install into this project instead of ~/.claude",
)
@click.option("--set", "assignments", multiple=True, help="Placeholder value as KEY=VALUE")
@click.pass_obj
def install_cmd(
    ctx: McsContext, pack_dir: Path, project: Path | None, assignments: tuple[str, ...]
) -> None:
    """Install a pack's components and record them for uninstall.

    Examples:

    \b
      # Install into the current project
      mcs install ./packs/ios --project .

    \b
      # Install into ~/.claude with a placeholder value
      mcs install ./packs/core --set TEAM_NAME=platform
    """
    overrides = parse_assignments(assignments)
    project_path = project.resolve() if project is not None else None
    env = ctx.environment

    try:
        with with_file_lock(env.lock_file):
            if project_path is None:
                migrate_legacy_manifest(env.legacy_manifest, env.global_state_file)
            manifest = load_manifest(pack_dir.resolve(), ctx.shell, ctx.config.default_mcp_scope)
            values = {
                **ctx.config.values,
                **resolve_builtin_values(ctx.shell, project_path),
                **overrides,
            }
            state = ProjectState.load(state_file_for(env, project_path))
            installer = PackInstaller(env, ctx.shell, state, project_path, Backup())
            result = installer.install(manifest, values)
    except McsError as e:
        raise to_click_error(e) from e

    section_header(f"Installing {manifest.display_name} v{manifest.version}")
    for component_result in result.results:
        format_component_result(component_result)
    click.echo("")

    if not result.success:
        click.echo(
            click.style(f"⚠️  {len(result.failed)} component(s) failed", fg="yellow", bold=True)
        )
        raise SystemExit(1)
    click.echo(click.style(f"✨ Installed {manifest.identifier}", fg="green", bold=True))
