from pathlib import Path

import click

from mcs.cli.context import McsContext
from mcs.cli.output import section_header, to_click_error
from mcs.core.backup import Backup
from mcs.core.environment import state_file_for
from mcs.core.errors import McsError
from mcs.core.file_lock import with_file_lock
from mcs.core.project_state import ProjectState
from mcs.install.uninstaller import PackUninstaller, RemovalSummary


def _print_summary(summary: RemovalSummary) -> None:
    categories = [
        ("MCP servers", summary.mcp_servers),
        ("Files", summary.files),
        ("Template sections", summary.template_sections),
        ("Hook fragments", summary.hook_commands),
        ("Settings keys", summary.settings_keys),
        ("Brew packages", summary.brew_packages),
        ("Plugins", summary.plugins),
    ]
    for title, items in categories:
        for item in items:
            click.echo(f"  {click.style('✅', fg='green')} {title}: removed {item}")
    for skipped in summary.skipped:
        click.echo(click.style(f"  ➖ {skipped}", dim=True))
    for error in summary.errors:
        click.echo(f"  {click.style('❌', fg='red')} {error}")


@click.command("uninstall")
@click.argument("pack_id")
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Uninstall from this project instead of ~/.claude",
)
@click.pass_obj
def uninstall_cmd(ctx: McsContext, pack_id: str, project: Path | None) -> None:
    """Remove everything a pack installed, as recorded at install time."""
    project_path = project.resolve() if project is not None else None
    env = ctx.environment

    try:
        with with_file_lock(env.lock_file):
            state = ProjectState.load(state_file_for(env, project_path))
            if pack_id not in state.configured_packs:
                raise click.ClickException(f"Pack '{pack_id}' is not installed")
            uninstaller = PackUninstaller(env, ctx.shell, state, project_path, Backup())
            summary = uninstaller.uninstall(pack_id)
    except McsError as e:
        raise to_click_error(e) from e

    section_header(f"Uninstalling {pack_id}")
    _print_summary(summary)
    click.echo("")

    if summary.errors:
        click.echo(
            click.style(
                f"⚠️  {len(summary.errors)} artifact(s) could not be removed; "
                "run uninstall again to retry",
                fg="yellow",
                bold=True,
            )
        )
        raise SystemExit(1)
    click.echo(
        click.style(f"✨ Removed {summary.total_removed} artifact(s)", fg="green", bold=True)
    )
