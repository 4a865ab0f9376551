from pathlib import Path

import click

from mcs.cli.context import McsContext
from mcs.cli.output import format_check_result, section_header, to_click_error
from mcs.components.manifest import load_manifest
from mcs.core.errors import McsError
from mcs.doctor.checks import CheckStatus
from mcs.doctor.derived import contribution_checks
from mcs.doctor.runner import run_doctor


@click.command("doctor")
@click.argument("pack_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Check the pack as installed in this project",
)
@click.pass_obj
def doctor_cmd(ctx: McsContext, pack_dir: Path, project: Path | None) -> None:
    """Verify that a pack's components are installed.

    Read-only: takes no lock and changes nothing.
    """
    project_path = project.resolve() if project is not None else None
    try:
        manifest = load_manifest(pack_dir.resolve(), ctx.shell, ctx.config.default_mcp_scope)
    except McsError as e:
        raise to_click_error(e) from e

    click.echo(click.style(f"🔍 Checking {manifest.display_name}...", bold=True))
    click.echo("")

    report = run_doctor(
        manifest.components,
        ctx.environment,
        ctx.shell,
        project_path,
        extra_checks=contribution_checks(manifest, ctx.environment, project_path),
    )
    for section, outcomes in report.by_section().items():
        section_header(section)
        for outcome in outcomes:
            format_check_result(outcome.name, outcome.result)
        click.echo("")

    failures = report.count(CheckStatus.FAIL)
    warnings = report.count(CheckStatus.WARN)
    if failures:
        click.echo(click.style(f"❌ {failures} check(s) failed", fg="red", bold=True))
        raise SystemExit(1)
    if warnings:
        click.echo(click.style(f"⚠️  {warnings} warning(s)", fg="yellow", bold=True))
        return
    click.echo(click.style("✨ All checks passed!", fg="green", bold=True))
