"""Formatting for user-facing command output."""

import click

from mcs.core.errors import McsError
from mcs.doctor.checks import CheckResult, CheckStatus
from mcs.install.executor import ComponentResult

_STATUS_ICONS = {
    CheckStatus.PASS: ("✅", "green"),
    CheckStatus.WARN: ("⚠️ ", "yellow"),
    CheckStatus.FAIL: ("❌", "red"),
    CheckStatus.SKIP: ("➖", "white"),
}


def format_check_result(name: str, result: CheckResult) -> None:
    icon, color = _STATUS_ICONS[result.status]
    click.echo(f"  {click.style(icon, fg=color)} {name}: {result.message}")


def format_component_result(result: ComponentResult) -> None:
    if result.success:
        icon = click.style("✅", fg="green")
    else:
        icon = click.style("❌", fg="red")
    click.echo(f"  {icon} {result.component_id}: {result.message}")


def section_header(title: str) -> None:
    click.echo(click.style(title, bold=True))


def to_click_error(error: McsError) -> click.ClickException:
    """Report a domain error as a one-line CLI failure (exit code 1)."""
    return click.ClickException(str(error))
