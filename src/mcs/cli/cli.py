import logging

import click

from mcs.cli.commands.doctor import doctor_cmd
from mcs.cli.commands.install import install_cmd
from mcs.cli.commands.migrate import migrate_cmd
from mcs.cli.commands.uninstall import uninstall_cmd
from mcs.cli.context import create_context
from mcs.cli.output import to_click_error
from mcs.core.errors import ConfigError

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="mcs")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Install, verify and remove Claude Code component packs."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        try:
            ctx.obj = create_context()
        except ConfigError as e:
            raise to_click_error(e) from e


cli.add_command(doctor_cmd)
cli.add_command(install_cmd)
cli.add_command(migrate_cmd)
cli.add_command(uninstall_cmd)
