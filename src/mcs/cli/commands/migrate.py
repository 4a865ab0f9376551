import click

from mcs.cli.context import McsContext
from mcs.cli.output import to_click_error
from mcs.core.errors import McsError
from mcs.core.file_lock import with_file_lock
from mcs.core.project_state import migrate_legacy_manifest


@click.command("migrate")
@click.pass_obj
def migrate_cmd(ctx: McsContext) -> None:
    """Move the legacy installer manifest to the global ledger."""
    env = ctx.environment
    try:
        with with_file_lock(env.lock_file):
            migrated = migrate_legacy_manifest(env.legacy_manifest, env.global_state_file)
    except McsError as e:
        raise to_click_error(e) from e

    if migrated:
        click.echo(f"Migrated {env.legacy_manifest} to {env.global_state_file}")
    else:
        click.echo("Nothing to migrate")
