"""Dependencies threaded through every mcs command."""

from dataclasses import dataclass

from mcs.core.config import McsConfig, load_config
from mcs.core.environment import Environment
from mcs.gateway.shell.abc import Shell
from mcs.gateway.shell.real import RealShell


@dataclass(frozen=True)
class McsContext:
    """Immutable context created at the CLI entry point.

    Tests build one directly with a temporary home and FakeShell.
    """

    environment: Environment
    config: McsConfig
    shell: Shell


def create_context() -> McsContext:
    """Create the production context rooted at the real home directory."""
    environment = Environment.for_home()
    return McsContext(
        environment=environment,
        config=load_config(environment.config_file),
        shell=RealShell(),
    )
