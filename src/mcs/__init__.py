"""mcs CLI entry point.

This package installs, tracks, audits and uninstalls Claude Code components
(files, hooks, MCP servers, plugins, settings) for a project or the user's
home configuration. See `mcs --help` for details.
"""


def main() -> None:
    """CLI entry point used by the `mcs` console script."""
    from mcs.cli.cli import cli

    cli()
