"""Real implementation of Shell - spawns subprocesses."""

import logging
import shutil
import subprocess
from pathlib import Path

from mcs.gateway.shell.abc import Shell, ShellResult

logger = logging.getLogger(__name__)


class RealShell(Shell):
    def command_exists(self, name: str) -> bool:
        return shutil.which(name) is not None

    def run(self, args: list[str], cwd: Path | None = None) -> ShellResult:
        logger.debug("Running %s", " ".join(args))
        # LBYL: a missing executable is a failed result, not an exception
        if shutil.which(args[0]) is None:
            return ShellResult(returncode=127, stdout="", stderr=f"{args[0]}: command not found")
        result = subprocess.run(args, cwd=cwd, check=False, capture_output=True, text=True)
        return ShellResult(
            returncode=result.returncode,
            stdout=result.stdout.strip(),
            stderr=result.stderr.strip(),
        )

    def run_shell(self, command: str, cwd: Path | None = None) -> ShellResult:
        logger.debug("Running shell command: %s", command)
        result = subprocess.run(
            ["/bin/sh", "-c", command], cwd=cwd, check=False, capture_output=True, text=True
        )
        return ShellResult(
            returncode=result.returncode,
            stdout=result.stdout.strip(),
            stderr=result.stderr.strip(),
        )
