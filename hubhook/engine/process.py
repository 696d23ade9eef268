"""Subprocess execution for the update executor.

Every command runs to completion with stdin attached to /dev/null so a
build script can never block waiting for input. There is deliberately no
timeout: a hung command holds up every later trigger.
"""

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

# Exit status reported when the executable could not be started at all.
SPAWN_FAILED = -2


@dataclass
class ProcessResult:
    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def is_success(self) -> bool:
        return self.returncode == 0

    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()


class ProcessRunner(Protocol):
    def __call__(
        self, args: Sequence[str] | str, cwd: Path, shell: bool = False
    ) -> ProcessResult: ...


def run_process(args: Sequence[str] | str, cwd: Path, shell: bool = False) -> ProcessResult:
    """Run a command in `cwd` and capture its output.

    Raises no exceptions: a command that cannot be spawned (missing binary,
    missing directory) is reported with returncode SPAWN_FAILED.
    """
    logger.debug("Running %s (cwd=%s)", args, cwd)
    try:
        completed = subprocess.run(
            args,
            cwd=str(cwd),
            shell=shell,
            stdin=subprocess.DEVNULL,
            capture_output=True,
        )
    except OSError as exc:
        return ProcessResult(returncode=SPAWN_FAILED, stderr=str(exc).encode("utf-8"))

    return ProcessResult(
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )
