from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .errors import ExecutionError


log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def exit_success(self) -> bool:
        return self.returncode == 0


class Runner(Protocol):
    def __call__(
        self,
        program: str,
        args: Sequence[str],
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult: ...


def run_command(
    program: str,
    args: Sequence[str],
    input_text: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run `program args...` to completion and capture its output.

    A non-zero exit status is returned, not raised: `systemctl status` exits
    non-zero for an inactive unit and callers still need its stdout. Only a
    failure to spawn the process (or an explicit timeout) raises
    `ExecutionError`.
    """
    argv = [program, *args]
    log.debug("exec: %s", " ".join(argv))
    try:
        cp = subprocess.run(
            argv,
            input=input_text,
            stdin=None if input_text is not None else subprocess.DEVNULL,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ExecutionError(program, f"timed out after {e.timeout}s") from e
    except OSError as e:
        # FileNotFoundError, PermissionError and friends
        raise ExecutionError(program, e.strerror or str(e)) from e
    log.debug("exit %d: %s", cp.returncode, program)
    return CommandResult(cp.returncode, cp.stdout or "", cp.stderr or "")
