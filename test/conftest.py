from __future__ import annotations

from typing import Optional, Sequence

import pytest

from servicetray.errors import ExecutionError
from servicetray.runner import CommandResult


class FakeRunner:
    """Scripted stand-in for run_command keyed on the argv tuple."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, ...], object] = {}
        self.calls: list[tuple[str, ...]] = []

    def on(self, argv: Sequence[str], stdout: str = "", stderr: str = "", returncode: int = 0) -> None:
        self.responses[tuple(argv)] = CommandResult(returncode, stdout, stderr)

    def missing(self, argv: Sequence[str]) -> None:
        self.responses[tuple(argv)] = ExecutionError(argv[0], "No such file or directory")

    def __call__(
        self,
        program: str,
        args: Sequence[str],
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        key = (program, *args)
        self.calls.append(key)
        resp = self.responses.get(key)
        if resp is None:
            raise AssertionError(f"unexpected command: {key}")
        if isinstance(resp, Exception):
            raise resp
        return resp  # type: ignore[return-value]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()
