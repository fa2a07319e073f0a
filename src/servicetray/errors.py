from __future__ import annotations


class ServiceTrayError(Exception):
    """Base class for every failure raised by servicetray."""


class ExecutionError(ServiceTrayError):
    """The external program could not be spawned at all."""

    def __init__(self, program: str, reason: str) -> None:
        super().__init__(f"Failed to execute {program}: {reason}")
        self.program = program
        self.reason = reason


class CommandFailed(ServiceTrayError):
    """The program ran but exited non-zero."""

    def __init__(self, stderr: str) -> None:
        super().__init__(f"Command failed with stderr: {stderr.strip()}")
        self.stderr = stderr


class ParseError(ServiceTrayError):
    """Input that cannot be interpreted at all.

    The parsers degrade field by field, so this is reserved and rarely seen.
    """


class DaemonStopped(ServiceTrayError):
    """The mesh daemon reports itself stopped: render "no peers", not an error."""

    def __init__(self) -> None:
        super().__init__("Tailscale daemon is stopped.")
