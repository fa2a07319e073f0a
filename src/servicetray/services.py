"""Start/stop/toggle/query controllers for the services shown in the tray.

Every external command is attempted exactly once; failures surface to the
caller immediately.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

from .errors import CommandFailed, DaemonStopped, ServiceTrayError
from .models import PeerMachine, ServiceStatus
from .parsing import is_stopped_banner, online_peers, parse_daemon_status, parse_peer_list
from .runner import CommandResult, Runner, run_command
from .util import Settings


log = logging.getLogger(__name__)

Detail = Union[ServiceStatus, Sequence[PeerMachine], None]

# stderr fragments meaning "the mesh daemon is simply not up"
NOT_RUNNING_PATTERNS: tuple[str, ...] = (
    "Tailscale is not running",
    "Cannot connect to the Tailscale daemon",
)


def _check(result: CommandResult) -> CommandResult:
    if not result.exit_success:
        raise CommandFailed(result.stderr)
    return result


class ServiceController(ABC):
    name: str = ""
    title: str = ""

    def __init__(self, runner: Runner = run_command) -> None:
        self._run = runner

    @abstractmethod
    def query_status(self):
        ...

    @abstractmethod
    def is_enabled(self) -> bool:
        ...

    @abstractmethod
    def start(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...

    @abstractmethod
    def snapshot(self) -> tuple[bool, Detail]:
        ...

    def toggle(self) -> bool:
        """Stop the service if it is enabled, otherwise start it.

        The query and the action are two separate commands; another operator
        changing the service in between is not detected. Returns the state
        that was requested.
        """
        try:
            enabled = self.is_enabled()
        except ServiceTrayError as e:
            log.warning("%s: status query failed, assuming disabled: %s", self.name, e)
            enabled = False
        if enabled:
            log.info("%s: stopping", self.name)
            self.stop()
            return False
        log.info("%s: starting", self.name)
        self.start()
        return True


class DockerDaemon(ServiceController):
    """Docker under systemd.

    start/stop go through `sudo systemctl`, which must be allowed without a
    password for this user.
    """

    name = "docker"
    title = "Docker"

    def __init__(
        self,
        unit: str = "docker",
        systemctl: str = "systemctl",
        sudo: str = "sudo",
        runner: Runner = run_command,
    ) -> None:
        super().__init__(runner)
        self.unit = unit
        self.systemctl = systemctl
        self.sudo = sudo

    def _privileged(self, action: str) -> CommandResult:
        if self.sudo:
            return self._run(self.sudo, [self.systemctl, action, self.unit])
        return self._run(self.systemctl, [action, self.unit])

    def query_status(self) -> ServiceStatus:
        # exit code is ignored on purpose: inactive units exit 3
        result = self._run(self.systemctl, ["status", self.unit])
        return parse_daemon_status(result.stdout)

    def is_enabled(self) -> bool:
        return self.query_status().is_active

    def start(self) -> None:
        _check(self._privileged("start"))

    def stop(self) -> None:
        _check(self._privileged("stop"))

    def snapshot(self) -> tuple[bool, Detail]:
        try:
            status = self.query_status()
        except ServiceTrayError as e:
            log.warning("%s: status unavailable: %s", self.name, e)
            return False, None
        return status.is_active, status


class TailscaleMesh(ServiceController):
    name = "tailscale"
    title = "Tailscale"

    def __init__(self, binary: str = "tailscale", runner: Runner = run_command) -> None:
        super().__init__(runner)
        self.binary = binary

    @staticmethod
    def _not_running(stderr: str) -> bool:
        return any(p in stderr for p in NOT_RUNNING_PATTERNS)

    def query_status(self) -> list[PeerMachine]:
        """Peers from `tailscale status`; DaemonStopped when the daemon is down."""
        result = self._run(self.binary, ["status"])
        if not result.exit_success:
            if self._not_running(result.stderr):
                raise DaemonStopped()
            raise CommandFailed(result.stderr)
        return parse_peer_list(result.stdout)

    def online_machines(self) -> list[PeerMachine]:
        return online_peers(self.query_status())

    def is_enabled(self) -> bool:
        result = self._run(self.binary, ["status"])
        if not result.exit_success:
            if self._not_running(result.stderr):
                return False
            raise CommandFailed(result.stderr)
        return not is_stopped_banner(result.stdout)

    def start(self) -> None:
        _check(self._run(self.binary, ["up"]))

    def stop(self) -> None:
        _check(self._run(self.binary, ["down"]))

    def snapshot(self) -> tuple[bool, Detail]:
        try:
            enabled = self.is_enabled()
        except ServiceTrayError as e:
            log.warning("%s: status unavailable: %s", self.name, e)
            return False, []
        if not enabled:
            return False, []
        try:
            peers = self.query_status()
        except DaemonStopped:
            peers = []
        except ServiceTrayError as e:
            log.warning("%s: peer list unavailable: %s", self.name, e)
            peers = []
        return True, peers


SERVICE_NAMES: tuple[str, ...] = (DockerDaemon.name, TailscaleMesh.name)


def build_controller(
    name: str,
    settings: Optional[Settings] = None,
    runner: Runner = run_command,
) -> ServiceController:
    settings = settings or Settings()
    key = name.strip().lower()
    if key == DockerDaemon.name:
        return DockerDaemon(
            unit=settings.docker_unit,
            systemctl=settings.systemctl_bin,
            sudo=settings.sudo_bin,
            runner=runner,
        )
    if key == TailscaleMesh.name:
        return TailscaleMesh(binary=settings.tailscale_bin, runner=runner)
    raise ValueError(f"Unknown service '{name}'. Choose from: {', '.join(SERVICE_NAMES)}")
