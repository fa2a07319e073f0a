from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from servicetray import cli
from servicetray.entry import rewrite_argv
from servicetray.services import build_controller

from samples import DOCKER_ACTIVE, TAILSCALE_STATUS


@pytest.fixture
def invoke(runner, monkeypatch):
    def _build(name, settings=None):
        return build_controller(name, None, runner=runner)

    monkeypatch.setattr(cli, "build_controller", _build)
    # keep the stderr handler off CliRunner's temporary streams
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    cli_runner = CliRunner()

    def _invoke(*args: str):
        return cli_runner.invoke(cli.app, list(args))

    return _invoke


def test_status_docker(invoke, runner) -> None:
    runner.on(("systemctl", "status", "docker"), stdout=DOCKER_ACTIVE)
    result = invoke("status", "docker")
    assert result.exit_code == 0
    assert "name: docker" in result.output
    assert "pid: 4821" in result.output
    assert "mem peak: 128.4M" in result.output


def test_status_docker_json(invoke, runner) -> None:
    runner.on(("systemctl", "status", "docker"), stdout=DOCKER_ACTIVE)
    result = invoke("status", "docker", "--json")
    data = json.loads(result.output.strip())
    assert data["name"] == "docker"
    assert data["active"] is True
    assert data["main_pid"] == 4821


def test_status_tailscale_stopped(invoke, runner) -> None:
    runner.on(("tailscale", "status"), stderr="Tailscale is not running\n", returncode=1)
    result = invoke("status", "tailscale")
    assert result.exit_code == 0
    assert "enabled: no" in result.output


def test_peers_online(invoke, runner) -> None:
    runner.on(("tailscale", "status"), stdout=TAILSCALE_STATUS)
    result = invoke("peers", "--online")
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert [ln.split("\t")[1] for ln in lines] == ["laptop", "phone"]


def test_start_failure_exits_1(invoke, runner) -> None:
    runner.on(("sudo", "systemctl", "start", "docker"), stderr="a password is required", returncode=1)
    result = invoke("start", "docker")
    assert result.exit_code == 1
    assert "a password is required" in result.output


def test_up_alias(invoke, runner) -> None:
    runner.on(("tailscale", "up"))
    result = invoke("up", "tailscale")
    assert result.exit_code == 0
    assert "started tailscale" in result.output


def test_toggle(invoke, runner) -> None:
    runner.on(("tailscale", "status"), stdout=TAILSCALE_STATUS)
    runner.on(("tailscale", "down"))
    result = invoke("toggle", "tailscale")
    assert result.exit_code == 0
    assert "stopped tailscale" in result.output


def test_menu(invoke, runner) -> None:
    runner.on(("tailscale", "status"), stdout=TAILSCALE_STATUS)
    result = invoke("menu", "tailscale")
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert lines[0] == "toggle\tTurn Tailscale Off"
    assert lines[-1] == "quit\tQuit"
    assert "100.101.1.2\t⚫ nas (100.101.1.2)" in lines


def test_unknown_service(invoke) -> None:
    result = invoke("status", "nginx")
    assert result.exit_code == 2
    assert "Unknown service" in result.output


def test_shorthand_runs_through_app(invoke, runner) -> None:
    runner.on(("systemctl", "status", "docker"), stdout=DOCKER_ACTIVE)
    result = invoke(*rewrite_argv(["docker"]))
    assert result.exit_code == 0
    assert "state: active (running)" in result.output


@pytest.mark.parametrize(
    "argv,expected",
    [
        (["docker", "toggle"], ["toggle", "docker"]),
        (["tailscale"], ["status", "tailscale"]),
        (["tailscale", "--json"], ["status", "tailscale", "--json"]),
        (["Docker", "off"], ["stop", "docker"]),
        (["tailscale", "up"], ["start", "tailscale"]),
        (["docker", "status", "--json"], ["status", "docker", "--json"]),
        (["status", "docker"], ["status", "docker"]),
        (["docker", "frobnicate"], ["docker", "frobnicate"]),
        ([], []),
    ],
)
def test_rewrite_argv(argv, expected) -> None:
    assert rewrite_argv(argv) == expected
