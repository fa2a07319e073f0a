from __future__ import annotations

import pytest

from servicetray.errors import DaemonStopped
from servicetray.parsing import is_stopped_banner, online_peers, parse_daemon_status, parse_peer_list

from samples import DOCKER_ACTIVE, DOCKER_INACTIVE, TAILSCALE_STATUS


def test_daemon_status_scenario() -> None:
    text = "Loaded: loaded (...)\nActive: active (running) since Mon\nMain PID: 4821 (dockerd)\nMem peak: 128.4M\n"
    st = parse_daemon_status(text)
    assert st.is_active is True
    assert st.main_pid == 4821
    assert st.memory_peak == "128.4M"
    assert st.loaded_state == "loaded (...)"
    assert st.cpu_time is None
    assert st.raw_output == text


def test_daemon_status_real_output() -> None:
    st = parse_daemon_status(DOCKER_ACTIVE)
    assert st.active_state.startswith("active (running) since Mon")
    assert st.is_active
    assert st.main_pid == 4821
    assert st.memory_peak == "128.4M"
    assert st.cpu_time == "3.512s"
    assert st.loaded_state.startswith("loaded (/usr/lib/systemd/system/docker.service")


def test_daemon_status_inactive() -> None:
    st = parse_daemon_status(DOCKER_INACTIVE)
    assert st.active_state == "inactive (dead)"
    assert not st.is_active
    assert st.main_pid is None
    assert st.memory_peak is None
    assert st.cpu_time is None


@pytest.mark.parametrize(
    "active,expected",
    [
        ("active (running) since Tue", True),
        ("  X (running)", True),
        ("activating (start)", False),
        ("failed (Result: exit-code)", False),
        ("running", False),
    ],
)
def test_is_active_tracks_running_marker(active: str, expected: bool) -> None:
    st = parse_daemon_status(f"Active: {active}\n")
    assert st.is_active is expected
    assert st.active_state == active.strip()


@pytest.mark.parametrize(
    "line,pid",
    [
        ("Main PID: 1234 (extra info)", 1234),
        ("   Main PID: 7", 7),
        ("Main PID: notanumber", None),
        ("Main PID:", None),
        ("Main PID: -5 (x)", None),
        ("Main PID: 99999999999 (huge)", None),
    ],
)
def test_main_pid_degrades_to_none(line: str, pid) -> None:
    assert parse_daemon_status(line + "\n").main_pid == pid


def test_daemon_status_empty_and_unknown_lines() -> None:
    st = parse_daemon_status("")
    assert st.active_state == ""
    assert not st.is_active
    st = parse_daemon_status("Tasks: 21\nCGroup: /system.slice\nsomething else\n")
    assert st.active_state == "" and st.loaded_state == ""
    assert st.main_pid is None


def test_daemon_status_reordered_fields() -> None:
    st = parse_daemon_status("CPU: 1s\nMain PID: 12 (x)\nActive: active (running)\n")
    assert st.cpu_time == "1s"
    assert st.main_pid == 12
    assert st.is_active


def test_peer_list_scenario() -> None:
    peers = parse_peer_list("100.1.1.1 host-a alice linux -\n100.1.1.2 host-b alice linux offline\n")
    assert [p.hostname for p in peers] == ["host-a", "host-b"]
    assert peers[0].online is True
    assert peers[1].online is False
    assert peers[0].details == "-"


def test_peer_list_online_first_stable() -> None:
    peers = parse_peer_list(TAILSCALE_STATUS)
    assert [p.hostname for p in peers] == ["laptop", "phone", "nas", "old-desktop"]
    assert [p.online for p in peers] == [True, True, False, False]
    nas = peers[2]
    assert nas.ip == "100.101.1.2"
    assert nas.user == "alice@"
    assert nas.os == "linux"
    assert nas.details == "offline, last seen 3d ago"


def test_peer_list_skips_short_lines() -> None:
    text = "\nheader line\n100.1.1.1 a b\n100.1.1.2 host u linux\n   \n"
    peers = parse_peer_list(text)
    assert len(peers) == 1
    assert peers[0].hostname == "host"
    assert peers[0].details == ""
    assert peers[0].online


def test_peer_details_joined_with_single_space() -> None:
    peers = parse_peer_list("1.2.3.4   h   u   os   active;\t direct   1.1.1.1:1\n")
    assert peers[0].details == "active; direct 1.1.1.1:1"


@pytest.mark.parametrize("text", ["Tailscale is stopped.", "  Tailscale is stopped.\n", "\nTailscale is stopped.\n\n"])
def test_stopped_banner_raises_daemon_stopped(text: str) -> None:
    assert is_stopped_banner(text)
    with pytest.raises(DaemonStopped):
        parse_peer_list(text)


def test_stopped_banner_must_be_exact() -> None:
    assert not is_stopped_banner("Tailscale is stopped. Run tailscale up")
    assert not is_stopped_banner("Tailscale is stopped")
    assert parse_peer_list("Tailscale is stopped") == []


def test_online_peers_filter() -> None:
    peers = parse_peer_list(TAILSCALE_STATUS)
    assert [p.hostname for p in online_peers(peers)] == ["laptop", "phone"]
