"""Parsers for the human-readable output of `systemctl status` and `tailscale status`.

Both are pure functions of their text input and tolerate missing or
reordered fields, so a changed upstream CLI degrades a field instead of
breaking the whole status.
"""
from __future__ import annotations

from typing import Iterable, Optional

from .errors import DaemonStopped
from .models import PeerMachine, ServiceStatus


STOPPED_BANNER = "Tailscale is stopped."

# prefix -> ServiceStatus field
_DAEMON_KEYS: tuple[tuple[str, str], ...] = (
    ("Active:", "active_state"),
    ("Loaded:", "loaded_state"),
    ("Main PID:", "main_pid"),
    ("Mem peak:", "memory_peak"),
    ("CPU:", "cpu_time"),
)

_MIN_PEER_FIELDS = 4
_MAX_PID = 2**32 - 1


def _parse_pid(value: str) -> Optional[int]:
    # "4821 (dockerd)" -> 4821
    tokens = value.split()
    if not tokens:
        return None
    token = tokens[0]
    if not (token.isascii() and token.isdigit()):
        return None
    pid = int(token)
    return pid if pid <= _MAX_PID else None


def parse_daemon_status(text: str) -> ServiceStatus:
    """Build a ServiceStatus from `systemctl status <unit>` output.

    Must be fed stdout even when the command exited non-zero: an inactive
    unit reports its state that way.
    """
    fields: dict[str, object] = {}
    for line in text.splitlines():
        stripped = line.strip()
        for prefix, name in _DAEMON_KEYS:
            if not stripped.startswith(prefix):
                continue
            value = stripped[len(prefix):].strip()
            if name == "main_pid":
                fields[name] = _parse_pid(value)
            else:
                fields[name] = value
            break
    return ServiceStatus(raw_output=text, **fields)  # type: ignore[arg-type]


def is_stopped_banner(text: str) -> bool:
    return text.strip() == STOPPED_BANNER


def parse_peer_list(text: str) -> list[PeerMachine]:
    """Parse `tailscale status` into peers, online ones first.

    Each group keeps the order the CLI printed it in. Lines with fewer than
    four columns (headers, blanks, wrapped notes) are skipped. Raises
    DaemonStopped for the "Tailscale is stopped." banner.
    """
    if is_stopped_banner(text):
        raise DaemonStopped()

    online: list[PeerMachine] = []
    offline: list[PeerMachine] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < _MIN_PEER_FIELDS:
            continue
        peer = PeerMachine(
            ip=parts[0],
            hostname=parts[1],
            user=parts[2],
            os=parts[3],
            details=" ".join(parts[_MIN_PEER_FIELDS:]),
        )
        (online if peer.online else offline).append(peer)
    return online + offline


def online_peers(peers: Iterable[PeerMachine]) -> list[PeerMachine]:
    return [p for p in peers if p.online]
