from __future__ import annotations

from typing import Optional, Sequence, Union

from .bridge import CONTROL_IDS, QUIT_ID, REFRESH_ID, TOGGLE_ID
from .models import MenuEntry, MenuItem, MenuModel, PeerMachine, Separator, ServiceStatus


ONLINE_MARK = "🟢"
OFFLINE_MARK = "⚫"
PEER_PREFIX = "peer:"

STATUS_ID = "status"
NO_PEERS_ID = "no-peers"
INFO_ACTIVE_ID = "info:active"
INFO_PID_ID = "info:pid"
INFO_MEMORY_ID = "info:memory"
RESERVED_IDS: frozenset[str] = CONTROL_IDS | {
    STATUS_ID,
    NO_PEERS_ID,
    INFO_ACTIVE_ID,
    INFO_PID_ID,
    INFO_MEMORY_ID,
}


def peer_id(ip: str) -> str:
    """Menu identifier for a peer; namespaced only when the ip would clash with a fixed id."""
    if ip in RESERVED_IDS or ip.startswith(PEER_PREFIX):
        return f"{PEER_PREFIX}{ip}"
    return ip


def peer_ip(identifier: str) -> str:
    if identifier.startswith(PEER_PREFIX):
        return identifier[len(PEER_PREFIX):]
    return identifier


def _peer_rows(peers: Sequence[PeerMachine]) -> list[MenuEntry]:
    if not peers:
        return [MenuItem("No peers", NO_PEERS_ID, enabled=False)]
    rows: list[MenuEntry] = []
    for p in peers:
        mark = ONLINE_MARK if p.online else OFFLINE_MARK
        rows.append(MenuItem(f"{mark} {p.hostname} ({p.ip})", peer_id(p.ip)))
    return rows


def _daemon_rows(status: ServiceStatus) -> list[MenuEntry]:
    rows: list[MenuEntry] = []
    if status.active_state:
        rows.append(MenuItem(f"Active: {status.active_state}", INFO_ACTIVE_ID, enabled=False))
    if status.main_pid is not None:
        rows.append(MenuItem(f"PID: {status.main_pid}", INFO_PID_ID, enabled=False))
    if status.memory_peak is not None:
        rows.append(MenuItem(f"Mem peak: {status.memory_peak}", INFO_MEMORY_ID, enabled=False))
    return rows


def _status_line(title: str, detail) -> str:
    if isinstance(detail, ServiceStatus) and detail.active_state:
        return f"{title}: {detail.active_state}"
    return f"{title} is off"


def project(
    enabled: bool,
    detail: Union[ServiceStatus, Sequence[PeerMachine], None],
    title: str = "Service",
) -> MenuModel:
    """Derive the full menu from the current service state.

    `detail` is a ServiceStatus for daemon services and a peer sequence for
    the mesh service. The result is always built from scratch.
    """
    on_off = "Off" if enabled else "On"
    toggle = MenuItem(f"Turn {title} {on_off}", TOGGLE_ID)
    refresh = MenuItem("Refresh", REFRESH_ID)

    entries: list[MenuEntry]
    if not enabled:
        entries = [
            toggle,
            Separator(),
            MenuItem(_status_line(title, detail), STATUS_ID, enabled=False),
            refresh,
        ]
    else:
        entries = [toggle, refresh, Separator()]
        if isinstance(detail, ServiceStatus):
            entries.extend(_daemon_rows(detail))
        else:
            entries.extend(_peer_rows(list(detail or [])))

    entries.extend([Separator(), MenuItem("Quit", QUIT_ID)])
    return MenuModel(entries=tuple(entries), active=enabled)


def selectable(model: MenuModel, identifier: str) -> Optional[MenuItem]:
    item = model.find(identifier)
    if item is None or not item.enabled:
        return None
    return item
