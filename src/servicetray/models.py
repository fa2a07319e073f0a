from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


RUNNING_MARKER = "(running)"
OFFLINE_MARKER = "offline"


@dataclass(frozen=True, slots=True)
class ServiceStatus:
    """Parsed `systemctl status` output for one unit."""

    raw_output: str
    active_state: str = ""
    loaded_state: str = ""
    main_pid: Optional[int] = None
    memory_peak: Optional[str] = None
    cpu_time: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return RUNNING_MARKER in self.active_state


@dataclass(frozen=True, slots=True)
class PeerMachine:
    """One row of `tailscale status`."""

    ip: str
    hostname: str
    user: str
    os: str
    details: str = ""

    @property
    def online(self) -> bool:
        return OFFLINE_MARKER not in self.details


# Messages crossing the event bridge. Immutable so a producer thread can
# never observe the consumer touching them.
@dataclass(frozen=True, slots=True)
class Toggle:
    pass


@dataclass(frozen=True, slots=True)
class Refresh:
    pass


@dataclass(frozen=True, slots=True)
class Quit:
    pass


@dataclass(frozen=True, slots=True)
class SelectItem:
    identifier: str


AppMessage = Union[Toggle, Refresh, Quit, SelectItem]


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    id: str
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class Separator:
    pass


MenuEntry = Union[MenuItem, Separator]


@dataclass(frozen=True, slots=True)
class MenuModel:
    entries: tuple[MenuEntry, ...] = field(default_factory=tuple)
    active: bool = False

    def items(self) -> list[MenuItem]:
        return [e for e in self.entries if isinstance(e, MenuItem)]

    def ids(self) -> list[str]:
        return [e.id for e in self.items()]

    def find(self, item_id: str) -> Optional[MenuItem]:
        for item in self.items():
            if item.id == item_id:
                return item
        return None
