from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Protocol

from .bridge import EventBridge
from .clipboard import copy_to_clipboard
from .errors import ServiceTrayError
from .menu import peer_ip, project, selectable
from .models import AppMessage, MenuModel, Quit, Refresh, SelectItem, Toggle
from .services import ServiceController, TailscaleMesh


log = logging.getLogger(__name__)


class View(Protocol):
    def render(self, model: MenuModel) -> None: ...

    def close(self) -> None: ...


class ServiceLoop:
    """Single consumer of the event bridge.

    Owns the view and the controller; nothing else may mutate them. Call
    `tick` once per turn of the host's scheduler (a Textual timer, or `run`
    for a plain polling loop).
    """

    def __init__(
        self,
        controller: ServiceController,
        view: View,
        bridge: EventBridge,
        clipboard: Callable[[str], Optional[str]] = copy_to_clipboard,
    ) -> None:
        self.controller = controller
        self.view = view
        self.bridge = bridge
        self._clipboard = clipboard
        self.model: MenuModel = MenuModel()
        self.running = True

    def rebuild(self) -> MenuModel:
        enabled, detail = self.controller.snapshot()
        self.model = project(enabled, detail, title=self.controller.title)
        self.view.render(self.model)
        return self.model

    def tick(self) -> bool:
        """Handle everything queued since the last tick. False once stopped."""
        if not self.running:
            return False
        for message in self.bridge.drain():
            try:
                self.handle(message)
            except Exception:
                # the rest of the batch, Quit included, must still be handled
                log.exception("%s: failed to handle %r", self.controller.name, message)
            if not self.running:
                break
        return self.running

    def handle(self, message: AppMessage) -> None:
        if isinstance(message, Refresh):
            self.rebuild()
        elif isinstance(message, Toggle):
            try:
                self.controller.toggle()
            except ServiceTrayError as e:
                log.error("%s: toggle failed: %s", self.controller.name, e)
            self.rebuild()
        elif isinstance(message, SelectItem):
            self._select(message.identifier)
        elif isinstance(message, Quit):
            log.info("quitting")
            self.stop()

    def _select(self, identifier: str) -> None:
        if selectable(self.model, identifier) is None:
            log.debug("ignoring selection of %r", identifier)
            return
        if not isinstance(self.controller, TailscaleMesh):
            log.debug("%s: nothing to do for %r", self.controller.name, identifier)
            return
        ip = peer_ip(identifier)
        tool = self._clipboard(ip)
        if tool:
            log.info("copied %s to clipboard (%s)", ip, tool)
        else:
            log.warning("failed to copy %s to clipboard", ip)

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.view.close()

    def run(self, poll_interval: float = 0.1, on_ready: Optional[Callable[[], None]] = None) -> None:
        self.rebuild()
        if on_ready is not None:
            on_ready()
        while self.tick():
            time.sleep(poll_interval)
