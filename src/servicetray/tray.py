from __future__ import annotations

import logging
import threading
from typing import Optional

import pystray
from PIL import Image, ImageDraw

from .bridge import EventBridge, MessageSender, message_for
from .loop import ServiceLoop
from .models import MenuItem, MenuModel
from .services import ServiceController
from .util import Settings


log = logging.getLogger(__name__)

COLOR_ACTIVE = (34, 197, 94, 255)
COLOR_INACTIVE = (120, 120, 120, 255)


def make_image(fill: tuple[int, int, int, int], letter: str = "") -> Image.Image:
    img = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    d = ImageDraw.Draw(img)
    d.ellipse((4, 4, 60, 60), fill=fill)
    if letter:
        d.text((26, 22), letter[:1].upper(), fill=(255, 255, 255, 255))
    return img


class TrayView:
    """pystray icon whose menu mirrors the latest MenuModel.

    Menu callbacks fire on pystray's thread, so they only send messages.
    `render` and `close` are called from the consumer loop.
    """

    def __init__(self, name: str, title: str, sender: MessageSender, icon_path: Optional[str] = None) -> None:
        self._sender = sender
        self._custom: Optional[Image.Image] = None
        if icon_path:
            try:
                self._custom = Image.open(icon_path).convert("RGBA")
            except OSError as e:
                log.warning("cannot load icon %s: %s", icon_path, e)
        self._images = {
            True: self._custom or make_image(COLOR_ACTIVE, title),
            False: self._custom or make_image(COLOR_INACTIVE, title),
        }
        self.icon = pystray.Icon(name, self._images[False], f"{title} Control", pystray.Menu())
        self._thread: Optional[threading.Thread] = None

    def _callback(self, item_id: str):
        def _cb(icon, item):
            self._sender.send(message_for(item_id))
        return _cb

    def _menu_items(self, model: MenuModel) -> list:
        items = []
        for entry in model.entries:
            if isinstance(entry, MenuItem):
                items.append(pystray.MenuItem(entry.label, self._callback(entry.id), enabled=entry.enabled))
            else:
                items.append(pystray.Menu.SEPARATOR)
        return items

    def render(self, model: MenuModel) -> None:
        # assigning menu/icon makes a running pystray backend redraw
        self.icon.menu = pystray.Menu(*self._menu_items(model))
        self.icon.icon = self._images[model.active]

    def start(self) -> None:
        self._thread = threading.Thread(target=self.icon.run, name="servicetray-icon", daemon=True)
        self._thread.start()

    def close(self) -> None:
        self.icon.stop()
        t = self._thread
        if t is not None and t is not threading.current_thread():
            t.join(timeout=2.0)


def run_tray(controller: ServiceController, settings: Settings) -> None:
    bridge = EventBridge()
    view = TrayView(controller.name, controller.title, bridge.sender(), icon_path=settings.icon_path)
    loop = ServiceLoop(controller, view, bridge)
    log.info("%s tray starting", controller.name)
    # first menu is built before the icon thread starts
    loop.run(poll_interval=settings.poll_interval, on_ready=view.start)
