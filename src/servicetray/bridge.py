"""Cross-thread channel from menu callbacks to the single consumer loop.

Tray libraries invoke menu callbacks on their own thread. Those callbacks
must never touch the menu or call a service; they only enqueue an
immutable message here. The consumer drains the queue once per turn of its
own loop and does all the mutation.
"""
from __future__ import annotations

import logging
import queue
import threading

from .models import AppMessage, Quit, Refresh, SelectItem, Toggle


log = logging.getLogger(__name__)

TOGGLE_ID = "toggle"
REFRESH_ID = "refresh"
QUIT_ID = "quit"
CONTROL_IDS: frozenset[str] = frozenset({TOGGLE_ID, REFRESH_ID, QUIT_ID})


def message_for(item_id: str) -> AppMessage:
    """Translate a clicked menu identifier into a message."""
    if item_id == TOGGLE_ID:
        return Toggle()
    if item_id == REFRESH_ID:
        return Refresh()
    if item_id == QUIT_ID:
        return Quit()
    return SelectItem(item_id)


class MessageSender:
    """Send-only handle given to callbacks; it cannot drain or close the bridge."""

    __slots__ = ("_bridge",)

    def __init__(self, bridge: "EventBridge") -> None:
        self._bridge = bridge

    def send(self, message: AppMessage) -> None:
        self._bridge.send(message)


class EventBridge:
    """Unbounded FIFO: any number of producers, exactly one consumer.

    Once `drain` has handed out a Quit, the bridge is closed: later sends are
    dropped and later drains return nothing.
    """

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[AppMessage]" = queue.SimpleQueue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def sender(self) -> MessageSender:
        return MessageSender(self)

    def send(self, message: AppMessage) -> None:
        if self._closed.is_set():
            log.debug("bridge closed, dropping %r", message)
            return
        self._queue.put(message)

    def drain(self) -> list[AppMessage]:
        """Return pending messages in send order without blocking.

        Consumer thread only.
        """
        out: list[AppMessage] = []
        if self._closed.is_set():
            return out
        while True:
            try:
                message = self._queue.get_nowait()
            except queue.Empty:
                break
            out.append(message)
            if isinstance(message, Quit):
                self._closed.set()
                break
        return out
