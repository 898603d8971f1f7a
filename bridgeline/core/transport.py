"""Transport interface.

The bridge only ever talks to this small contract: post a string, and get
called back when a string arrives. Whether the other end is a browser
host, a socket or a list in memory is invisible to the protocol.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable, List

MessageHandler = Callable[[str], None]


class Transport(ABC):
    """Minimal contract for a single-channel string transport."""

    @abstractmethod
    def post_message(self, raw: str) -> None:
        """Deliver a JSON string to the remote peer."""

    @abstractmethod
    def add_message_handler(self, handler: MessageHandler) -> None:
        """Register a callback for inbound JSON strings."""

    @abstractmethod
    def remove_message_handler(self, handler: MessageHandler) -> None:
        """Unregister a callback; unknown handlers are ignored."""

    @abstractmethod
    def dispose(self) -> None:
        """Release whatever the transport holds."""


class InMemoryTransport(Transport):
    """
    Test double that keeps every posted string.

    emit() plays the role of the remote peer and delivers synchronously on
    the calling thread.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handlers: List[MessageHandler] = []
        self._sent: List[str] = []
        self.disposed = False

    @property
    def sent_messages(self) -> List[str]:
        with self._lock:
            return list(self._sent)

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def post_message(self, raw: str) -> None:
        with self._lock:
            self._sent.append(raw)

    def add_message_handler(self, handler: MessageHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def remove_message_handler(self, handler: MessageHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def emit(self, raw: str) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            handler(raw)

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()

    def dispose(self) -> None:
        with self._lock:
            self._handlers.clear()
        self.disposed = True
