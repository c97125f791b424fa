"""Minimal observer signal used for contact, change and completion events."""

from __future__ import annotations

import logging
from typing import Any, Callable

log = logging.getLogger(__name__)


class Connection:
    """Handle returned by :meth:`Signal.connect`."""

    def __init__(self, signal: Signal, callback: Callable[..., Any]) -> None:
        self._signal: Signal | None = signal
        self.callback = callback

    @property
    def connected(self) -> bool:
        return self._signal is not None

    def disconnect(self) -> None:
        if self._signal is not None:
            self._signal._remove(self)
            self._signal = None


class Signal:
    """Ordered list of callbacks fired with the same arguments.

    A callback that raises is logged and the remaining callbacks still run.
    Callbacks connected while firing run from the next fire on; callbacks
    disconnected while firing are skipped at once.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._connections: list[Connection] = []

    def __len__(self) -> int:
        return len(self._connections)

    def connect(self, callback: Callable[..., Any]) -> Connection:
        conn = Connection(self, callback)
        self._connections.append(conn)
        return conn

    def _remove(self, conn: Connection) -> None:
        try:
            self._connections.remove(conn)
        except ValueError:
            pass

    def disconnect_all(self) -> None:
        for conn in list(self._connections):
            conn.disconnect()

    def fire(self, *args: Any) -> None:
        for conn in list(self._connections):
            if not conn.connected:
                continue
            try:
                conn.callback(*args)
            except Exception:
                log.exception("Error in %s signal handler", self.name or "anonymous")
