"""Named-signal observer for view controllers.

Views subscribe to signals such as ``trigger_new_item`` (detail
``{"type": "accounts"}``) raised by global UI actions like a "New" shortcut.
Dispatch is synchronous and in subscription order.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

TRIGGER_NEW_ITEM = "trigger_new_item"

Listener = Callable[[dict[str, Any] | None], None]


class SignalBus:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def connect(self, signal: str, listener: Listener) -> Callable[[], None]:
        """Subscribe listener to signal. Returns a function that unsubscribes it."""
        self._listeners[signal].append(listener)
        return lambda: self.disconnect(signal, listener)

    def disconnect(self, signal: str, listener: Listener) -> None:
        listeners = self._listeners.get(signal, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, signal: str, detail: dict[str, Any] | None = None) -> int:
        """Call every listener of signal with detail. Returns how many ran."""
        listeners = list(self._listeners.get(signal, []))
        for listener in listeners:
            listener(detail)
        logger.debug("signal.emitted", signal=signal, listeners=len(listeners))
        return len(listeners)
