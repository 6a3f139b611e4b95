"""Discovery events — the ``found`` / ``updated`` publishing interface.

Both bootstrap channels publish through a :class:`DiscoveryEvents`
instance with two named streams:

* ``found`` fires once per bootstrap lifetime, the first time a
  non-empty address list is obtained.
* ``updated`` fires every time the published list changes, including
  the first time.

Listener exceptions are logged and absorbed so a faulty subscriber can
never break the bootstrap that is emitting.

Usage::

    events = DiscoveryEvents()
    unsubscribe = events.found.subscribe(lambda addrs: print(addrs))
    events.found.emit([PeerAddress("1.2.3.4", 8333)])
    unsubscribe()
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import structlog

from peerseed.codec import PeerAddress

logger = structlog.get_logger()

Listener = Callable[[list[PeerAddress]], None]

FOUND = "found"
UPDATED = "updated"


class EventStream:
    """A named stream of address-list notifications."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* and return a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def emit(self, addresses: list[PeerAddress]) -> None:
        """Deliver a copy of *addresses* to every listener, in order."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(list(addresses))
            except Exception:
                logger.exception("event_listener_failed", stream=self._name)


class DiscoveryEvents:
    """The pair of streams every bootstrap publishes on."""

    def __init__(self) -> None:
        self.found = EventStream(FOUND)
        self.updated = EventStream(UPDATED)

    def stream(self, name: str) -> EventStream:
        """Look up a stream by name (``"found"`` or ``"updated"``)."""
        if name == FOUND:
            return self.found
        if name == UPDATED:
            return self.updated
        raise KeyError(name)
