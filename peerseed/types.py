"""Shared Protocol types for PeerSeed.

Defines structural interfaces (PEP 544 Protocols) at the seams where a
bootstrap meets the outside world: the chat transport, the executor
that serializes its state transitions, timers, and hostname resolution.
Tests substitute fakes that satisfy these Protocols.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from peerseed.bootstrap.protocol import IrcMessage

# ── Chat transport ──────────────────────────────────────────────────


@runtime_checkable
class TransportListener(Protocol):
    """Receiver of raw transport events.

    Called from the transport's own thread; implementations must hand
    the event over to their executor instead of mutating state inline.
    """

    def on_registered(self) -> None:
        """The server accepted our nickname."""
        ...

    def on_message(self, message: IrcMessage) -> None:
        """A protocol line arrived."""
        ...

    def on_error(self, error: Exception) -> None:
        """The connection failed or the server reported an error."""
        ...


@runtime_checkable
class ChatTransport(Protocol):
    """Structural interface for a chat-protocol connection.

    :class:`peerseed.bootstrap.transport.IrcTransport` is the network
    implementation; tests use an in-memory fake.
    """

    def subscribe(self, listener: TransportListener) -> None:
        """Attach the listener that receives raw events."""
        ...

    def connect(self, nickname: str) -> None:
        """Start connecting under *nickname*.  Must not block."""
        ...

    def join(self, channel: str) -> None:
        """Join *channel*."""
        ...

    def send(self, command: str, *params: str) -> None:
        """Send one protocol command.  Raises ``TransportError``."""
        ...

    def close(self) -> None:
        """Disconnect.  Idempotent."""
        ...


# ── Scheduling ──────────────────────────────────────────────────────


class Executor(Protocol):
    """Serializes callables onto one logical thread of control."""

    def submit(  # noqa: D102
        self, fn: Callable[..., object], *args: object
    ) -> bool: ...

    def shutdown(self, timeout: float = 2.0) -> None: ...  # noqa: D102


class TimerHandle(Protocol):
    """A cancellable repeating timer that never blocks process exit."""

    @property
    def interval(self) -> float: ...  # noqa: D102

    def cancel(self) -> None: ...  # noqa: D102


class TimerFactory(Protocol):
    """Create and start a repeating timer."""

    def __call__(
        self, interval: float, callback: Callable[[], object]
    ) -> TimerHandle: ...  # noqa: D102


# ── Name resolution ─────────────────────────────────────────────────


class HostResolver(Protocol):
    """Resolve a hostname to IPv4 address strings.

    Raises ``ResolutionError`` on failure.
    """

    def __call__(self, hostname: str, port: int) -> list[str]: ...  # noqa: D102
