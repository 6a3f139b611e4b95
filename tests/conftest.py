"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from peerseed.bootstrap.protocol import (
    RPL_ENDOFWHO,
    RPL_WELCOME,
    RPL_WHOREPLY,
    IrcMessage,
)
from peerseed.errors import TransportError
from peerseed.types import TransportListener


class FakeTransport:
    """In-memory ChatTransport that records what the bootstrap sends."""

    def __init__(self) -> None:
        self.listener: TransportListener | None = None
        self.nickname: str | None = None
        self.sent: list[tuple[str, ...]] = []
        self.closed = False
        self.fail_send = False

    # ChatTransport
    def subscribe(self, listener: TransportListener) -> None:
        self.listener = listener

    def connect(self, nickname: str) -> None:
        self.nickname = nickname

    def join(self, channel: str) -> None:
        self.send("JOIN", channel)

    def send(self, command: str, *params: str) -> None:
        if self.fail_send or self.closed:
            raise TransportError("not connected")
        self.sent.append((command, *params))

    def close(self) -> None:
        self.closed = True

    # Server side
    def register(self) -> None:
        assert self.listener is not None
        self.listener.on_registered()
        self.listener.on_message(
            IrcMessage(RPL_WELCOME, (self.nickname or "", "Welcome"), "srv")
        )

    def who_reply(self, nickname: str, channel: str = "#test") -> None:
        assert self.listener is not None
        self.listener.on_message(
            IrcMessage(
                RPL_WHOREPLY,
                ("me", channel, "user", "host", "srv", nickname, "H", "0 real"),
                "srv",
            )
        )

    def end_of_who(self, channel: str = "#test") -> None:
        assert self.listener is not None
        self.listener.on_message(
            IrcMessage(RPL_ENDOFWHO, ("me", channel, "End of WHO list"), "srv")
        )

    def error(self, message: str = "connection reset") -> None:
        assert self.listener is not None
        self.listener.on_error(TransportError(message))

    def who_count(self) -> int:
        return sum(1 for cmd in self.sent if cmd[0] == "WHO")


class FakeTimer:
    """A repeating timer that only fires when told to."""

    def __init__(self, interval: float, callback: Callable[[], object]) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


class FakeTimerFactory:
    """Timer factory recording every timer it creates."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, callback: Callable[[], object]) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]


class Recorder:
    """Collects address lists delivered by an event stream."""

    def __init__(self) -> None:
        self.calls: list[list[object]] = []

    def __call__(self, addresses: list[object]) -> None:
        self.calls.append(addresses)


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory for tests."""
    data_dir = tmp_path / ".peerseed"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def record() -> Callable[[object], tuple[Recorder, Recorder]]:
    """Subscribe recorders to a bootstrap's ``found`` and ``updated`` streams."""

    def attach(events: object) -> tuple[Recorder, Recorder]:
        found, updated = Recorder(), Recorder()
        events.found.subscribe(found)  # type: ignore[attr-defined]
        events.updated.subscribe(updated)  # type: ignore[attr-defined]
        return found, updated

    return attach
