"""Tests for the found/updated event streams."""

from __future__ import annotations

import pytest

from peerseed.codec import PeerAddress
from peerseed.events import FOUND, UPDATED, DiscoveryEvents, EventStream

ADDRS = [PeerAddress("1.2.3.4", 8333)]


class TestEventStream:
    def test_emit_reaches_listeners_in_order(self) -> None:
        stream = EventStream("found")
        seen: list[str] = []
        stream.subscribe(lambda addrs: seen.append("a"))
        stream.subscribe(lambda addrs: seen.append("b"))
        stream.emit(ADDRS)
        assert seen == ["a", "b"]

    def test_unsubscribe(self) -> None:
        stream = EventStream("found")
        seen: list[list[PeerAddress]] = []
        unsubscribe = stream.subscribe(seen.append)
        unsubscribe()
        unsubscribe()  # second call is harmless
        stream.emit(ADDRS)
        assert seen == []
        assert stream.listener_count == 0

    def test_listeners_get_copies(self) -> None:
        stream = EventStream("updated")
        first: list[list[PeerAddress]] = []
        second: list[list[PeerAddress]] = []
        stream.subscribe(first.append)
        stream.subscribe(second.append)
        source = list(ADDRS)
        stream.emit(source)
        first[0].clear()
        assert second[0] == ADDRS
        assert source == ADDRS

    def test_raising_listener_is_isolated(self) -> None:
        stream = EventStream("found")
        seen: list[list[PeerAddress]] = []

        def bad(addrs: list[PeerAddress]) -> None:
            raise ValueError("boom")

        stream.subscribe(bad)
        stream.subscribe(seen.append)
        stream.emit(ADDRS)  # should not raise
        assert seen == [ADDRS]

    def test_unsubscribe_during_emit(self) -> None:
        stream = EventStream("found")
        seen: list[str] = []
        handles: list[object] = []

        def once(addrs: list[PeerAddress]) -> None:
            seen.append("once")
            handles[0]()  # type: ignore[operator]

        handles.append(stream.subscribe(once))
        stream.emit(ADDRS)
        stream.emit(ADDRS)
        assert seen == ["once"]


class TestDiscoveryEvents:
    def test_named_streams(self) -> None:
        events = DiscoveryEvents()
        assert events.found.name == FOUND
        assert events.updated.name == UPDATED
        assert events.stream("found") is events.found
        assert events.stream("updated") is events.updated

    def test_unknown_stream(self) -> None:
        with pytest.raises(KeyError):
            DiscoveryEvents().stream("lost")

    def test_streams_independent(self) -> None:
        events = DiscoveryEvents()
        seen: list[list[PeerAddress]] = []
        events.updated.subscribe(seen.append)
        events.found.emit(ADDRS)
        assert seen == []
