"""Chat-channel bootstrap — discover peers from an IRC channel's members.

Every participant joins the same channel under a nickname that encodes
its own listening address (see :mod:`peerseed.codec`).  Listing the
channel's members therefore lists candidate peers.

Polling schedule::

    registered ──► JOIN + WHO ──► every 5 s: WHO
                                    │
              first non-empty list ─┘──► every 5 min: WHO

One enumeration cycle::

    query()                   pending = []          WHO #channel
    352 RPL_WHOREPLY (×N)     pending += decode(nick)
    315 RPL_ENDOFWHO          sort pending; publish if it differs
                              from current; pending = None

``pending is None`` is the in-flight guard: at most one cycle is open.
All state transitions run on one executor (a single daemon worker by
default), so transport callbacks and timer ticks never race.

Usage::

    boot = ChatBootstrap("#bitcoin00", "203.0.113.7", 8333)
    boot.events.found.subscribe(lambda addrs: ...)
    boot.events.updated.subscribe(lambda addrs: ...)
    ...
    boot.stop()
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import StrEnum

import structlog

from peerseed.bootstrap.protocol import (
    CMD_WHO,
    RPL_ENDOFWHO,
    RPL_WHOREPLY,
    WHOREPLY_CHANNEL_ARG,
    WHOREPLY_NICK_ARG,
    IrcMessage,
    same_channel,
)
from peerseed.bootstrap.transport import IrcTransport
from peerseed.codec import (
    PeerAddress,
    canonical_order,
    decode,
    encode,
    same_addresses,
)
from peerseed.errors import TransportError
from peerseed.events import DiscoveryEvents
from peerseed.scheduler import SerialExecutor, start_timer
from peerseed.types import ChatTransport, Executor, TimerFactory, TimerHandle

logger = structlog.get_logger()

# ── Constants ───────────────────────────────────────────────────────────

FAST_POLL_INTERVAL = 5.0  # seconds, until the first peers are found
SLOW_POLL_INTERVAL = 5 * 60.0  # seconds, afterwards


class BootstrapState(StrEnum):
    """Lifecycle of a :class:`ChatBootstrap`."""

    CONNECTING = "connecting"
    FAST_POLL = "fast_poll"
    SLOW_POLL = "slow_poll"
    STOPPED = "stopped"


class ChatBootstrap:
    """Polls a chat channel's member list for address nicknames.

    Args:
        channel: Channel to join, e.g. ``"#bitcoin00"``.
        local_host: Our own IPv4 address, announced as our nickname.
        local_port: Our own listening port.
        transport: Chat connection; defaults to an :class:`IrcTransport`
            to the well-known server.
        executor: Serializes state transitions; defaults to a
            :class:`SerialExecutor` daemon worker.
        timer_factory: Creates repeating timers; defaults to daemon
            :class:`~peerseed.scheduler.RepeatingTimer` instances.
        fast_interval: Poll interval before any peer is found.
        slow_interval: Poll interval once peers have been found.
        cycle_timeout: Abandon an enumeration cycle that has not
            completed after this many seconds (``0`` disables).
        clock: Monotonic time source.
        autostart: Connect immediately.  Pass ``False`` to subscribe to
            events first and call :meth:`start` later.

    Raises:
        InvalidAddress: If *local_host* / *local_port* is malformed.
    """

    def __init__(
        self,
        channel: str,
        local_host: str,
        local_port: int,
        *,
        transport: ChatTransport | None = None,
        executor: Executor | None = None,
        timer_factory: TimerFactory | None = None,
        fast_interval: float = FAST_POLL_INTERVAL,
        slow_interval: float = SLOW_POLL_INTERVAL,
        cycle_timeout: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        autostart: bool = True,
    ) -> None:
        self._nickname = encode(local_host, local_port)
        self._channel = channel
        self._transport: ChatTransport = transport or IrcTransport()
        self._executor: Executor = executor or SerialExecutor(
            name=f"chat-bootstrap-{channel}"
        )
        self._timer_factory: TimerFactory = timer_factory or start_timer
        self._fast_interval = fast_interval
        self._slow_interval = slow_interval
        self._cycle_timeout = cycle_timeout
        self._clock = clock

        self.events = DiscoveryEvents()

        self._current: list[PeerAddress] = []
        self._pending: list[PeerAddress] | None = None
        self._cycle_started = 0.0
        self._stale_cycles = 0
        self._ever_found = False
        self._timer: TimerHandle | None = None
        self._state = BootstrapState.CONNECTING
        self._started = False
        self._stopped = False

        self._transport.subscribe(self)
        if autostart:
            self.start()

    # ── Introspection ───────────────────────────────────────────────

    @property
    def nickname(self) -> str:
        """Our own address nickname."""
        return self._nickname

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def state(self) -> BootstrapState:
        if self._stopped:
            return BootstrapState.STOPPED
        return self._state

    @property
    def addresses(self) -> list[PeerAddress]:
        """Last published address list."""
        return list(self._current)

    @property
    def cycle_open(self) -> bool:
        return self._pending is not None

    @property
    def stopped(self) -> bool:
        return self._stopped

    # ── Lifecycle ───────────────────────────────────────────────────

    def start(self) -> None:
        """Open the transport connection."""
        if self._started or self._stopped:
            return
        self._started = True
        logger.info(
            "chat_bootstrap_starting",
            channel=self._channel,
            nickname=self._nickname,
        )
        try:
            self._transport.connect(self._nickname)
        except TransportError as exc:
            logger.warning(
                "chat_bootstrap_connect_failed",
                channel=self._channel,
                error=str(exc),
            )

    def stop(self) -> None:
        """Disconnect and cancel polling.  Idempotent.

        No ``found`` or ``updated`` event fires after this returns, even
        for replies already in flight.  Only the stopped flag is set on
        the calling thread; timer and cycle teardown run on the executor
        after any transition already in progress.
        """
        if self._stopped:
            return
        self._stopped = True
        if not self._executor.submit(self._teardown):
            self._teardown()
        try:
            self._transport.close()
        except TransportError as exc:
            logger.warning("chat_bootstrap_close_failed", error=str(exc))
        self._executor.shutdown()
        logger.info("chat_bootstrap_stopped", channel=self._channel)

    # ── TransportListener (called on the transport's thread) ────────

    def on_registered(self) -> None:
        self._executor.submit(self._handle_registered)

    def on_message(self, message: IrcMessage) -> None:
        if message.command in (RPL_WHOREPLY, RPL_ENDOFWHO):
            self._executor.submit(self._handle_message, message)

    def on_error(self, error: Exception) -> None:
        self._executor.submit(self._handle_error, error)

    # ── State transitions (run on the executor) ─────────────────────

    def query(self) -> None:
        """Open one enumeration cycle unless one is already in flight."""
        if self._stopped or self._pending is not None:
            return
        self._pending = []
        self._cycle_started = self._clock()
        try:
            self._transport.send(CMD_WHO, self._channel)
        except TransportError as exc:
            # Nothing was asked, so nothing will answer: leave the
            # cycle closed for the next tick to retry.
            self._pending = None
            logger.warning(
                "chat_bootstrap_query_failed",
                channel=self._channel,
                error=str(exc),
            )
            return
        logger.debug("chat_bootstrap_query_sent", channel=self._channel)

    def on_member_reply(self, nickname: str) -> None:
        """Collect one member of the open cycle."""
        if self._stopped or self._pending is None:
            return
        address = decode(nickname)
        if address is None:
            logger.debug("chat_bootstrap_nickname_skipped", nickname=nickname[:32])
            return
        self._pending.append(address)

    def on_enumeration_complete(self) -> None:
        """Close the open cycle and publish its result if it changed."""
        if self._stopped or self._pending is None:
            return
        pending = canonical_order(self._pending)
        self._pending = None

        if same_addresses(pending, self._current):
            return
        self._current = pending
        if not self._current:
            logger.info("chat_bootstrap_emptied", channel=self._channel)
            return

        if not self._ever_found:
            self._ever_found = True
            self._switch_to_slow_poll()
            logger.info(
                "chat_bootstrap_found",
                channel=self._channel,
                count=len(self._current),
            )
            self._emit_found()
        logger.info(
            "chat_bootstrap_updated",
            channel=self._channel,
            count=len(self._current),
        )
        self._emit_updated()

    def tick(self) -> None:
        """Timer tick: expire a stalled cycle if configured, then query."""
        if self._stopped:
            return
        if (
            self._pending is not None
            and self._cycle_timeout > 0
            and self._clock() - self._cycle_started >= self._cycle_timeout
        ):
            logger.warning(
                "chat_bootstrap_cycle_timeout",
                channel=self._channel,
                collected=len(self._pending),
            )
            self._pending = None
            self._stale_cycles += 1
        self.query()

    # ── Internals ───────────────────────────────────────────────────

    def _handle_registered(self) -> None:
        if self._stopped:
            return
        try:
            self._transport.join(self._channel)
        except TransportError as exc:
            logger.warning(
                "chat_bootstrap_join_failed",
                channel=self._channel,
                error=str(exc),
            )
        logger.info("chat_bootstrap_registered", channel=self._channel)
        self.query()
        if self._timer is None:
            self._state = BootstrapState.FAST_POLL
            self._arm_timer(self._fast_interval)

    def _handle_message(self, message: IrcMessage) -> None:
        if self._stopped:
            return
        if message.command == RPL_WHOREPLY:
            if self._stale_cycles:
                return
            channel = message.arg(WHOREPLY_CHANNEL_ARG)
            nickname = message.arg(WHOREPLY_NICK_ARG)
            if channel is None or nickname is None:
                return
            if not same_channel(channel, self._channel):
                return
            self.on_member_reply(nickname)
        elif message.command == RPL_ENDOFWHO:
            if self._stale_cycles:
                self._stale_cycles -= 1
                return
            self.on_enumeration_complete()

    def _handle_error(self, error: Exception) -> None:
        if self._stopped:
            return
        logger.warning(
            "chat_bootstrap_transport_error",
            channel=self._channel,
            error=str(error),
        )

    def _teardown(self) -> None:
        self._state = BootstrapState.STOPPED
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self._pending = None

    def _arm_timer(self, interval: float) -> None:
        self._timer = self._timer_factory(interval, self._on_timer)
        if self._stopped:
            # stop() raced the factory; the teardown may already have run
            self._timer.cancel()

    def _on_timer(self) -> None:
        # Timer thread: hand over to the executor
        self._executor.submit(self.tick)

    def _switch_to_slow_poll(self) -> None:
        old, self._timer = self._timer, None
        if old is not None:
            old.cancel()
        self._state = BootstrapState.SLOW_POLL
        self._arm_timer(self._slow_interval)

    def _emit_found(self) -> None:
        if not self._stopped:
            self.events.found.emit(self._current)

    def _emit_updated(self) -> None:
        if not self._stopped:
            self.events.updated.emit(self._current)
