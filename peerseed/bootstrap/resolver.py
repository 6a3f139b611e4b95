"""DNS-seed bootstrap — resolve well-known hostnames to candidate peers.

Each seed hostname resolves to a list of IPv4 addresses.  The resolver
cannot learn ports, so every address is assumed to listen on the
network's standard port.

Hostnames resolve in parallel, each on its own daemon thread; results
are merged into a set union on a single executor, which publishes the
canonically ordered union through the same ``found`` / ``updated``
events as :class:`~peerseed.bootstrap.chat.ChatBootstrap`.  A hostname
that fails to resolve is logged and skipped without affecting the rest.

Usage::

    addrs = query("seed.bitcoin.sipa.be", 8333)    # ["1.2.3.4", ...]

    boot = ResolverBootstrap(DEFAULT_SEEDS, 8333, autostart=False)
    boot.events.found.subscribe(...)
    boot.start()
"""

from __future__ import annotations

import socket
import threading
from collections.abc import Sequence

import structlog

from peerseed.codec import PeerAddress, canonical_order
from peerseed.errors import ResolutionError
from peerseed.events import DiscoveryEvents
from peerseed.scheduler import SerialExecutor, start_timer
from peerseed.types import Executor, HostResolver, TimerFactory, TimerHandle

logger = structlog.get_logger()

# ── Constants ───────────────────────────────────────────────────────────

DEFAULT_PORT = 8333
DEFAULT_SEEDS: tuple[str, ...] = (
    "seed.bitcoin.sipa.be",
    "dnsseed.bluematt.me",
    "dnsseed.bitcoin.dashjr.org",
    "seed.bitcoinstats.com",
    "seed.bitnodes.io",
    "bitseed.xf2.org",
)


def query(hostname: str, port: int = DEFAULT_PORT) -> list[str]:
    """Resolve *hostname* to its IPv4 addresses.

    Addresses are de-duplicated, keeping the resolver's order.

    Raises:
        ResolutionError: If the lookup fails or returns nothing.
    """
    try:
        infos = socket.getaddrinfo(
            hostname,
            port,
            socket.AF_INET,
            socket.SOCK_STREAM,
        )
    except (OSError, UnicodeError) as exc:
        raise ResolutionError(hostname, str(exc)) from exc

    addrs: list[str] = []
    for info in infos:
        ip = str(info[4][0])
        if ip not in addrs:
            addrs.append(ip)
    if not addrs:
        raise ResolutionError(hostname, "no IPv4 addresses")
    return addrs


class ResolverBootstrap:
    """Resolves a fixed list of seed hostnames and unions the results.

    Args:
        hostnames: Seed hostnames, resolved in parallel.
        port: Port assumed for every resolved address.
        resolve: Resolution function; defaults to :func:`query`.
        executor: Serializes merges; defaults to a :class:`SerialExecutor`.
        timer_factory: Creates the refresh timer.
        refresh_interval: Re-resolve every hostname this often
            (seconds); ``0`` resolves once.
        parallel: Resolve each hostname on its own daemon thread.
            ``False`` resolves sequentially on the calling thread.
        autostart: Start resolving immediately.  Pass ``False`` to
            subscribe to events first and call :meth:`start` later.
    """

    def __init__(
        self,
        hostnames: Sequence[str],
        port: int = DEFAULT_PORT,
        *,
        resolve: HostResolver = query,
        executor: Executor | None = None,
        timer_factory: TimerFactory | None = None,
        refresh_interval: float = 0.0,
        parallel: bool = True,
        autostart: bool = True,
    ) -> None:
        self._hostnames = list(hostnames)
        self._port = port
        self._resolve = resolve
        self._executor: Executor = executor or SerialExecutor(name="dns-bootstrap")
        self._timer_factory: TimerFactory = timer_factory or start_timer
        self._refresh_interval = refresh_interval
        self._parallel = parallel

        self.events = DiscoveryEvents()

        self._known: set[PeerAddress] = set()
        self._current: list[PeerAddress] = []
        self._ever_found = False
        self._failures: dict[str, str] = {}
        self._timer: TimerHandle | None = None
        self._started = False
        self._stopped = False

        if autostart:
            self.start()

    @property
    def hostnames(self) -> list[str]:
        return list(self._hostnames)

    @property
    def port(self) -> int:
        return self._port

    @property
    def addresses(self) -> list[PeerAddress]:
        """Current union, in canonical order."""
        return list(self._current)

    @property
    def failures(self) -> dict[str, str]:
        """Last failure reason per hostname that did not resolve."""
        return dict(self._failures)

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        """Resolve every hostname, then arm the refresh timer if set."""
        if self._started or self._stopped:
            return
        self._started = True
        logger.info(
            "dns_bootstrap_starting",
            hostnames=len(self._hostnames),
            port=self._port,
        )
        self.refresh()
        if self._refresh_interval > 0:
            self._timer = self._timer_factory(self._refresh_interval, self.refresh)

    def refresh(self) -> None:
        """Launch one resolution per hostname."""
        if self._stopped:
            return
        for hostname in self._hostnames:
            if not self._parallel:
                self._resolve_one(hostname)
                continue
            thread = threading.Thread(
                target=self._resolve_one,
                args=(hostname,),
                daemon=True,
                name=f"dns-{hostname}",
            )
            thread.start()

    def stop(self) -> None:
        """Stop refreshing; no events fire after this returns.  Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self._executor.shutdown()
        logger.info("dns_bootstrap_stopped")

    # ── Internals ───────────────────────────────────────────────────

    def _resolve_one(self, hostname: str) -> None:
        try:
            ips = self._resolve(hostname, self._port)
        except ResolutionError as exc:
            self._executor.submit(self._record_failure, hostname, exc.reason)
            return
        except Exception as exc:
            # injected resolvers may raise anything
            logger.exception("dns_seed_resolver_failed", hostname=hostname)
            reason = str(exc) or type(exc).__name__
            self._executor.submit(self._record_failure, hostname, reason)
            return
        self._executor.submit(self._merge, hostname, ips)

    def _record_failure(self, hostname: str, reason: str) -> None:
        if self._stopped:
            return
        self._failures[hostname] = reason
        logger.warning("dns_seed_failed", hostname=hostname, error=reason)

    def _merge(self, hostname: str, ips: list[str]) -> None:
        """Fold one hostname's result into the union (executor thread)."""
        if self._stopped:
            return
        self._failures.pop(hostname, None)
        added = {PeerAddress(host=ip, port=self._port) for ip in ips} - self._known
        logger.debug(
            "dns_seed_resolved",
            hostname=hostname,
            count=len(ips),
            new=len(added),
        )
        if not added:
            return
        self._known |= added
        self._current = canonical_order(self._known)

        if not self._ever_found:
            self._ever_found = True
            logger.info("dns_bootstrap_found", count=len(self._current))
            self.events.found.emit(self._current)
        if self._stopped:
            return
        logger.info("dns_bootstrap_updated", count=len(self._current))
        self.events.updated.emit(self._current)
