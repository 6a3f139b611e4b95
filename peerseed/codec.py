"""Address nicknames — pack an IPv4 endpoint into a chat display name.

A peer announces itself in a chat channel by picking a nickname that
encodes its own listening address::

    "u" + Base58Check(octet0 octet1 octet2 octet3 port_hi port_lo)

Base58Check appends a 4-byte double-SHA256 checksum, so a corrupted or
foreign nickname fails to decode instead of producing a bogus address.

Usage::

    nick = encode("127.0.0.1", 8334)     # "u88qSoM5z6w9QqB"
    addr = decode(nick)                  # PeerAddress("127.0.0.1", 8334)
    decode("alice")                      # None
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import base58

from peerseed.errors import InvalidAddress

# ── Constants ───────────────────────────────────────────────────────────

NICKNAME_PREFIX = "u"
PAYLOAD_SIZE = 6  # 4 host octets + 2 port bytes
MAX_PORT = 0xFFFF


@dataclass(frozen=True)
class PeerAddress:
    """An IPv4 endpoint announced by a peer."""

    host: str
    port: int

    @property
    def sort_key(self) -> tuple[str, int]:
        """Canonical ordering key: dotted-decimal string, then port."""
        return (self.host, self.port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def parse_host(host: str) -> bytes:
    """Parse a dotted-decimal IPv4 string into its 4 raw octets.

    Raises:
        InvalidAddress: If *host* is not exactly four decimal octets
            each in ``0..255``.
    """
    if not isinstance(host, str):
        raise InvalidAddress(f"host must be a string, got {type(host).__name__}")
    groups = host.split(".")
    if len(groups) != 4:
        raise InvalidAddress(f"host {host!r} does not have 4 octets")
    octets: list[int] = []
    for group in groups:
        if not group or not (group.isascii() and group.isdigit()):
            raise InvalidAddress(f"host {host!r} has a non-numeric octet")
        value = int(group)
        if value > 255:
            raise InvalidAddress(f"host {host!r} has an octet above 255")
        octets.append(value)
    return bytes(octets)


def _check_port(port: int) -> int:
    # bool is an int subclass; True is not a port
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidAddress(f"port must be an integer, got {port!r}")
    if not 0 <= port <= MAX_PORT:
        raise InvalidAddress(f"port {port} outside 0..{MAX_PORT}")
    return port


def encode(host: str, port: int) -> str:
    """Encode an IPv4 endpoint as an address nickname.

    Args:
        host: Dotted-decimal IPv4 address.
        port: TCP port, ``0..65535``.

    Returns:
        The nickname, ``"u"`` followed by the Base58Check payload.

    Raises:
        InvalidAddress: If *host* or *port* is malformed.
    """
    payload = parse_host(host) + _check_port(port).to_bytes(2, "big")
    return NICKNAME_PREFIX + base58.b58encode_check(payload).decode("ascii")


def decode(nickname: str) -> PeerAddress | None:
    """Decode an address nickname.

    Never raises: anything that is not a well-formed address nickname
    (wrong prefix, bad alphabet, checksum mismatch, wrong payload
    length) yields ``None``.
    """
    if not isinstance(nickname, str) or not nickname.startswith(NICKNAME_PREFIX):
        return None
    body = nickname[len(NICKNAME_PREFIX) :]
    # base58 strips trailing whitespace itself; refuse it up front
    if not (body.isascii() and body.isalnum()):
        return None
    try:
        payload = base58.b58decode_check(body)
    except ValueError:
        return None
    if len(payload) != PAYLOAD_SIZE:
        return None
    host = ".".join(str(octet) for octet in payload[:4])
    return PeerAddress(host=host, port=int.from_bytes(payload[4:6], "big"))


def canonical_order(addresses: Iterable[PeerAddress]) -> list[PeerAddress]:
    """Sort addresses by host string, then ascending port.

    Duplicates are kept; they end up adjacent.
    """
    return sorted(addresses, key=lambda a: a.sort_key)


def same_addresses(a: list[PeerAddress], b: list[PeerAddress]) -> bool:
    """Return ``True`` if two canonically ordered lists are pairwise equal."""
    if len(a) != len(b):
        return False
    return all(x == y for x, y in zip(a, b, strict=True))
