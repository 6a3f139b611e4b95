"""PeerSeed — bootstrap peer discovery over chat channels and DNS seeds."""

from __future__ import annotations

__version__ = "0.1.0"

from peerseed.codec import PeerAddress, decode, encode  # noqa: E402

__all__ = ["PeerAddress", "__version__", "decode", "encode"]
