"""Shared helpers for the ``watch`` commands."""

from __future__ import annotations

import threading

import click

from peerseed.codec import PeerAddress
from peerseed.events import DiscoveryEvents


def echo_events(events: DiscoveryEvents) -> None:
    """Print every ``found`` / ``updated`` notification."""

    def on_found(addresses: list[PeerAddress]) -> None:
        click.echo(click.style("Found: ", fg="green") + _format(addresses))

    def on_updated(addresses: list[PeerAddress]) -> None:
        click.echo(click.style("Updated: ", fg="cyan") + _format(addresses))

    events.found.subscribe(on_found)
    events.updated.subscribe(on_updated)


def wait(duration: float) -> None:
    """Block for *duration* seconds (forever if 0) or until Ctrl-C."""
    done = threading.Event()
    try:
        done.wait(duration if duration > 0 else None)
    except KeyboardInterrupt:
        click.echo()


def _format(addresses: list[PeerAddress]) -> str:
    return f"{len(addresses)} peer(s) " + ", ".join(str(a) for a in addresses)
