"""CLI commands: dns query/watch — DNS seed bootstrap."""

from __future__ import annotations

import click

from peerseed.bootstrap.resolver import ResolverBootstrap, query
from peerseed.cli._watch import echo_events, wait
from peerseed.config import load_config
from peerseed.errors import ResolutionError


@click.group(name="dns")
def dns_group() -> None:
    """Discover peers from DNS seed hostnames."""


@dns_group.command(name="query")
@click.argument("hostname")
@click.option("--port", type=int, default=None, help="Peer port (default: config).")
def query_cmd(hostname: str, port: int | None) -> None:
    """Resolve one seed HOSTNAME and print its addresses."""
    config = load_config()
    port = port or config.resolver.port
    try:
        addrs = query(hostname, port)
    except ResolutionError as exc:
        click.echo(click.style(exc.format(), fg="red"), err=True)
        raise SystemExit(1) from exc
    for ip in addrs:
        click.echo(f"{ip}:{port}")


@dns_group.command(name="watch")
@click.argument("hostnames", nargs=-1)
@click.option("--port", type=int, default=None, help="Peer port (default: config).")
@click.option(
    "--duration",
    type=float,
    default=30.0,
    show_default=True,
    help="Seconds to run (0 = until Ctrl-C).",
)
def watch_cmd(hostnames: tuple[str, ...], port: int | None, duration: float) -> None:
    """Resolve seed HOSTNAMES (default: config) and print discovery events."""
    config = load_config()
    seeds = list(hostnames) or config.resolver.hostnames
    boot = ResolverBootstrap(
        seeds,
        port or config.resolver.port,
        refresh_interval=config.resolver.refresh_interval,
        autostart=False,
    )
    echo_events(boot.events)
    click.echo(f"Resolving {len(seeds)} seed(s)...")
    boot.start()
    try:
        wait(duration)
    finally:
        boot.stop()
    for hostname, reason in boot.failures.items():
        click.echo(click.style("  ✗ ", fg="red") + f"{hostname}: {reason}")
    click.echo(f"Result: {len(boot.addresses)} address(es)")
