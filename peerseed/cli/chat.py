"""CLI commands: chat watch — chat-channel bootstrap."""

from __future__ import annotations

import click

from peerseed.bootstrap.chat import ChatBootstrap
from peerseed.bootstrap.transport import IrcTransport
from peerseed.cli._watch import echo_events, wait
from peerseed.config import load_config
from peerseed.errors import InvalidAddress


@click.group(name="chat")
def chat_group() -> None:
    """Discover peers announced in a chat channel."""


@chat_group.command(name="watch")
@click.option("--channel", default=None, help="Channel to join (default: config).")
@click.option("--host", default=None, help="Our IPv4 address to announce.")
@click.option("--port", type=int, default=None, help="Our port to announce.")
@click.option(
    "--duration",
    type=float,
    default=60.0,
    show_default=True,
    help="Seconds to run (0 = until Ctrl-C).",
)
def watch_cmd(
    channel: str | None,
    host: str | None,
    port: int | None,
    duration: float,
) -> None:
    """Join a channel, announce ourselves, and print discovery events."""
    config = load_config()
    chat = config.chat
    transport = IrcTransport(
        chat.server,
        chat.server_port,
        connect_timeout=chat.connect_timeout,
        realname=chat.realname,
    )
    try:
        boot = ChatBootstrap(
            channel or chat.channel,
            host or config.node.local_host,
            port if port is not None else config.node.local_port,
            transport=transport,
            fast_interval=chat.fast_interval,
            slow_interval=chat.slow_interval,
            cycle_timeout=chat.cycle_timeout,
            autostart=False,
        )
    except InvalidAddress as exc:
        click.echo(click.style(exc.format(), fg="red"), err=True)
        raise SystemExit(1) from exc

    echo_events(boot.events)
    click.echo(
        f"Joining {boot.channel} on {chat.server}:{chat.server_port}"
        f" as {boot.nickname}..."
    )
    boot.start()
    try:
        wait(duration)
    finally:
        boot.stop()
    click.echo(f"Result: {len(boot.addresses)} address(es)")
