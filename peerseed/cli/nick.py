"""CLI commands: nick encode/decode — address nicknames."""

from __future__ import annotations

import click

from peerseed.codec import decode, encode
from peerseed.errors import InvalidAddress


@click.group(name="nick")
def nick_group() -> None:
    """Convert between addresses and chat nicknames."""


@nick_group.command(name="encode")
@click.argument("host")
@click.argument("port", type=int)
def encode_cmd(host: str, port: int) -> None:
    """Print the nickname announcing HOST:PORT.

    Example: peerseed nick encode 127.0.0.1 8334
    """
    try:
        click.echo(encode(host, port))
    except InvalidAddress as exc:
        click.echo(click.style(exc.format(), fg="red"), err=True)
        raise SystemExit(1) from exc


@nick_group.command(name="decode")
@click.argument("nickname")
def decode_cmd(nickname: str) -> None:
    """Print the address announced by NICKNAME."""
    address = decode(nickname)
    if address is None:
        click.echo(
            click.style("Error: ", fg="red") + "not a valid address nickname",
            err=True,
        )
        raise SystemExit(1)
    click.echo(str(address))
