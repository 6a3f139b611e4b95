"""PeerSeed CLI — Click command groups and sub-commands.

- ``nick`` — ``nick encode``, ``nick decode`` (address nicknames)
- ``dns`` — ``dns query``, ``dns watch`` (DNS seed bootstrap)
- ``chat`` — ``chat watch`` (chat-channel bootstrap)
- ``config`` — ``config show``, ``config set``
"""

from __future__ import annotations

import logging

import click
import structlog

from peerseed import __version__
from peerseed.config import load_config


def configure_logging(level: str = "info") -> None:
    """Configure structlog once at CLI entry."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


@click.group()
@click.version_option(version=__version__, prog_name="peerseed")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error", "critical"]),
    default=None,
    help="Minimum level of log lines to print (default: config node.log_level).",
)
def cli(log_level: str | None) -> None:
    """PeerSeed — bootstrap P2P peer discovery via chat channels and DNS seeds."""
    if log_level is None:
        configure_logging("warning")
        log_level = load_config().node.log_level
    configure_logging(log_level)


# Register sub-command modules
from peerseed.cli.chat import chat_group  # noqa: E402
from peerseed.cli.config import config_group  # noqa: E402
from peerseed.cli.dns import dns_group  # noqa: E402
from peerseed.cli.nick import nick_group  # noqa: E402

cli.add_command(nick_group)
cli.add_command(dns_group)
cli.add_command(chat_group)
cli.add_command(config_group)
