"""PeerSeed CLI entry point.

Delegates to ``peerseed.cli`` which houses all Click commands.
Kept minimal so that ``python -m peerseed`` and the ``peerseed``
console-script entry point both resolve here.
"""

from __future__ import annotations

from peerseed.cli import cli


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
