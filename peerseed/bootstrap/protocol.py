"""Chat line protocol — the IRC (RFC 2812) subset used for discovery.

Only a handful of messages matter::

    WHO #channel                          member-enumeration request
    :srv 352 me #channel user host srv NICK H :0 real    RPL_WHOREPLY
    :srv 315 me #channel :End of WHO list               RPL_ENDOFWHO

plus registration (``NICK``/``USER``, ``001``) and keep-alive
(``PING``/``PONG``).  Lines are parsed into :class:`IrcMessage`;
anything unparseable yields ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass

# ─── Commands & reply numerics ─────────────────────────────

CMD_NICK = "NICK"
CMD_USER = "USER"
CMD_JOIN = "JOIN"
CMD_WHO = "WHO"
CMD_PING = "PING"
CMD_PONG = "PONG"
CMD_QUIT = "QUIT"
CMD_ERROR = "ERROR"

RPL_WELCOME = "001"
RPL_ENDOFWHO = "315"
RPL_WHOREPLY = "352"
ERR_NICKNAMEINUSE = "433"

WHOREPLY_CHANNEL_ARG = 1
WHOREPLY_NICK_ARG = 5

MAX_LINE_BYTES = 512
_FORBIDDEN = ("\r", "\n", "\0")


@dataclass(frozen=True)
class IrcMessage:
    """One parsed protocol line."""

    command: str
    args: tuple[str, ...] = ()
    prefix: str = ""

    def arg(self, index: int) -> str | None:
        """Return argument *index*, or ``None`` if absent."""
        if 0 <= index < len(self.args):
            return self.args[index]
        return None


def parse_line(line: str) -> IrcMessage | None:
    """Parse a raw protocol line (without the trailing CRLF).

    Returns ``None`` for blank or malformed lines.
    """
    line = line.rstrip("\r\n")
    if not line.strip():
        return None

    prefix = ""
    if line.startswith(":"):
        head, sep, line = line.partition(" ")
        if not sep:
            return None
        prefix = head[1:]

    trailing: str | None = None
    if " :" in line:
        line, _, trailing = line.partition(" :")
    elif line.startswith(":"):
        return None

    parts = line.split()
    if not parts:
        return None
    command = parts[0].upper()
    args = parts[1:]
    if trailing is not None:
        args.append(trailing)
    return IrcMessage(command=command, args=tuple(args), prefix=prefix)


def format_line(command: str, *params: str) -> str:
    """Serialize a command and its parameters (no CRLF).

    The last parameter is sent as a trailing argument when it is empty,
    contains a space, or starts with ``:``.

    Raises:
        ValueError: If any part contains CR, LF or NUL, or a middle
            parameter contains a space.
    """
    for part in (command, *params):
        if any(ch in part for ch in _FORBIDDEN):
            raise ValueError(f"illegal character in protocol field {part!r}")
    if not command or " " in command:
        raise ValueError(f"illegal command {command!r}")

    fields = [command]
    for i, param in enumerate(params):
        last = i == len(params) - 1
        if last and (not param or " " in param or param.startswith(":")):
            fields.append(":" + param)
        elif not param or " " in param or param.startswith(":"):
            raise ValueError(f"illegal middle parameter {param!r}")
        else:
            fields.append(param)
    return " ".join(fields)


def same_channel(a: str, b: str) -> bool:
    """Case-insensitive channel comparison."""
    return a.casefold() == b.casefold()
