"""TCP chat transport — a minimal IRC client connection.

Implements :class:`peerseed.types.ChatTransport` over a plain TCP
socket.  Connecting, registering and reading all happen on a daemon
reader thread, so :meth:`IrcTransport.connect` returns immediately and
the connection never keeps the host process alive.

Events are delivered to the subscribed
:class:`~peerseed.types.TransportListener` from the reader thread:

* ``on_registered()`` on ``001 RPL_WELCOME``
* ``on_message(msg)`` for every parsed line
* ``on_error(exc)`` on socket failure or a server ``ERROR`` line

``PING`` is answered with ``PONG`` internally.  A ``433`` nickname
collision before registration is retried with ``_`` appended, up to
``MAX_NICK_RETRIES`` times.  No reconnection is
attempted; a dead connection is reported once and stays closed.

Usage::

    transport = IrcTransport("irc.lfnet.org", 6667)
    transport.subscribe(listener)
    transport.connect("u88qSoM5z6w9QqB")
    ...
    transport.close()
"""

from __future__ import annotations

import contextlib
import socket
import threading

import structlog

from peerseed.bootstrap.protocol import (
    CMD_ERROR,
    CMD_JOIN,
    CMD_NICK,
    CMD_PING,
    CMD_PONG,
    CMD_QUIT,
    CMD_USER,
    ERR_NICKNAMEINUSE,
    MAX_LINE_BYTES,
    RPL_WELCOME,
    IrcMessage,
    format_line,
    parse_line,
)
from peerseed.errors import TransportError
from peerseed.types import TransportListener

logger = structlog.get_logger()

# ── Constants ───────────────────────────────────────────────────────────

DEFAULT_SERVER = "irc.lfnet.org"
DEFAULT_PORT = 6667
DEFAULT_CONNECT_TIMEOUT = 10.0
READ_TIMEOUT = 1.0  # recv timeout so close() is noticed promptly
RECV_SIZE = 4096
MAX_BUFFER = MAX_LINE_BYTES * 16
NICK_RETRY_SUFFIX = "_"
MAX_NICK_RETRIES = 3


class IrcTransport:
    """Chat-server connection driven by a daemon reader thread."""

    def __init__(
        self,
        server: str = DEFAULT_SERVER,
        port: int = DEFAULT_PORT,
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        realname: str = "peerseed",
        encoding: str = "utf-8",
    ) -> None:
        self._server = server
        self._port = port
        self._connect_timeout = connect_timeout
        self._realname = realname
        self._encoding = encoding
        self._listener: TransportListener | None = None
        self._sock: socket.socket | None = None
        self._send_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._closed = threading.Event()
        self._nickname = ""
        self._base_nickname = ""
        self._nick_retries = 0
        self._registered = False

    @property
    def server(self) -> tuple[str, int]:
        return (self._server, self._port)

    @property
    def nickname(self) -> str:
        """Nickname currently requested from the server."""
        return self._nickname

    @property
    def connected(self) -> bool:
        return self._sock is not None and not self._closed.is_set()

    def subscribe(self, listener: TransportListener) -> None:
        self._listener = listener

    def connect(self, nickname: str) -> None:
        """Start the reader thread, which connects and registers."""
        if self._thread is not None:
            return
        if self._closed.is_set():
            raise TransportError("transport already closed")
        self._nickname = nickname
        self._base_nickname = nickname
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name=f"irc-{self._server}",
        )
        self._thread.start()

    def join(self, channel: str) -> None:
        self.send(CMD_JOIN, channel)

    def send(self, command: str, *params: str) -> None:
        """Send one line.

        Raises:
            TransportError: If not connected, the line is malformed, or
                the socket write fails.
        """
        try:
            line = format_line(command, *params)
        except ValueError as exc:
            raise TransportError(str(exc)) from exc
        data = (line + "\r\n").encode(self._encoding)
        if len(data) > MAX_LINE_BYTES:
            raise TransportError(f"line exceeds {MAX_LINE_BYTES} bytes")
        sock = self._sock
        if sock is None or self._closed.is_set():
            raise TransportError("not connected")
        try:
            with self._send_lock:
                sock.sendall(data)
        except OSError as exc:
            raise TransportError(f"send failed: {exc}") from exc
        logger.debug("irc_sent", command=command)

    def close(self) -> None:
        """Send QUIT best-effort and tear the socket down.  Idempotent."""
        if self._closed.is_set():
            return
        sock = self._sock
        if sock is not None:
            with contextlib.suppress(TransportError):
                self.send(CMD_QUIT)
        self._closed.set()
        self._shutdown_socket()
        if (
            self._thread is not None
            and self._thread is not threading.current_thread()
            and self._thread.is_alive()
        ):
            self._thread.join(timeout=2.0)
        logger.info("irc_closed", server=self._server)

    # ── Reader thread ───────────────────────────────────────────────

    def _shutdown_socket(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            with contextlib.suppress(OSError):
                sock.shutdown(socket.SHUT_RDWR)
            with contextlib.suppress(OSError):
                sock.close()

    def _run(self) -> None:
        try:
            self._open()
            self._read_loop()
        except (OSError, TransportError) as exc:
            if not self._closed.is_set():
                logger.warning(
                    "irc_connection_failed",
                    server=self._server,
                    port=self._port,
                    error=str(exc),
                )
                self._report_error(
                    exc
                    if isinstance(exc, TransportError)
                    else TransportError(f"{self._server}:{self._port}: {exc}")
                )
        finally:
            self._shutdown_socket()

    def _open(self) -> None:
        sock = socket.create_connection(
            (self._server, self._port),
            timeout=self._connect_timeout,
        )
        sock.settimeout(READ_TIMEOUT)
        if self._closed.is_set():
            sock.close()
            return
        self._sock = sock
        logger.info("irc_connected", server=self._server, port=self._port)
        self.send(CMD_NICK, self._nickname)
        self.send(CMD_USER, self._nickname, "0", "*", self._realname)

    def _read_loop(self) -> None:
        buffer = b""
        while not self._closed.is_set():
            sock = self._sock
            if sock is None:
                return
            try:
                chunk = sock.recv(RECV_SIZE)
            except TimeoutError:
                continue
            if not chunk:
                raise TransportError("connection closed by server")
            buffer += chunk
            *lines, buffer = buffer.split(b"\n")
            if len(buffer) > MAX_BUFFER:
                raise TransportError("line too long")
            for raw in lines:
                message = parse_line(raw.decode(self._encoding, errors="replace"))
                if message is not None:
                    self._dispatch(message)

    def _dispatch(self, message: IrcMessage) -> None:
        if message.command == CMD_PING:
            self.send(CMD_PONG, *message.args[:1])
            return
        if message.command == CMD_ERROR:
            raise TransportError(f"server error: {message.arg(0) or ''}")
        if message.command == ERR_NICKNAMEINUSE and not self._registered:
            self._retry_nickname()
        if message.command == RPL_WELCOME:
            self._registered = True
            logger.info("irc_registered", nickname=self._nickname)
        listener = self._listener
        if listener is None:
            return
        if message.command == RPL_WELCOME:
            listener.on_registered()
        listener.on_message(message)

    def _retry_nickname(self) -> None:
        # A stale session may still hold our nickname; the suffixed one
        # no longer decodes as an address but lets registration finish.
        if self._nick_retries >= MAX_NICK_RETRIES:
            raise TransportError(f"nickname {self._base_nickname} in use")
        self._nick_retries += 1
        self._nickname = self._base_nickname + NICK_RETRY_SUFFIX * self._nick_retries
        logger.warning(
            "irc_nickname_in_use",
            nickname=self._base_nickname,
            retry=self._nickname,
        )
        self.send(CMD_NICK, self._nickname)

    def _report_error(self, error: Exception) -> None:
        listener = self._listener
        if listener is not None:
            listener.on_error(error)
