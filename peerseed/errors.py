"""Structured error codes and the exception hierarchy.

Every exception raised by PeerSeed carries a catalog entry so the CLI
can print a stable code together with a resolution hint.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ErrorCategory(StrEnum):
    """Error category classification."""

    ADDRESS = "ADDRESS"
    TRANSPORT = "TRANSPORT"
    RESOLUTION = "RESOLUTION"
    CONFIG = "CONFIG"


@dataclass(frozen=True)
class ErrorInfo:
    """Structured error with code, message, and resolution."""

    code: str
    category: ErrorCategory
    message: str
    resolution: str

    def to_dict(self) -> dict[str, object]:
        return {
            "error": {
                "code": self.code,
                "category": self.category.value,
                "message": self.message,
                "resolution": self.resolution,
            },
        }

    def format(self) -> str:
        return f"Error [{self.code}]: {self.message}\nResolution: {self.resolution}"


# ── Pre-defined error catalog ─────────────────────────────────────

ERRORS: dict[str, ErrorInfo] = {
    "E001": ErrorInfo(
        code="PEERSEED_E001",
        category=ErrorCategory.ADDRESS,
        message="Invalid IPv4 host or port",
        resolution=(
            "Use a dotted-decimal IPv4 address (a.b.c.d, each 0-255)"
            " and a port between 0 and 65535"
        ),
    ),
    "E002": ErrorInfo(
        code="PEERSEED_E002",
        category=ErrorCategory.TRANSPORT,
        message="Chat server connection failed",
        resolution=(
            "Check network connectivity and the [chat] server settings;"
            " discovery keeps polling on its timer"
        ),
    ),
    "E003": ErrorInfo(
        code="PEERSEED_E003",
        category=ErrorCategory.RESOLUTION,
        message="Hostname could not be resolved",
        resolution="Check the hostname spelling and your DNS configuration",
    ),
    "E004": ErrorInfo(
        code="PEERSEED_E004",
        category=ErrorCategory.CONFIG,
        message="Invalid configuration value",
        resolution=(
            "Check config.toml for valid values. Run 'peerseed config show'"
            " to review."
        ),
    ),
}


def get_error(code: str) -> ErrorInfo | None:
    """Look up an error by short code (e.g. 'E001')."""
    return ERRORS.get(code)


def format_error(code: str) -> str:
    """Format an error message by code."""
    err = ERRORS.get(code)
    if err is None:
        return f"Unknown error: {code}"
    return err.format()


# ── Exceptions ────────────────────────────────────────────────────


class PeerSeedError(Exception):
    """Base class for all PeerSeed exceptions."""

    error_code = ""

    @property
    def info(self) -> ErrorInfo | None:
        """Catalog entry for this exception type."""
        return get_error(self.error_code)

    def format(self) -> str:
        """Render the catalog entry followed by the specific detail."""
        info = self.info
        if info is None:
            return str(self)
        return f"{info.format()}\nDetail: {self}"


class InvalidAddress(PeerSeedError, ValueError):
    """A host/port pair cannot be encoded as an address nickname."""

    error_code = "E001"


class TransportError(PeerSeedError, ConnectionError):
    """Connection-level failure talking to the chat server."""

    error_code = "E002"


class ResolutionError(PeerSeedError):
    """A hostname failed to resolve."""

    error_code = "E003"

    def __init__(self, hostname: str, reason: str = "") -> None:
        self.hostname = hostname
        self.reason = reason
        detail = f"{hostname}: {reason}" if reason else hostname
        super().__init__(detail)


class ConfigError(PeerSeedError, ValueError):
    """Malformed configuration input."""

    error_code = "E004"
