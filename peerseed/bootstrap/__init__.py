"""Bootstrap channels: chat-channel polling and DNS seed resolution."""

from __future__ import annotations

from peerseed.bootstrap.chat import BootstrapState, ChatBootstrap
from peerseed.bootstrap.resolver import ResolverBootstrap, query

__all__ = ["BootstrapState", "ChatBootstrap", "ResolverBootstrap", "query"]
