"""Configuration management for PeerSeed.

Loads settings from ~/.peerseed/config.toml with environment variable overrides.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from dataclasses import fields as dataclass_fields
from pathlib import Path
from typing import TypeVar

import structlog

from peerseed.bootstrap.resolver import DEFAULT_SEEDS

logger = structlog.get_logger()

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".peerseed"
DEFAULT_CONFIG_PATH = DEFAULT_DATA_DIR / "config.toml"


@dataclass(frozen=True)
class NodeConfig:
    """Local node identity: the address we announce."""

    data_dir: Path = DEFAULT_DATA_DIR
    local_host: str = "127.0.0.1"
    local_port: int = 8333
    log_level: str = "warning"


@dataclass(frozen=True)
class ChatConfig:
    """Chat-channel bootstrap settings."""

    server: str = "irc.lfnet.org"
    server_port: int = 6667
    channel: str = "#bitcoin00"
    fast_interval: float = 5.0  # seconds, until peers are found
    slow_interval: float = 300.0  # seconds, afterwards
    cycle_timeout: float = 0.0  # 0 = never abandon a WHO cycle
    connect_timeout: float = 10.0
    realname: str = "peerseed"


@dataclass(frozen=True)
class ResolverConfig:
    """DNS seed bootstrap settings."""

    hostnames: list[str] = field(default_factory=lambda: list(DEFAULT_SEEDS))
    port: int = 8333
    refresh_interval: float = 0.0  # 0 = resolve once


@dataclass(frozen=True)
class Config:
    """Root configuration container."""

    node: NodeConfig = field(default_factory=NodeConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)


def _env_override(section: str, key: str) -> str | None:
    """Check for PEERSEED_{SECTION}_{KEY} environment variable."""
    env_key = f"PEERSEED_{section.upper()}_{key.upper()}"
    return os.environ.get(env_key)


def _coerce(value: str, target_type: type) -> object:
    """Coerce a string value to the target type."""
    if target_type is bool:
        return value.lower() in ("true", "1", "yes")
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    if target_type is Path:
        return Path(value)
    if target_type is list:
        # Env var lists are comma-separated
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


# Configuration value constraints
_VALUE_CONSTRAINTS: dict[str, tuple[float, float]] = {
    "local_port": (1, 65535),
    "server_port": (1, 65535),
    "port": (1, 65535),
    "fast_interval": (0.5, 3600.0),
    "slow_interval": (1.0, 86400.0),
    "cycle_timeout": (0.0, 86400.0),
    "connect_timeout": (0.5, 300.0),
    "refresh_interval": (0.0, 86400.0),
}

# Allowed values for string enums
_ALLOWED_VALUES: dict[str, frozenset[str]] = {
    "log_level": frozenset({"debug", "info", "warning", "error", "critical"}),
}

_FIELD_TYPES: dict[str, type] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "Path": Path,
    "list[str]": list,
}


def _field_type(f: object, default: object) -> type:
    """Resolve a dataclass field's runtime type (annotations are strings)."""
    annotation = getattr(f, "type", None)
    if isinstance(annotation, type):
        return annotation
    if isinstance(annotation, str) and annotation in _FIELD_TYPES:
        return _FIELD_TYPES[annotation]
    return type(default)


def _validate_value(key: str, value: object) -> object:
    """Validate a config value against known constraints."""
    if (
        key in _VALUE_CONSTRAINTS
        and isinstance(value, (int, float))
        and not isinstance(value, bool)
    ):
        lo, hi = _VALUE_CONSTRAINTS[key]
        if not (lo <= value <= hi):
            logger.warning(
                "config_value_out_of_range",
                key=key,
                value=value,
                min=lo,
                max=hi,
            )
            # Clamp to valid range
            return type(value)(max(lo, min(hi, value)))
    if (
        key in _ALLOWED_VALUES
        and isinstance(value, str)
        and value.lower() not in _ALLOWED_VALUES[key]
    ):
        logger.warning(
            "config_invalid_value",
            key=key,
            value=value,
            allowed=sorted(_ALLOWED_VALUES[key]),
        )
        return None  # Will use default
    return value


def _as_str_list(key: str, value: object) -> list[str] | None:
    """Normalize a list field; a bare string is split like an env value."""
    if isinstance(value, str):
        return _coerce(value, list)  # type: ignore[return-value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    logger.warning(
        "config_invalid_value",
        key=key,
        value=value,
        expected="list of strings",
    )
    return None  # Will use default


T = TypeVar("T")


def _build_section(
    cls: type[T], toml_section: dict[str, object], section_name: str
) -> T:
    """Build a dataclass instance from TOML data + env overrides."""
    kwargs: dict[str, object] = {}
    for f in dataclass_fields(cls):  # type: ignore[arg-type]
        default = (
            f.default_factory()  # type: ignore[misc]
            if callable(f.default_factory)
            else f.default
        )
        target = _field_type(f, default)
        # TOML value
        raw = toml_section.get(f.name)
        # env override
        env_val = _env_override(section_name, f.name)
        if env_val is not None:
            try:
                raw = _coerce(env_val, target)
            except ValueError:
                logger.warning(
                    "config_env_unparseable",
                    section=section_name,
                    key=f.name,
                    value=env_val,
                )
                raw = None
        if raw is not None:
            if target is Path:
                raw = Path(str(raw))
            elif target is float and isinstance(raw, int):
                raw = float(raw)
            elif target is list:
                raw = _as_str_list(f.name, raw)
                if raw is None:
                    continue
            # Validate value against constraints
            validated = _validate_value(f.name, raw)
            if validated is not None:
                kwargs[f.name] = validated
    return cls(**kwargs)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from TOML file with environment variable overrides.

    Priority: env vars > config.toml > defaults.

    Args:
        config_path: Path to config file. Defaults to ~/.peerseed/config.toml.

    Returns:
        Populated Config instance.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    raw: dict[str, object] = {}

    if path.exists():
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        logger.info("config_loaded", path=str(path))
    else:
        logger.info("config_default", path=str(path), reason="file not found")

    node = _build_section(NodeConfig, raw.get("node", {}), "node")  # type: ignore[arg-type]
    chat = _build_section(ChatConfig, raw.get("chat", {}), "chat")  # type: ignore[arg-type]
    resolver = _build_section(ResolverConfig, raw.get("resolver", {}), "resolver")  # type: ignore[arg-type]

    return Config(node=node, chat=chat, resolver=resolver)


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Only writes sections/keys that differ from defaults to keep
    the config file clean and readable.

    Args:
        config: Config instance to persist.
        config_path: Path to config file. Defaults to ~/.peerseed/config.toml.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    sections: dict[str, dict[str, object]] = {}
    defaults = Config()

    section_map: list[tuple[str, object, object]] = [
        ("node", config.node, defaults.node),
        ("chat", config.chat, defaults.chat),
        ("resolver", config.resolver, defaults.resolver),
    ]

    for section_name, current_section, default_section in section_map:
        section_dict: dict[str, object] = {}
        for f in dataclass_fields(current_section):  # type: ignore[arg-type]
            cur_val = getattr(current_section, f.name)
            def_val = getattr(default_section, f.name)
            if cur_val != def_val:
                # Convert Path to string for TOML
                if isinstance(cur_val, Path):
                    section_dict[f.name] = str(cur_val)
                else:
                    section_dict[f.name] = cur_val
        if section_dict:
            sections[section_name] = section_dict

    write_toml(path, sections)
    logger.info("config_saved", path=str(path))


def write_toml(path: Path, sections: dict[str, dict[str, object]]) -> None:
    """Write a two-level TOML document (tomllib is read-only)."""
    lines: list[str] = ["# PeerSeed configuration", ""]
    for section_name, section_dict in sections.items():
        lines.append(f"[{section_name}]")
        for key, value in section_dict.items():
            lines.append(f"{key} = {_toml_value(value)}")
        lines.append("")
    path.write_text("\n".join(lines), encoding="utf-8")


def _toml_value(value: object) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
