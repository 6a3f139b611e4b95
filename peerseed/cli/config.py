"""CLI commands: config show, config set."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, fields

import click

from peerseed import config as config_mod
from peerseed.config import Config, load_config, write_toml
from peerseed.errors import ConfigError


@click.group("config")
def config_group() -> None:
    """Configuration management."""


@config_group.command("show")
def config_show() -> None:
    """Show current configuration."""
    config = load_config()
    cfg = asdict(config)
    for section_name, section in cfg.items():
        click.echo(f"[{section_name}]")
        for key, value in section.items():
            click.echo(f"  {key} = {value}")
        click.echo()


@config_group.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a configuration value (section.key = value).

    Example: peerseed config set chat.channel "#bitcoin07"
    """
    try:
        section, field_name = _split_key(key)
        default = getattr(getattr(Config(), section), field_name)
        coerced = _coerce_cli_value(value, default)
    except ConfigError as exc:
        click.echo(click.style(exc.format(), fg="red"), err=True)
        raise SystemExit(1) from exc

    config_path = config_mod.DEFAULT_CONFIG_PATH

    # Load existing TOML or create empty
    raw: dict[str, dict[str, object]] = {}
    if config_path.exists():
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)

    raw.setdefault(section, {})
    raw[section][field_name] = coerced

    config_path.parent.mkdir(parents=True, exist_ok=True)
    write_toml(config_path, raw)
    click.echo(f"Set {section}.{field_name} = {raw[section][field_name]}")


def _split_key(key: str) -> tuple[str, str]:
    """Split ``section.key`` and check both names exist."""
    if "." not in key:
        raise ConfigError(
            "key must be in 'section.key' format (e.g., chat.channel)"
        )
    section, field_name = key.split(".", 1)
    if section not in {f.name for f in fields(Config)}:
        raise ConfigError(f"unknown section {section!r}")
    section_cls = type(getattr(Config(), section))
    if field_name not in {f.name for f in fields(section_cls)}:
        raise ConfigError(f"unknown key {field_name!r} in [{section}]")
    return section, field_name


def _coerce_cli_value(value: str, default: object) -> object:
    """Coerce a CLI string to the type of the field's default."""
    if isinstance(default, list):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(default, bool):
        if value.lower() not in ("true", "false", "1", "0", "yes", "no"):
            raise ConfigError(f"expected true or false, got {value!r}")
        return value.lower() in ("true", "1", "yes")
    try:
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except ValueError as exc:
        raise ConfigError(
            f"expected a {type(default).__name__}, got {value!r}"
        ) from exc
    return value
