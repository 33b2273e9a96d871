"""Shared CLI plumbing for command modules.

Config resolution, connection provider creation and output helpers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from slowlog_tail.cli.output import get_formatter, write_output
from slowlog_tail.core.client import ConnectionProvider
from slowlog_tail.core.config import load_config, resolve_config

if TYPE_CHECKING:
    from collections.abc import Sequence

    import typer

    from slowlog_tail.core.config import ResolvedConfig
    from slowlog_tail.core.slowlog import SlowlogRecord

_CONNECTION_KEYS = ("host", "port", "db", "user", "password")


def get_resolved_config(ctx: typer.Context, **overrides: Any) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in _CONNECTION_KEYS:
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    for key, val in overrides.items():
        if val is not None:
            cli_overrides[key] = val

    return resolve_config(
        config,
        profile_name=obj.get("profile"),
        url=obj.get("url"),
        **cli_overrides,
    )


def get_provider(resolved: ResolvedConfig) -> ConnectionProvider:
    return ConnectionProvider(resolved)


def format_options(ctx: typer.Context, resolved: ResolvedConfig) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format"),
        "default_format": resolved.default_format,
        "compact": obj.get("compact", False),
        "width": obj.get("width", 60),
    }


def output_records(
    ctx: typer.Context,
    resolved: ResolvedConfig,
    records: Sequence[SlowlogRecord],
) -> None:
    formatter = get_formatter(**format_options(ctx, resolved))
    write_output(formatter, records)
