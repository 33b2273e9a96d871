from __future__ import annotations

from typing import Annotated

import structlog
import typer

from slowlog_tail.cli.commands._shared import (
    get_provider,
    get_resolved_config,
    output_records,
)
from slowlog_tail.core.exit_codes import ExitCode
from slowlog_tail.core.follow import FollowConfig, FollowSummary, follow, read_once


def get_command(
    ctx: typer.Context,
    length: Annotated[
        int | None,
        typer.Option("--length", "-l", help="Max entries fetched per poll"),
    ] = None,
    follow_mode: Annotated[
        bool,
        typer.Option("--follow", "-F", help="Keep polling and print new entries"),
    ] = False,
    interval: Annotated[
        int | None,
        typer.Option("--interval", "-i", help="Polling interval in seconds"),
    ] = None,
    duration: Annotated[
        int,
        typer.Option(
            "--duration", "-D", help="Total follow duration in seconds (0 = indefinite)"
        ),
    ] = 0,
    newest_first: Annotated[
        bool,
        typer.Option(
            "--newest-first", help="In follow mode, print each batch newest first"
        ),
    ] = False,
    max_connect_attempts: Annotated[
        int,
        typer.Option(
            "--max-connect-attempts",
            help="Give up after N failed initial connections (0 = retry forever)",
        ),
    ] = 0,
) -> None:
    """Print the server slowlog, newest first; with --follow, print new entries as they appear."""
    log = structlog.get_logger()
    resolved = get_resolved_config(ctx, interval=interval, length=length)
    if resolved.length < 1:
        log.error("invalid length", length=resolved.length)
        raise typer.Exit(ExitCode.USAGE_ERROR)

    provider = get_provider(resolved)

    if not follow_mode:
        records = read_once(provider, resolved.length)
        output_records(ctx, resolved, records)
        raise typer.Exit(ExitCode.SUCCESS)

    try:
        config = FollowConfig(
            interval=resolved.interval,
            duration=duration,
            length=resolved.length,
            newest_first=newest_first,
            max_connect_attempts=max_connect_attempts or None,
        )
    except ValueError as exc:
        log.error("invalid follow options", error=str(exc))
        raise typer.Exit(ExitCode.USAGE_ERROR) from exc

    print_banner(resolved.address, config)
    summary = follow(
        provider, config, lambda records: output_records(ctx, resolved, records)
    )
    print_summary(summary)
    raise typer.Exit(ExitCode.SUCCESS)


def print_banner(address: str, config: FollowConfig) -> None:
    duration_str = "indefinite" if config.duration == 0 else f"{config.duration}s"
    order_str = "newest first" if config.newest_first else "oldest first"
    typer.echo(f"Following slowlog on {address}", err=True)
    typer.echo(
        f"Interval: {config.interval}s | Duration: {duration_str} "
        f"| Length: {config.length} | Order: {order_str}",
        err=True,
    )


def print_summary(summary: FollowSummary) -> None:
    typer.echo("\n--- Slowlog Follow Summary ---", err=True)
    mins, secs = divmod(summary.elapsed_seconds, 60)
    duration_str = f"{mins}m {secs}s" if mins > 0 else f"{secs}s"
    typer.echo(f"Duration: {duration_str}", err=True)
    typer.echo(f"Polls: {summary.polls:,}", err=True)
    typer.echo(f"Entries: {summary.records:,}", err=True)
    if summary.reconnects:
        typer.echo(f"Reconnects: {summary.reconnects:,}", err=True)
    if summary.restarts:
        typer.echo(f"Server restarts: {summary.restarts:,}", err=True)
