"""slowlog-tail main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import structlog
import typer

from slowlog_tail.__about__ import __version__
from slowlog_tail.cli.commands.config import config_app
from slowlog_tail.cli.commands.get import get_command
from slowlog_tail.cli.output import OutputFormat  # noqa: TC001
from slowlog_tail.core.exceptions import SlowlogTailError, UnclassifiedError
from slowlog_tail.core.exit_codes import ExitCode
from slowlog_tail.core.logging import setup_logging
from slowlog_tail.core.monitoring import setup_sentry

app = typer.Typer(
    help="slowlog-tail - follow the SLOWLOG of a Redis-compatible server",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("get")(get_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"slowlog-tail {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="More logging (-v info, -vv debug)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Only log errors"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named connection profile"),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="Server host"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Server port"),
    ] = None,
    db: Annotated[
        int | None,
        typer.Option("--db", "-n", help="Database number"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-U", help="ACL user name"),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", "-a", help="Password"),
    ] = None,
    url: Annotated[
        str | None,
        typer.Option("--url", help="Connection URL (redis:// or rediss://)"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: text|json|table"),
    ] = None,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Compact JSON output (one object per line)"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Command column width for table format"),
    ] = 60,
) -> None:
    """slowlog-tail - follow the SLOWLOG of a Redis-compatible server."""
    setup_logging(verbose, quiet)
    setup_sentry()

    transaction = sentry_sdk.start_transaction(
        op="cli", name=ctx.invoked_subcommand or "slowlog-tail"
    )
    transaction.__enter__()

    def cleanup() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(cleanup)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["profile"] = profile
    ctx.obj["host"] = host
    ctx.obj["port"] = port
    ctx.obj["db"] = db
    ctx.obj["user"] = user
    ctx.obj["password"] = password
    ctx.obj["url"] = url
    ctx.obj["config_file"] = config_file
    ctx.obj["format"] = format.value if format else None
    ctx.obj["compact"] = compact
    ctx.obj["width"] = width


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except SlowlogTailError as e:
        sentry_sdk.capture_exception(e)
        if isinstance(e, UnclassifiedError):
            structlog.get_logger().critical(
                "unclassified error, aborting", error=e.message
            )
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(ExitCode.GENERAL_ERROR) from None
