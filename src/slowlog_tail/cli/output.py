"""Output format selection and TTY auto-detection."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from slowlog_tail.core.slowlog import SlowlogRecord
    from slowlog_tail.formatters.base import Formatter


class OutputFormat(StrEnum):
    TEXT = "text"
    JSON = "json"
    TABLE = "table"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None, default_format: str | None = None) -> str:
    """Determine the output format.

    Explicit --format wins, then the config file's default_format.
    Otherwise: table for TTY, text for pipes.
    """
    if format_flag is not None:
        return format_flag
    if default_format is not None:
        return default_format
    return "table" if detect_tty() else "text"


def get_formatter(
    format_flag: str | None = None,
    *,
    default_format: str | None = None,
    compact: bool = False,
    width: int = 60,
) -> Formatter:
    """Build and return the appropriate formatter instance."""
    # Import here to trigger registry population from formatter modules.
    import slowlog_tail.formatters.json  # noqa: F401
    import slowlog_tail.formatters.table  # noqa: F401
    import slowlog_tail.formatters.text  # noqa: F401
    from slowlog_tail.formatters.base import registry

    fmt_name = resolve_format(format_flag, default_format)

    kwargs: dict[str, object] = {}
    if fmt_name == "table":
        kwargs["width"] = width
    elif fmt_name == "json":
        kwargs["compact"] = compact

    return registry.get(fmt_name, **kwargs)


def write_output(formatter: Formatter, records: Sequence[SlowlogRecord]) -> None:
    """Write formatted records to stdout and flush (follow mode streams)."""
    for line in formatter.format(records):
        sys.stdout.write(line + "\n")
    sys.stdout.flush()
