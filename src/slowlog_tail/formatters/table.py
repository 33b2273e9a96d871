"""Rich table formatter for slowlog records."""

from __future__ import annotations

import shutil
from datetime import datetime
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from slowlog_tail.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from slowlog_tail.core.slowlog import SlowlogRecord

_NO_RESULTS = "No slowlog entries"

_COLUMNS = ("id", "time", "duration (us)", "client", "client_name", "command")


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


def _format_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


class TableFormatter:
    def __init__(self, width: int = 60) -> None:
        self.width = width

    def format(self, records: Sequence[SlowlogRecord]) -> Iterator[str]:
        if not records:
            yield _NO_RESULTS
            return

        table = Table(show_edge=True, pad_edge=True)
        for name in _COLUMNS:
            table.add_column(
                name, no_wrap=True, justify="right" if name == "id" else "left"
            )

        for r in records:
            table.add_row(
                str(r.id),
                _format_time(r.time),
                str(r.duration),
                r.client_socket,
                r.client_name,
                _truncate(" ".join(r.command), self.width),
            )

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=True, width=term_width)
        console.print(table)
        yield buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
