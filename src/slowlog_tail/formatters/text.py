"""Plain text formatter: one line per slowlog record."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from slowlog_tail.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from slowlog_tail.core.slowlog import SlowlogRecord


def format_record(record: SlowlogRecord) -> str:
    return (
        f"[{record.time}] id: {record.id},\tduration: {record.duration},"
        f"\tclient: {record.client_socket},\tclient_name: {record.client_name},"
        f"\tcommand: {json.dumps(list(record.command))}"
    )


class TextFormatter:
    def format(self, records: Sequence[SlowlogRecord]) -> Iterator[str]:
        for record in records:
            yield format_record(record)


registry.register("text", TextFormatter)
