"""JSON formatter: one object per slowlog record."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from slowlog_tail.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from slowlog_tail.core.slowlog import SlowlogRecord


class JSONFormatter:
    """Compact mode emits JSON lines; default mode pretty-prints each object."""

    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, records: Sequence[SlowlogRecord]) -> Iterator[str]:
        for record in records:
            data = record.model_dump(mode="json")
            if self.compact:
                yield json.dumps(data, separators=(",", ":"))
            else:
                yield json.dumps(data, indent=2)


registry.register("json", JSONFormatter)
