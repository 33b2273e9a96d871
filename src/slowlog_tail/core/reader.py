"""Incremental slowlog reader.

Keeps a watermark (highest id already reported) and the last observed
server uptime so that each ``get()`` returns only entries that are new
since the previous call.

Known gaps:

* If more than ``length`` entries were logged between two polls, the
  oldest of them fall outside the fetch window and are never reported.
* An uptime drop is the only restart signal. ``SLOWLOG RESET`` without a
  restart leaves the watermark above the fresh ids, so new entries stay
  hidden until the server's id counter passes the old watermark.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from slowlog_tail.core.config import DEFAULT_LENGTH
from slowlog_tail.core.exceptions import ErrorKind, NetworkError, SlowlogTailError
from slowlog_tail.core.slowlog import get_slowlog, get_uptime

if TYPE_CHECKING:
    from slowlog_tail.core.client import ConnectionProvider
    from slowlog_tail.core.slowlog import SlowlogRecord

NO_RECORDS = -1

_FATAL_KINDS = frozenset({ErrorKind.AUTH_FAILED, ErrorKind.UNSUPPORTED_OPERATION})


class SlowlogReader:
    """Stateful reader over one server connection."""

    def __init__(
        self, provider: ConnectionProvider, length: int = DEFAULT_LENGTH
    ) -> None:
        if length < 1:
            msg = f"length must be >= 1, got {length}"
            raise ValueError(msg)
        self.provider = provider
        self.length = length
        self.connection = provider.get_connection()
        self.last_id = NO_RECORDS
        self.uptime = 0
        self.restarts = 0
        self.reconnects = 0

    def get(self) -> list[SlowlogRecord]:
        """Return entries logged since the previous call, newest first.

        State is committed only once both queries succeed, so a failed
        call leaves ``last_id`` and ``uptime`` unchanged.
        """
        log = structlog.get_logger()
        uptime = get_uptime(self.connection)
        last_id = self.last_id
        restarted = uptime < self.uptime
        if restarted:
            log.info(
                "server restart detected, resetting watermark",
                previous_uptime=self.uptime,
                uptime=uptime,
                watermark=self.last_id,
            )
            last_id = NO_RECORDS

        new_records = [
            r for r in get_slowlog(self.connection, self.length) if r.id > last_id
        ]
        if new_records:
            last_id = new_records[0].id

        self.uptime = uptime
        self.last_id = last_id
        if restarted:
            self.restarts += 1
        log.debug("slowlog polled", new_records=len(new_records), watermark=last_id)
        return new_records

    def reconnect(self) -> None:
        """Swap in a fresh connection from the provider."""
        connection = self.provider.get_connection()
        self.connection.close()
        self.connection = connection
        self.reconnects += 1

    def recover(self, exc: SlowlogTailError) -> None:
        """Reconnect after a transient failure; re-raise anything else.

        A failed reconnect raises the reconnect error.
        """
        log = structlog.get_logger()
        if exc.kind is ErrorKind.TRANSIENT:
            log.warning(
                "lost connection to server, trying to establish a new one",
                error=exc.message,
            )
            self.reconnect()
            return
        if exc.kind in _FATAL_KINDS:
            log.error("fatal error", kind=str(exc.kind), error=exc.message)
        elif exc.kind is ErrorKind.OTHER:
            log.critical("error not handled", error=exc.message)
        raise exc

    def close(self) -> None:
        self.connection.close()


@dataclass(frozen=True)
class RetryPolicy:
    """How reader construction retries transient connection failures.

    ``max_attempts=None`` retries forever.
    """

    interval: int = 1
    max_attempts: int | None = None

    def __post_init__(self) -> None:
        if self.interval < 0:
            msg = f"interval must be >= 0, got {self.interval}"
            raise ValueError(msg)
        if self.max_attempts is not None and self.max_attempts < 1:
            msg = f"max_attempts must be >= 1, got {self.max_attempts}"
            raise ValueError(msg)

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts is not None and attempt >= self.max_attempts


def connect_reader(
    provider: ConnectionProvider,
    policy: RetryPolicy,
    length: int = DEFAULT_LENGTH,
) -> SlowlogReader:
    """Build a SlowlogReader, retrying transient failures per ``policy``.

    Fatal errors (authentication, unsupported command) are raised at once.
    """
    log = structlog.get_logger()
    log.debug("creating slowlog reader", address=provider.config.address)
    attempt = 0
    while True:
        attempt += 1
        try:
            return SlowlogReader(provider, length=length)
        except NetworkError as exc:
            log.error(
                "can't establish connection to server",
                error=exc.message,
                attempt=attempt,
            )
            if policy.exhausted(attempt):
                raise
        time.sleep(policy.interval)
