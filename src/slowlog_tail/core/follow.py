"""One-shot and follow-mode polling of the server slowlog."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import sentry_sdk
import structlog

from slowlog_tail.core.config import DEFAULT_INTERVAL, DEFAULT_LENGTH
from slowlog_tail.core.exceptions import NetworkError, SlowlogTailError
from slowlog_tail.core.reader import RetryPolicy, connect_reader
from slowlog_tail.core.slowlog import get_slowlog

if TYPE_CHECKING:
    from collections.abc import Callable

    from slowlog_tail.core.client import ConnectionProvider
    from slowlog_tail.core.reader import SlowlogReader
    from slowlog_tail.core.slowlog import SlowlogRecord


@dataclass
class FollowConfig:
    interval: int = DEFAULT_INTERVAL
    duration: int = 0
    length: int = DEFAULT_LENGTH
    newest_first: bool = False
    max_connect_attempts: int | None = None

    def __post_init__(self) -> None:
        if not (1 <= self.interval <= 3600):
            msg = f"interval must be between 1 and 3600, got {self.interval}"
            raise ValueError(msg)
        if self.duration < 0:
            msg = f"duration must be >= 0, got {self.duration}"
            raise ValueError(msg)
        if self.length < 1:
            msg = f"length must be >= 1, got {self.length}"
            raise ValueError(msg)
        if self.max_connect_attempts is not None and self.max_connect_attempts < 1:
            msg = f"max_connect_attempts must be >= 1, got {self.max_connect_attempts}"
            raise ValueError(msg)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            interval=self.interval, max_attempts=self.max_connect_attempts
        )


@dataclass
class FollowSummary:
    polls: int
    records: int
    reconnects: int
    restarts: int
    elapsed_seconds: int


def read_once(
    provider: ConnectionProvider, length: int = DEFAULT_LENGTH
) -> list[SlowlogRecord]:
    """Fetch the current slowlog once, newest first, without any bookkeeping."""
    if length < 1:
        msg = f"length must be >= 1, got {length}"
        raise ValueError(msg)
    with provider.get_connection() as connection:
        return get_slowlog(connection, length)


def _recover(reader: SlowlogReader, exc: SlowlogTailError) -> None:
    log = structlog.get_logger()
    try:
        reader.recover(exc)
    except NetworkError as reconnect_exc:
        # Steady state keeps going; the next cycle retries the connection.
        log.error(
            "can't establish connection to server",
            error=reconnect_exc.message,
        )


def follow(
    provider: ConnectionProvider,
    config: FollowConfig,
    emit: Callable[[list[SlowlogRecord]], None],
) -> FollowSummary:
    """Poll the slowlog every ``config.interval`` seconds and emit new entries.

    Entries are emitted oldest first unless ``config.newest_first`` is set.
    Runs until ``config.duration`` elapses (0 = indefinitely), Ctrl-C, or a
    fatal error.
    """
    log = structlog.get_logger()
    reader = connect_reader(provider, config.retry_policy, length=config.length)
    start = time.monotonic()
    polls = 0
    emitted = 0

    try:
        while True:
            elapsed = int(time.monotonic() - start)
            if config.duration > 0 and elapsed >= config.duration:
                break

            polls += 1
            with sentry_sdk.start_span(
                op="poll", name=f"Poll cycle {polls}"
            ) as span:
                try:
                    records = reader.get()
                except SlowlogTailError as exc:
                    span.set_status("unavailable")
                    _recover(reader, exc)
                else:
                    span.set_data("records", len(records))
                    if records:
                        emit(records if config.newest_first else records[::-1])
                        emitted += len(records)

            log.debug("sleeping until next poll", sleep_seconds=config.interval)
            with sentry_sdk.start_span(
                op="sleep", name=f"Poll interval wait {config.interval}s"
            ):
                time.sleep(config.interval)
    except KeyboardInterrupt:
        log.debug("follow interrupted", polls=polls)
    finally:
        reader.close()

    return FollowSummary(
        polls=polls,
        records=emitted,
        reconnects=reader.reconnects,
        restarts=reader.restarts,
        elapsed_seconds=int(time.monotonic() - start),
    )
