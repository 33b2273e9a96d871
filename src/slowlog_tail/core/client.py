"""Redis connection provider for slowlog-tail.

Wraps redis-py synchronous clients with connection verification and
exception mapping to the SlowlogTailError hierarchy.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import redis
import redis.exceptions
import sentry_sdk
import structlog

from slowlog_tail.core.exceptions import (
    AuthenticationError,
    ErrorKind,
    NetworkError,
    SlowlogTailError,
    TimeoutError,
    UnclassifiedError,
    UnsupportedOperationError,
)

if TYPE_CHECKING:
    from slowlog_tail.core.config import ResolvedConfig

# Error prefixes of server replies that mean the command itself is not
# available: unknown, renamed away, or missing from the deployment.
_UNSUPPORTED_PREFIXES = ("unknown command", "unknown subcommand")
_AUTH_PREFIXES = ("noauth", "wrongpass", "invalid password", "invalid username")


def translate_error(exc: redis.exceptions.RedisError, context: str) -> SlowlogTailError:
    """Map a redis-py exception onto the closed slowlog-tail error set.

    Order matters: redis-py derives its authentication errors from
    ConnectionError, so they are checked before the transient classes.
    """
    msg = f"{context}: {exc}"
    text = str(exc).lower()

    if isinstance(
        exc,
        (
            redis.exceptions.AuthenticationError,
            redis.exceptions.AuthenticationWrongNumberOfArgsError,
        ),
    ) or text.startswith(_AUTH_PREFIXES):
        return AuthenticationError(msg)
    if isinstance(
        exc, (redis.exceptions.NoPermissionError, redis.exceptions.ModuleError)
    ):
        return UnsupportedOperationError(msg)
    if isinstance(exc, redis.exceptions.TimeoutError):
        return TimeoutError(msg)
    if isinstance(exc, redis.exceptions.ConnectionError):
        return NetworkError(msg)
    if isinstance(exc, redis.exceptions.ResponseError) and text.startswith(
        _UNSUPPORTED_PREFIXES
    ):
        return UnsupportedOperationError(msg)
    return UnclassifiedError(msg)


class RedisConnection:
    """A single live connection used for the slowlog queries."""

    def __init__(self, client: redis.Redis, address: str) -> None:
        self._client = client
        self.address = address

    def __enter__(self) -> RedisConnection:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _call(self, description: str, func: Any, *args: Any) -> Any:
        log = structlog.get_logger()
        log.debug("executing command", command=description, address=self.address)
        with sentry_sdk.start_span(op="db.redis", name=description) as span:
            start_time = time.monotonic()
            try:
                reply = func(*args)
            except redis.exceptions.RedisError as e:
                error = translate_error(e, f"{description} failed on {self.address}")
                transient = error.kind is ErrorKind.TRANSIENT
                span.set_status("unavailable" if transient else "internal_error")
                log.debug(
                    "command failed",
                    command=description,
                    kind=str(error.kind),
                    error=str(e),
                )
                raise error from e
            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("duration_ms", duration_ms)
            log.debug(
                "command complete",
                command=description,
                duration_ms=f"{duration_ms:.1f}",
            )
            return reply

    def execute_command(self, *args: Any) -> Any:
        """Run a command by its full argument list.

        redis-py looks up reply callbacks by ``args[0]`` alone and registers
        none under ``"SLOWLOG"``, so SLOWLOG replies come back as raw lists.
        """
        description = " ".join(str(a) for a in args)
        return self._call(description, self._client.execute_command, *args)

    def info(self, section: str) -> Any:
        return self._call(f"INFO {section.upper()}", self._client.info, section)

    def close(self) -> None:
        """Release the underlying socket."""
        self._client.close()


class ConnectionProvider:
    """Produces live connections from one set of connection parameters."""

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config

    def _make_client(self) -> redis.Redis:
        return redis.Redis(
            host=self.config.host,
            port=self.config.port,
            db=self.config.db,
            username=self.config.username,
            password=self.config.password,
            ssl=self.config.ssl,
            socket_timeout=self.config.socket_timeout,
            socket_connect_timeout=self.config.connect_timeout,
            client_name=self.config.client_name,
            decode_responses=True,
            encoding_errors="replace",
        )

    def get_connection(self) -> RedisConnection:
        """Open a fresh connection and verify it with PING."""
        log = structlog.get_logger()
        address = self.config.address
        client = self._make_client()
        try:
            client.ping()
        except redis.exceptions.RedisError as e:
            client.close()
            raise translate_error(e, f"Connection failed to {address}") from e
        log.debug("connected", address=address, db=self.config.db)
        return RedisConnection(client, address)
