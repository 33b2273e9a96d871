"""SLOWLOG and INFO queries and their reply models.

SLOWLOG GET replies arrive newest first; that order is kept everywhere.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slowlog_tail.core.exceptions import ProtocolError

if TYPE_CHECKING:
    from slowlog_tail.core.client import RedisConnection

UPTIME_FIELD = "uptime_in_seconds"


class SlowlogRecord(BaseModel):
    """One SLOWLOG entry as reported by the server."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    time: int
    duration: int
    client_socket: str = ""
    client_name: str = ""
    command: tuple[str, ...] = ()


def parse_record(entry: Any) -> SlowlogRecord:
    """Decode one raw SLOWLOG GET entry.

    Servers before 4.0 send four fields (id, time, duration, args); newer
    ones append the client address and name.
    """
    if not isinstance(entry, (list, tuple)) or len(entry) < 4:
        msg = f"Unexpected slowlog entry shape: {entry!r}"
        raise ProtocolError(msg)

    args = entry[3]
    if not isinstance(args, (list, tuple)):
        msg = f"Unexpected slowlog command arguments: {args!r}"
        raise ProtocolError(msg)

    fields: dict[str, Any] = {
        "id": entry[0],
        "time": entry[1],
        "duration": entry[2],
        "command": tuple(str(a) for a in args),
    }
    if len(entry) >= 6:
        fields["client_socket"] = entry[4] or ""
        fields["client_name"] = entry[5] or ""

    try:
        return SlowlogRecord.model_validate(fields)
    except ValidationError as e:
        msg = f"Invalid slowlog entry {entry!r}: {e}"
        raise ProtocolError(msg) from e


def get_slowlog(connection: RedisConnection, length: int) -> list[SlowlogRecord]:
    """Fetch up to ``length`` entries, newest first."""
    log = structlog.get_logger()
    log.debug("executing slowlog query", length=length)
    reply = connection.execute_command("SLOWLOG", "GET", length)
    if reply is None:
        return []
    if not isinstance(reply, (list, tuple)):
        msg = f"Unexpected SLOWLOG GET reply: {reply!r}"
        raise ProtocolError(msg)
    return [parse_record(entry) for entry in reply]


def _parse_uptime_value(raw: Any) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        uptime = raw
    else:
        try:
            uptime = int(str(raw).strip())
        except ValueError as e:
            msg = f"Error while trying to parse uptime from response: {raw!r}"
            raise ProtocolError(msg) from e
    if uptime < 0:
        msg = f"Negative uptime in response from server: {uptime}"
        raise ProtocolError(msg)
    return uptime


def parse_uptime(server_info: Mapping[str, Any] | str) -> int:
    """Extract ``uptime_in_seconds`` from an INFO SERVER reply.

    redis-py hands INFO back as a mapping; the raw ``key:value`` text form
    is accepted too.
    """
    if isinstance(server_info, Mapping):
        if UPTIME_FIELD not in server_info:
            raise ProtocolError("No uptime line in response from server")
        return _parse_uptime_value(server_info[UPTIME_FIELD])

    line = next(
        (ln for ln in server_info.splitlines() if UPTIME_FIELD in ln),
        None,
    )
    if line is None:
        raise ProtocolError("No uptime line in response from server")
    parts = line.split(":")
    if len(parts) < 2:
        raise ProtocolError("No value for uptime in response from server")
    return _parse_uptime_value(parts[1])


def get_uptime(connection: RedisConnection) -> int:
    return parse_uptime(connection.info("server"))
