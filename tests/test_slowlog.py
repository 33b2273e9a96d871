"""Tests for SLOWLOG / INFO reply parsing."""

import pytest
from pydantic import ValidationError

from slowlog_tail.core.exceptions import ProtocolError
from slowlog_tail.core.slowlog import (
    SlowlogRecord,
    get_slowlog,
    get_uptime,
    parse_record,
    parse_uptime,
)
from tests.fakes import FakeConnection, raw_entry

# -- SlowlogRecord --


@pytest.mark.unit
def test_record_is_immutable():
    record = SlowlogRecord(id=1, time=1_700_000_000, duration=10)
    with pytest.raises(ValidationError):
        record.id = 2


@pytest.mark.unit
def test_record_rejects_negative_id():
    with pytest.raises(ValidationError):
        SlowlogRecord(id=-1, time=0, duration=0)


# -- parse_record --


@pytest.mark.unit
def test_parse_record_full_entry():
    record = parse_record(
        [14, 1_700_000_123, 20_500, ["SET", "user:1", "x"], "10.0.0.5:41234", "web"]
    )
    assert record.id == 14
    assert record.time == 1_700_000_123
    assert record.duration == 20_500
    assert record.command == ("SET", "user:1", "x")
    assert record.client_socket == "10.0.0.5:41234"
    assert record.client_name == "web"


@pytest.mark.unit
def test_parse_record_pre_4_0_entry_has_no_client_info():
    record = parse_record([3, 1_700_000_000, 12_000, ["KEYS", "*"]])
    assert record.client_socket == ""
    assert record.client_name == ""
    assert record.command == ("KEYS", "*")


@pytest.mark.unit
def test_parse_record_stringifies_integer_args():
    record = parse_record(raw_entry(1, args=["EXPIRE", "k", 30]))
    assert record.command == ("EXPIRE", "k", "30")


@pytest.mark.unit
@pytest.mark.parametrize(
    "entry",
    [
        "not a list",
        [1, 2, 3],
        [1, 1_700_000_000, 10, "GET key"],
        ["abc", 1_700_000_000, 10, ["GET", "k"]],
    ],
)
def test_parse_record_rejects_malformed_entries(entry):
    with pytest.raises(ProtocolError):
        parse_record(entry)


# -- get_slowlog --


@pytest.mark.unit
def test_get_slowlog_preserves_newest_first_order():
    connection = FakeConnection(ids=[9, 8, 7])
    records = get_slowlog(connection, 128)
    assert [r.id for r in records] == [9, 8, 7]
    assert connection.commands == [("SLOWLOG", "GET", 128)]


@pytest.mark.unit
def test_get_slowlog_honours_length():
    connection = FakeConnection(ids=[9, 8, 7])
    assert [r.id for r in get_slowlog(connection, 2)] == [9, 8]


@pytest.mark.unit
def test_get_slowlog_empty_log():
    assert get_slowlog(FakeConnection(), 128) == []


@pytest.mark.unit
def test_get_slowlog_rejects_non_list_reply():
    connection = FakeConnection()
    connection.execute_command = lambda *args: "OK"
    with pytest.raises(ProtocolError, match="Unexpected SLOWLOG GET reply"):
        get_slowlog(connection, 128)


# -- parse_uptime --


@pytest.mark.unit
def test_parse_uptime_from_mapping():
    assert parse_uptime({"redis_version": "7.2.4", "uptime_in_seconds": 3600}) == 3600


@pytest.mark.unit
def test_parse_uptime_from_string_value():
    assert parse_uptime({"uptime_in_seconds": "42"}) == 42


@pytest.mark.unit
def test_parse_uptime_from_raw_text():
    info = (
        "# Server\r\n"
        "redis_version:7.2.4\r\n"
        "process_id:1\r\n"
        "uptime_in_seconds:86400\r\n"
        "uptime_in_days:1\r\n"
    )
    assert parse_uptime(info) == 86400


@pytest.mark.unit
def test_parse_uptime_zero():
    assert parse_uptime({"uptime_in_seconds": 0}) == 0


@pytest.mark.unit
def test_parse_uptime_missing_field():
    with pytest.raises(ProtocolError, match="No uptime line"):
        parse_uptime({"redis_version": "7.2.4"})


@pytest.mark.unit
def test_parse_uptime_missing_line_in_text():
    with pytest.raises(ProtocolError, match="No uptime line"):
        parse_uptime("# Server\r\nredis_version:7.2.4\r\n")


@pytest.mark.unit
def test_parse_uptime_line_without_value():
    with pytest.raises(ProtocolError, match="No value for uptime"):
        parse_uptime("uptime_in_seconds\r\n")


@pytest.mark.unit
@pytest.mark.parametrize("value", ["soon", "", "12.5", -5, True])
def test_parse_uptime_rejects_invalid_values(value):
    with pytest.raises(ProtocolError):
        parse_uptime({"uptime_in_seconds": value})


@pytest.mark.unit
def test_get_uptime_queries_server_section():
    connection = FakeConnection(uptime=777)
    assert get_uptime(connection) == 777
    assert connection.commands == [("INFO", "server")]
