"""Tests for JSONFormatter."""

import json

import pytest

from slowlog_tail.core.slowlog import SlowlogRecord
from slowlog_tail.formatters.base import Formatter
from slowlog_tail.formatters.json import JSONFormatter


def _records():
    return [
        SlowlogRecord(
            id=2,
            time=1_700_000_010,
            duration=30_000,
            client_socket="10.0.0.1:6000",
            client_name="api",
            command=("ZRANGE", "board", "0", "-1"),
        ),
        SlowlogRecord(id=1, time=1_700_000_000, duration=11_000, command=("KEYS", "*")),
    ]


@pytest.mark.unit
def test_json_formatter_implements_protocol():
    assert isinstance(JSONFormatter(), Formatter)


@pytest.mark.unit
def test_compact_emits_one_object_per_line():
    lines = list(JSONFormatter(compact=True).format(_records()))
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first == {
        "id": 2,
        "time": 1_700_000_010,
        "duration": 30_000,
        "client_socket": "10.0.0.1:6000",
        "client_name": "api",
        "command": ["ZRANGE", "board", "0", "-1"],
    }
    assert "\n" not in lines[0]


@pytest.mark.unit
def test_pretty_print_default():
    lines = list(JSONFormatter().format(_records()[:1]))
    assert "\n" in lines[0]
    assert json.loads(lines[0])["id"] == 2


@pytest.mark.unit
def test_missing_client_info_serialises_as_empty_strings():
    parsed = json.loads(list(JSONFormatter(compact=True).format(_records()))[1])
    assert parsed["client_socket"] == ""
    assert parsed["client_name"] == ""


@pytest.mark.unit
def test_empty_batch_prints_nothing():
    assert list(JSONFormatter().format([])) == []
