"""Tests for the connection provider and redis-py error translation."""

from unittest.mock import MagicMock, patch

import pytest
import redis.exceptions

from slowlog_tail.core.client import ConnectionProvider, RedisConnection, translate_error
from slowlog_tail.core.config import AppConfig, resolve_config
from slowlog_tail.core.exceptions import (
    AuthenticationError,
    ErrorKind,
    NetworkError,
    TimeoutError,
    UnclassifiedError,
    UnsupportedOperationError,
)

_CLIENT_MODULE = "slowlog_tail.core.client"


@pytest.fixture
def resolved_config():
    return resolve_config(AppConfig(), host="cache", port=6380, password="secret")


# -- Error translation --


@pytest.mark.unit
@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (redis.exceptions.ConnectionError("Connection reset by peer"), NetworkError),
        (redis.exceptions.BusyLoadingError("LOADING"), NetworkError),
        (redis.exceptions.TimeoutError("Timeout reading from socket"), TimeoutError),
        (redis.exceptions.AuthenticationError("invalid password"), AuthenticationError),
        (
            redis.exceptions.ResponseError("WRONGPASS invalid username-password pair"),
            AuthenticationError,
        ),
        (
            redis.exceptions.NoPermissionError("this user has no permissions"),
            UnsupportedOperationError,
        ),
        (
            redis.exceptions.ResponseError("unknown command 'SLOWLOG'"),
            UnsupportedOperationError,
        ),
        (
            redis.exceptions.ResponseError("unknown subcommand 'GET'"),
            UnsupportedOperationError,
        ),
        (
            redis.exceptions.ResponseError(
                "unknown command 'SLOWLOG', with args beginning with: 'GET' "
            ),
            UnsupportedOperationError,
        ),
        (redis.exceptions.ResponseError("OOM command not allowed"), UnclassifiedError),
        (redis.exceptions.DataError("Invalid input"), UnclassifiedError),
    ],
)
def test_translate_error(exc, expected):
    translated = translate_error(exc, "SLOWLOG GET 128 failed")
    assert type(translated) is expected
    assert translated.message.startswith("SLOWLOG GET 128 failed: ")


@pytest.mark.unit
def test_authentication_error_is_not_transient():
    """redis-py derives AuthenticationError from ConnectionError."""
    translated = translate_error(redis.exceptions.AuthenticationError("denied"), "x")
    assert translated.kind is ErrorKind.AUTH_FAILED


# -- ConnectionProvider --


@pytest.mark.unit
def test_provider_builds_client_from_config(resolved_config):
    with patch(f"{_CLIENT_MODULE}.redis.Redis") as mock_redis:
        ConnectionProvider(resolved_config).get_connection()

    kwargs = mock_redis.call_args.kwargs
    assert kwargs["host"] == "cache"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 0
    assert kwargs["password"] == "secret"
    assert kwargs["decode_responses"] is True
    assert kwargs["client_name"] == "slowlog-tail"


@pytest.mark.unit
def test_provider_pings_new_connection(resolved_config):
    with patch(f"{_CLIENT_MODULE}.redis.Redis") as mock_redis:
        connection = ConnectionProvider(resolved_config).get_connection()

    mock_redis.return_value.ping.assert_called_once()
    assert isinstance(connection, RedisConnection)
    assert connection.address == "cache:6380"


@pytest.mark.unit
def test_provider_returns_fresh_connection_each_time(resolved_config):
    with patch(f"{_CLIENT_MODULE}.redis.Redis") as mock_redis:
        mock_redis.side_effect = [MagicMock(), MagicMock()]
        provider = ConnectionProvider(resolved_config)
        first = provider.get_connection()
        second = provider.get_connection()

    assert first is not second
    assert mock_redis.call_count == 2


@pytest.mark.unit
def test_provider_connection_refused_is_network_error(resolved_config):
    with patch(f"{_CLIENT_MODULE}.redis.Redis") as mock_redis:
        mock_redis.return_value.ping.side_effect = redis.exceptions.ConnectionError(
            "Error 111 connecting to cache:6380. Connection refused."
        )
        with pytest.raises(NetworkError, match="Connection failed to cache:6380"):
            ConnectionProvider(resolved_config).get_connection()

    mock_redis.return_value.close.assert_called_once()


@pytest.mark.unit
def test_provider_bad_password_is_auth_error(resolved_config):
    with patch(f"{_CLIENT_MODULE}.redis.Redis") as mock_redis:
        mock_redis.return_value.ping.side_effect = (
            redis.exceptions.AuthenticationError("invalid password")
        )
        with pytest.raises(AuthenticationError):
            ConnectionProvider(resolved_config).get_connection()


# -- RedisConnection --


@pytest.mark.unit
def test_execute_command_passes_args_through():
    client = MagicMock()
    client.execute_command.return_value = []
    connection = RedisConnection(client, "cache:6380")

    assert connection.execute_command("SLOWLOG", "GET", 10) == []
    client.execute_command.assert_called_once_with("SLOWLOG", "GET", 10)


@pytest.mark.unit
def test_execute_command_translates_errors():
    client = MagicMock()
    client.execute_command.side_effect = redis.exceptions.ConnectionError(
        "Broken pipe"
    )
    connection = RedisConnection(client, "cache:6380")

    with pytest.raises(NetworkError, match="SLOWLOG GET 10 failed on cache:6380"):
        connection.execute_command("SLOWLOG", "GET", 10)


@pytest.mark.unit
def test_info_requests_section():
    client = MagicMock()
    client.info.return_value = {"uptime_in_seconds": 42}
    connection = RedisConnection(client, "cache:6380")

    assert connection.info("server") == {"uptime_in_seconds": 42}
    client.info.assert_called_once_with("server")


@pytest.mark.unit
def test_connection_context_manager_closes():
    client = MagicMock()
    with RedisConnection(client, "cache:6380"):
        pass
    client.close.assert_called_once()


@pytest.mark.unit
def test_execute_command_runs_in_named_span(monkeypatch):
    mock_span = MagicMock()
    monkeypatch.setattr("sentry_sdk.start_span", mock_span)
    client = MagicMock()
    client.execute_command.return_value = []
    connection = RedisConnection(client, "cache:6380")

    connection.execute_command("SLOWLOG", "GET", 10)

    mock_span.assert_called_once_with(op="db.redis", name="SLOWLOG GET 10")


@pytest.mark.unit
def test_execute_command_returns_slowlog_reply_unchanged():
    raw = [[7, 1_700_000_000, 15_000, ["GET", "key"], "127.0.0.1:50000", ""]]
    client = MagicMock()
    client.execute_command.return_value = raw
    connection = RedisConnection(client, "cache:6380")

    assert connection.execute_command("SLOWLOG", "GET", 1) is raw
