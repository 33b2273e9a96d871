"""Exception hierarchy for slowlog-tail.

All exceptions carry an exit_code for CLI return value mapping and a
``kind`` from the closed ErrorKind set. Only the reader's recovery step
looks at ``kind``; every other layer propagates errors untouched.
"""

from enum import StrEnum

from slowlog_tail.core.exit_codes import ExitCode


class ErrorKind(StrEnum):
    TRANSIENT = "transient"
    AUTH_FAILED = "auth_failed"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    PROTOCOL_PARSE = "protocol_parse"
    OTHER = "other"


class SlowlogTailError(Exception):
    """Base exception for all slowlog-tail errors."""

    exit_code: int = ExitCode.GENERAL_ERROR
    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(SlowlogTailError):
    """Broken pipe, connection reset, unreachable host."""

    exit_code: int = ExitCode.NETWORK_ERROR
    kind: ErrorKind = ErrorKind.TRANSIENT


class TimeoutError(NetworkError):
    """Socket read or connect timeout."""

    exit_code: int = ExitCode.TIMEOUT


class AuthenticationError(SlowlogTailError):
    """Wrong password, missing credentials."""

    kind: ErrorKind = ErrorKind.AUTH_FAILED


class UnsupportedOperationError(SlowlogTailError):
    """Server rejects SLOWLOG or INFO (unknown, renamed or ACL-denied)."""

    kind: ErrorKind = ErrorKind.UNSUPPORTED_OPERATION


class ProtocolError(SlowlogTailError):
    """Reply does not have the expected shape."""

    kind: ErrorKind = ErrorKind.PROTOCOL_PARSE


class UnclassifiedError(SlowlogTailError):
    """Server or client error outside the known taxonomy."""

    exit_code: int = ExitCode.INTERNAL_ERROR


class ConfigError(SlowlogTailError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR
