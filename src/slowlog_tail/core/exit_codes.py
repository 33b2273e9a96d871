"""Standard exit codes for slowlog-tail.

Exit codes follow Unix conventions; 70 is sysexits' EX_SOFTWARE.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for slowlog-tail commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    NETWORK_ERROR = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
    INTERNAL_ERROR = 70
