"""slowlog-tail: follow the SLOWLOG of a Redis-compatible server."""

from slowlog_tail.__about__ import __version__

__all__ = ["__version__"]
