"""Output formatters for slowlog-tail."""

from slowlog_tail.formatters.base import Formatter, FormatterRegistry, registry
from slowlog_tail.formatters.json import JSONFormatter
from slowlog_tail.formatters.table import TableFormatter
from slowlog_tail.formatters.text import TextFormatter

__all__ = [
    "Formatter",
    "FormatterRegistry",
    "JSONFormatter",
    "TableFormatter",
    "TextFormatter",
    "registry",
]
