from .base import LogFormatter
from .json import JSONFormatter, TimestampFormat

__all__ = ["LogFormatter", "JSONFormatter", "TimestampFormat"]
