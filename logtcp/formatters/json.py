"""
JSON formatter for logtcp.

Each record becomes a single-line JSON object keyed by field name, the format
most collectors (Logstash, Fluentd, Vector, Splunk TCP inputs) accept as-is.
"""

import json
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Sequence

from .base import LogFormatter
from ..records import FieldType, LogField


class TimestampFormat(str, Enum):
    EPOCH = "epoch"
    ISO8601 = "iso8601"


class JSONFormatter(LogFormatter):
    """
    JSON lines formatter.

    Unset fields are left out of the object. Time values are written as epoch
    seconds by default, intervals as seconds, ports as numbers, and sets and
    vectors as arrays.
    """

    def __init__(self, timestamps: TimestampFormat = TimestampFormat.EPOCH):
        self.timestamps = timestamps

    def format(self, fields: Sequence[LogField], values: Sequence[Any]) -> bytes:
        if len(fields) != len(values):
            raise ValueError(f"record has {len(fields)} fields but {len(values)} values")

        data: Dict[str, Any] = {}
        for f, value in zip(fields, values):
            if value is None:
                continue
            data[f.name] = self._convert(f.type, value)

        return json.dumps(
            data,
            ensure_ascii=False,
            separators=(',', ':'),
            default=self._json_serializer,
        ).encode("utf-8")

    def _convert(self, ftype: FieldType, value: Any) -> Any:
        if ftype is FieldType.TIME:
            return self._format_time(value)
        if ftype is FieldType.INTERVAL:
            return value.total_seconds() if isinstance(value, timedelta) else float(value)
        if ftype is FieldType.PORT:
            # "80/tcp" style values keep only the number
            return int(str(value).split("/", 1)[0])
        if ftype in (FieldType.ADDR, FieldType.SUBNET, FieldType.ENUM):
            return str(value)
        if ftype in (FieldType.SET, FieldType.VECTOR):
            items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else value
            return [self._convert_element(v) for v in items]
        return value

    def _convert_element(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return self._format_time(value)
        if isinstance(value, timedelta):
            return value.total_seconds()
        return value

    def _format_time(self, value: Any) -> Any:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            if self.timestamps is TimestampFormat.ISO8601:
                return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')
            return value.timestamp()

        ts = float(value)
        if self.timestamps is TimestampFormat.ISO8601:
            return datetime.fromtimestamp(ts, tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')
        return ts

    def _json_serializer(self, obj: Any) -> Any:
        """Fallback for values json can't encode natively (addresses inside vectors, enums, ...)."""
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=str)
        return str(obj)
