# logtcp/records.py
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network
from typing import Any, List, Mapping, Sequence, Tuple


class FieldType(str, Enum):
    BOOL = "bool"
    INT = "int"
    COUNT = "count"
    DOUBLE = "double"
    TIME = "time"
    INTERVAL = "interval"
    STRING = "string"
    ADDR = "addr"
    PORT = "port"
    SUBNET = "subnet"
    ENUM = "enum"
    SET = "set"
    VECTOR = "vector"


@dataclass(frozen=True)
class LogField:
    name: str
    type: FieldType


@dataclass
class LogRecord:
    """
    One log line: an ordered list of typed fields and the value of each.
    A value of None means the field is unset for this record.
    """
    fields: Sequence[LogField]
    values: List[Any] = field(default_factory=list)

    def __post_init__(self):
        if len(self.fields) != len(self.values):
            raise ValueError(f"record has {len(self.fields)} fields but {len(self.values)} values")

    def items(self) -> List[Tuple[LogField, Any]]:
        return list(zip(self.fields, self.values))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LogRecord":
        """Build a record from a plain mapping, inferring each field's type from its value."""
        fields = [LogField(name, infer_field_type(value)) for name, value in data.items()]
        return cls(fields=fields, values=list(data.values()))


def infer_field_type(value: Any) -> FieldType:
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return FieldType.BOOL
    if isinstance(value, int):
        return FieldType.INT
    if isinstance(value, float):
        return FieldType.DOUBLE
    if isinstance(value, datetime):
        return FieldType.TIME
    if isinstance(value, timedelta):
        return FieldType.INTERVAL
    if isinstance(value, (IPv4Address, IPv6Address)):
        return FieldType.ADDR
    if isinstance(value, (IPv4Network, IPv6Network)):
        return FieldType.SUBNET
    if isinstance(value, (set, frozenset)):
        return FieldType.SET
    if isinstance(value, (list, tuple)):
        return FieldType.VECTOR
    return FieldType.STRING
