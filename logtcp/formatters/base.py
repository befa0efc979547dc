"""
Abstract base class for logtcp record formatters.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from logtcp.records import LogField


class LogFormatter(ABC):
    """
    Abstract base class for record formatters.

    Formatters turn the ordered field values of one record into a byte payload.
    The payload must not contain the record delimiter; the writer appends it.
    """

    @abstractmethod
    def format(self, fields: Sequence[LogField], values: Sequence[Any]) -> bytes:
        """
        Format one record.

        Args:
            fields: Field descriptions, in record order
            values: One value per field; None marks an unset field

        Returns:
            Encoded record payload

        Raises:
            ValueError: the number of values does not match the number of fields
        """
        pass
