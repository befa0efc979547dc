# logtcp/writer.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from logtcp.config import DestinationConfig, get_config
from logtcp.diagnostics import DiagnosticsReporter, LoggingReporter
from logtcp.exceptions import ConfigurationError
from logtcp.formatters import JSONFormatter, LogFormatter
from logtcp.records import LogField, LogRecord
from logtcp.transport.connection import ConnectionManager
from logtcp.transport.session import SendOutcome, WriteSession

RECORD_DELIMITER = b"\n"


class TcpLogWriter:
    """
    Log writer backend that streams records to a TCP (optionally TLS) collector.

    The host calls initialize() once, write_record() per record and shutdown() at the end. The
    buffering, flush, rotation and heartbeat notifications are accepted and ignored: records go out
    as soon as they are written and the stream has no notion of rotation.

    Example:
        writer = TcpLogWriter()
        if writer.initialize({"host": "collector", "tcpport": "5170", "retry": "T"}, fields):
            writer.write_record(values)
        writer.shutdown()
    """

    def __init__(
            self,
            name: str = "logtcp",
            *,
            defaults: Optional[DestinationConfig] = None,
            formatter: Optional[LogFormatter] = None,
            reporter: Optional[DiagnosticsReporter] = None,
    ) -> None:
        self.name = name
        self._defaults = defaults
        self._formatter = formatter
        self.reporter: DiagnosticsReporter = reporter or LoggingReporter(name)
        self.destination: Optional[DestinationConfig] = None
        self.fields: Sequence[LogField] = ()
        self._conn: Optional[ConnectionManager] = None
        self._session: Optional[WriteSession] = None

    @property
    def connection(self) -> Optional[ConnectionManager]:
        return self._conn

    @property
    def session(self) -> Optional[WriteSession]:
        return self._session

    def initialize(self, config: Optional[Mapping[str, str]] = None, fields: Sequence[LogField] = ()) -> bool:
        base = self._defaults or get_config()
        try:
            self.destination = base.with_overrides(config)
        except ConfigurationError as e:
            self.reporter.error(str(e))
            return False

        # re-initialization replaces the previous connection
        if self._conn is not None:
            self._conn.teardown()

        self.fields = tuple(fields)
        if self._formatter is None:
            self._formatter = JSONFormatter()

        self._conn = ConnectionManager(self.destination, self.reporter)
        self._session = WriteSession(self._conn, self.reporter)
        return self._conn.establish()

    def write_record(self, values: Sequence[Any]) -> bool:
        if self._session is None:
            self.reporter.error("Writer used before initialization")
            return False

        if len(values) != len(self.fields):
            self.reporter.error(f"Record has {len(self.fields)} fields but {len(values)} values")
            return False
        return self._send(self._formatter.format(self.fields, values))

    def write(self, record: LogRecord) -> bool:
        """Write a self-describing record whose fields may differ from the ones given to initialize()."""
        if self._session is None:
            self.reporter.error("Writer used before initialization")
            return False
        return self._send(self._formatter.format(record.fields, record.values))

    def _send(self, formatted: bytes) -> bool:
        return self._session.send(formatted + RECORD_DELIMITER) is SendOutcome.DELIVERED

    def shutdown(self) -> bool:
        if self._conn is None:
            return True
        return self._conn.teardown()

    # Host notifications with nothing to do for a stream destination

    def set_buffering(self, enabled: bool) -> bool:
        return True

    def flush(self, network_time: float = 0.0) -> bool:
        return True

    def rotate(self, rotated_path: str = "", open_time: float = 0.0, close_time: float = 0.0,
               terminating: bool = False) -> bool:
        # no files to rotate; report the rotation as finished right away
        return True

    def heartbeat(self, network_time: float = 0.0, current_time: float = 0.0) -> bool:
        return True

    def __enter__(self) -> "TcpLogWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
