# logtcp/transport/session.py
from __future__ import annotations

from enum import Enum

from logtcp.exceptions import TransportWriteError
from logtcp.transport.connection import ConnectionManager
from logtcp.diagnostics import DiagnosticsReporter
from logtcp.utils.app_logging import logtcp_logging


class SendOutcome(str, Enum):
    DELIVERED = "delivered"
    SINK_DISABLED = "sink_disabled"


class WriteSession:
    """
    Steady-state write path on top of a ConnectionManager.

    Records are written in call order and never queued: while the collector is unreachable a
    retry-enabled session drops them, a session without retry disables the sink.
    """

    def __init__(self, connection: ConnectionManager, reporter: DiagnosticsReporter) -> None:
        self._conn = connection
        self._reporter = reporter
        self.dropped = 0

    @property
    def retry(self) -> bool:
        return self._conn.destination.retry

    def send(self, payload: bytes) -> SendOutcome:
        if not self._conn.connected:
            if not self.retry:
                return SendOutcome.SINK_DISABLED
            self._conn.establish(is_retry=True)
            if not self._conn.connected:
                self.dropped += 1
                return SendOutcome.DELIVERED

        try:
            self._conn.write(payload)
        except TransportWriteError as e:
            if not (self.retry and e.retryable):
                self._reporter.error(str(e))
                self._conn.teardown()
                return SendOutcome.SINK_DISABLED

            # one synchronous reconnect cycle; the record itself is lost
            logtcp_logging.debug(f"{e}, reconnecting")
            self.dropped += 1
            self._conn.teardown()
            self._conn.establish(is_retry=False)

        return SendOutcome.DELIVERED
